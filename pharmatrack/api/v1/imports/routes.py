"""
Bulk Import API Routes

CSV uploads for drugs, transfers and sales, plus the matching templates.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from pharmatrack.api.deps import get_current_principal, get_store
from pharmatrack.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from pharmatrack.core.permissions import Permissions
from pharmatrack.domain.imports.csv_codec import TEMPLATES
from pharmatrack.domain.imports.service import CSVImportResult, ImportService

router = APIRouter()

IMPORT_ACTIONS = {
    "drugs": Permissions.CREATE_DRUG,
    "transfers": Permissions.TRANSFER_DRUG,
    "sales": Permissions.SELL_DRUG,
}


@router.get("/templates/{kind}")
def download_template(kind: str):
    """Blank CSV with the expected headers and one sample row"""
    if kind not in TEMPLATES:
        raise NotFoundError(message=f"No template for {kind}", details={"allowed": list(TEMPLATES)})
    filename, build = TEMPLATES[kind]
    return Response(
        content=build(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{kind}", response_model=CSVImportResult)
def import_csv_file(
    kind: str,
    file: UploadFile = File(...),
    store = Depends(get_store),
    principal = Depends(get_current_principal)
):
    """Apply an uploaded CSV file; row problems come back in ``errors``"""
    action = IMPORT_ACTIONS.get(kind)
    if action is None:
        raise ValidationError(message=f"Unknown import type: {kind}", details={"allowed": list(IMPORT_ACTIONS)})
    if not principal.can(action):
        raise AuthorizationError(
            message="Insufficient permissions",
            details={"action": action, "role": principal.role.value},
        )

    raw = file.file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError(message="CSV file must be UTF-8 encoded", error_code="INVALID_ENCODING")

    return ImportService(store).import_csv(kind, content)
