"""
QR Tracking API Routes

Issuing tracking codes, rendering them, and verifying scanned payloads.
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from typing import List

from pharmatrack.api.deps import get_current_principal, get_store, require_action
from pharmatrack.core.exceptions import DrugNotFoundError, NotFoundError, ValidationError
from pharmatrack.core.permissions import Permissions
from pharmatrack.domain.tracking.codec import parse_qr_data
from pharmatrack.domain.tracking.service import ScanHistoryService
from pharmatrack.infrastructure.database import get_db
from pharmatrack.services.qr_renderer import qr_filename, render_qr_data_url, render_qr_png
from pharmatrack.api.v1.tracking.schemas import (
    QRCodeResponse, PayloadRequest, VerifyResponse,
    ScanRecordResponse, ScanResponse, ClearHistoryResponse
)

router = APIRouter()


def _issued_payload(store, batch_number: str) -> str:
    record = store.get_drug_history(batch_number)
    if record is None:
        raise DrugNotFoundError(batch_number)
    if not record.qr_code_generated or not record.qr_code_data:
        raise NotFoundError(
            message="QR code not generated for this batch",
            details={"batch_number": batch_number},
            error_code="QR_NOT_ISSUED",
        )
    return record.qr_code_data


@router.post("/{batch_number}/qr", response_model=QRCodeResponse, status_code=status.HTTP_201_CREATED)
def generate_qr_code(
    batch_number: str,
    store = Depends(get_store),
    principal = Depends(require_action(Permissions.GENERATE_QR))
):
    """Issue the tracking code for a batch; a batch gets one code only"""
    record = store.issue_tracking_code(batch_number)
    return QRCodeResponse(
        batch_number=record.batch_number,
        qr_code_data=record.qr_code_data,
        image=render_qr_data_url(record.qr_code_data),
        filename=qr_filename(record.batch_number),
    )


@router.get("/{batch_number}/qr.png")
def download_qr_code(
    batch_number: str,
    printable: bool = Query(False),
    store = Depends(get_store),
    principal = Depends(get_current_principal)
):
    data = _issued_payload(store, batch_number)
    return Response(
        content=render_qr_png(data, printable=printable),
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{qr_filename(batch_number, printable)}"'},
    )


@router.post("/verify", response_model=VerifyResponse)
def verify_payload(
    body: PayloadRequest,
    store = Depends(get_store),
    principal = Depends(get_current_principal)
):
    """Check a payload's integrity and look the batch up, without recording a scan"""
    payload = parse_qr_data(body.payload)
    if payload is None:
        return VerifyResponse(valid=False)
    return VerifyResponse(
        valid=True,
        batch_number=payload.batch_number,
        drug=store.get_drug_history(payload.batch_number),
    )


@router.post("/scan", response_model=ScanResponse)
def scan_qr_code(
    body: PayloadRequest,
    store = Depends(get_store),
    db = Depends(get_db),
    principal = Depends(require_action(Permissions.SCAN_QR))
):
    """Verify a scanned payload and add it to the scan history"""
    payload = parse_qr_data(body.payload)
    if payload is None:
        raise ValidationError(message="Invalid QR code", error_code="INVALID_QR_CODE")

    record = store.get_drug_history(payload.batch_number)
    if record is None:
        raise DrugNotFoundError(payload.batch_number)

    scan = ScanHistoryService(db).record_scan(payload, scanned_by=principal.username, notes=body.notes)
    return ScanResponse(
        drug=record,
        duplicate=scan is None,
        scan=ScanRecordResponse.model_validate(scan) if scan is not None else None,
    )


@router.get("/scans", response_model=List[ScanRecordResponse])
def get_scan_history(
    db = Depends(get_db),
    principal = Depends(require_action(Permissions.SCAN_QR))
):
    """Recent scans, newest first"""
    return ScanHistoryService(db).get_history()


@router.delete("/scans", response_model=ClearHistoryResponse)
def clear_scan_history(
    db = Depends(get_db),
    principal = Depends(require_action(Permissions.SCAN_QR))
):
    return ClearHistoryResponse(cleared=ScanHistoryService(db).clear_history())
