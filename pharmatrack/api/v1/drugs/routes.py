"""
Drugs API Routes

Batch registration, supply chain hand-offs, lookups and statistics.
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from typing import List, Optional

from pharmatrack.api.deps import get_current_principal, get_store, require_action
from pharmatrack.core.exceptions import DrugNotFoundError
from pharmatrack.core.permissions import Permissions
from pharmatrack.domain.drugs.models import DrugStatus
from pharmatrack.domain.drugs.pricing import days_until_expiry
from pharmatrack.domain.drugs.records import (
    DrugCreate, DrugRecord, DrugStatistics, RecentSale, RecentTransfer,
    SaleRequest, TransferRequest
)
from pharmatrack.domain.imports.csv_codec import export_drugs_csv
from pharmatrack.api.v1.drugs.schemas import (
    DrugCreateRequest, TransferBody, SaleBody, DrugListResponse,
    PriceQuote, ExpirySweepResponse
)

router = APIRouter()


# ==================== Collection ====================

@router.post("", response_model=DrugRecord, status_code=status.HTTP_201_CREATED)
def create_drug(
    drug_data: DrugCreateRequest,
    store = Depends(get_store),
    principal = Depends(require_action(Permissions.CREATE_DRUG))
):
    """Register a new drug batch"""
    return store.create_drug(DrugCreate(**drug_data.model_dump()))


@router.get("", response_model=DrugListResponse)
def list_drugs(
    q: Optional[str] = Query(None, description="Batch number, drug name or manufacturer"),
    drug_status: Optional[DrugStatus] = Query(None, alias="status"),
    manufacturer: Optional[str] = Query(None),
    store = Depends(get_store),
    principal = Depends(get_current_principal)
):
    items = store.search_drugs(query=q, status=drug_status, manufacturer=manufacturer)
    return DrugListResponse(items=items, total=len(items))


@router.get("/statistics", response_model=DrugStatistics)
def get_statistics(
    store = Depends(get_store),
    principal = Depends(get_current_principal)
):
    return store.get_statistics()


@router.get("/recent-sales", response_model=List[RecentSale])
def get_recent_sales(
    limit: int = Query(10, ge=1, le=100),
    store = Depends(get_store),
    principal = Depends(get_current_principal)
):
    return store.recent_sales(limit)


@router.get("/recent-transfers", response_model=List[RecentTransfer])
def get_recent_transfers(
    limit: int = Query(10, ge=1, le=100),
    store = Depends(get_store),
    principal = Depends(get_current_principal)
):
    return store.recent_transfers(limit)


@router.get("/export")
def export_drugs(
    store = Depends(get_store),
    principal = Depends(require_action(Permissions.VIEW_ALL))
):
    """Every batch as a CSV download"""
    return Response(
        content=export_drugs_csv(store.get_all_drugs()),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="drugs_export.csv"'},
    )


@router.post("/expiry-sweep", response_model=ExpirySweepResponse)
def run_expiry_sweep(
    store = Depends(get_store),
    principal = Depends(require_action(Permissions.VIEW_ALL))
):
    """Flag expired batches and refresh discounted prices now"""
    expired = store.update_expiry_status()
    return ExpirySweepResponse(expired=expired, count=len(expired))


# ==================== Single batch ====================

@router.get("/{batch_number}", response_model=DrugRecord)
def get_drug(
    batch_number: str,
    store = Depends(get_store),
    principal = Depends(get_current_principal)
):
    """Batch with its full lifecycle history"""
    record = store.get_drug_history(batch_number)
    if record is None:
        raise DrugNotFoundError(batch_number)
    return record


@router.get("/{batch_number}/price", response_model=PriceQuote)
def get_price_quote(
    batch_number: str,
    store = Depends(get_store),
    principal = Depends(get_current_principal)
):
    record = store.get_drug_history(batch_number)
    if record is None:
        raise DrugNotFoundError(batch_number)
    now = store.clock()
    return PriceQuote(
        batch_number=record.batch_number,
        price=record.price,
        discounted_price=store.calculate_discounted_price(record, now),
        days_until_expiry=days_until_expiry(record.expiry_date, now),
        is_expired=record.is_expired,
    )


@router.post("/{batch_number}/transfer", response_model=DrugRecord)
def transfer_drug(
    batch_number: str,
    transfer_data: TransferBody,
    store = Depends(get_store),
    principal = Depends(require_action(Permissions.TRANSFER_DRUG))
):
    """Record a hand-off between two supply chain parties"""
    return store.transfer_drug(TransferRequest(
        batch_number=batch_number,
        from_entity=transfer_data.from_entity,
        to_entity=transfer_data.to_entity,
        transfer_date=transfer_data.transfer_date or store.clock(),
        location=transfer_data.location,
    ))


@router.post("/{batch_number}/sell", response_model=DrugRecord)
def sell_drug(
    batch_number: str,
    sale_data: SaleBody,
    store = Depends(get_store),
    principal = Depends(require_action(Permissions.SELL_DRUG))
):
    """Record a retail sale"""
    return store.sell_drug(SaleRequest(
        batch_number=batch_number,
        pharmacy=sale_data.pharmacy,
        sale_date=sale_data.sale_date or store.clock(),
        price=sale_data.price,
        location=sale_data.location,
    ))
