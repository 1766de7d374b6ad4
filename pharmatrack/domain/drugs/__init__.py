# Drugs domain module
from pharmatrack.domain.drugs.models import (
    Drug,
    DrugEvent,
    DrugStatus,
    EventType,
)
from pharmatrack.domain.drugs.records import (
    DrugCreate,
    DrugRecord,
    DrugStatistics,
    ManufacturedEvent,
    SaleRequest,
    SoldEvent,
    TransferRequest,
    TransferredEvent,
)

__all__ = [
    "Drug",
    "DrugEvent",
    "DrugStatus",
    "EventType",
    "DrugCreate",
    "DrugRecord",
    "DrugStatistics",
    "ManufacturedEvent",
    "SaleRequest",
    "SoldEvent",
    "TransferRequest",
    "TransferredEvent",
]
