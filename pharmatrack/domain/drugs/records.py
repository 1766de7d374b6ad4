"""
In-memory drug records and the inputs that mutate them.

Lifecycle events are a tagged union on ``type``; a record's history is
append-only and kept in insertion order.
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from pharmatrack.domain.drugs.models import DrugStatus


class ManufacturedEvent(BaseModel):
    type: Literal["manufactured"] = "manufactured"
    timestamp: datetime
    entity: str
    location: str


class TransferredEvent(BaseModel):
    type: Literal["transferred"] = "transferred"
    timestamp: datetime
    from_entity: str
    to_entity: str
    location: str


class SoldEvent(BaseModel):
    type: Literal["sold"] = "sold"
    timestamp: datetime
    entity: str
    location: str
    price: float


LifecycleEvent = Annotated[
    Union[ManufacturedEvent, TransferredEvent, SoldEvent],
    Field(discriminator="type"),
]


class DrugRecord(BaseModel):
    """Current projection of one batch"""
    batch_number: str
    drug_name: str
    manufacturer: str
    composition: str = ""
    production_date: datetime
    expiry_date: datetime
    price: float = 0
    discounted_price: Optional[float] = None
    current_status: DrugStatus = DrugStatus.MANUFACTURED
    is_expired: bool = False
    is_blacklisted: bool = False
    history: List[LifecycleEvent] = Field(default_factory=list)
    qr_code_generated: bool = False
    qr_code_data: Optional[str] = None


class DrugCreate(BaseModel):
    """Input for a new batch; a blank batch number is generated"""
    batch_number: Optional[str] = None
    drug_name: str
    manufacturer: str
    composition: str = ""
    production_date: datetime
    expiry_date: datetime
    price: float = 0
    location: str = "Manufacturing Facility"


class TransferRequest(BaseModel):
    batch_number: str
    from_entity: str
    to_entity: str
    transfer_date: datetime
    location: str


class SaleRequest(BaseModel):
    batch_number: str
    pharmacy: str
    sale_date: datetime
    price: float
    location: str


class DrugStatistics(BaseModel):
    total: int = 0
    manufactured: int = 0
    distributed: int = 0
    sold: int = 0
    expired: int = 0
    blacklisted: int = 0
    qr_issued: int = 0


class RecentSale(BaseModel):
    batch_number: str
    drug_name: str
    pharmacy: str
    location: str
    price: float
    timestamp: datetime


class RecentTransfer(BaseModel):
    batch_number: str
    drug_name: str
    from_entity: str
    to_entity: str
    location: str
    timestamp: datetime
