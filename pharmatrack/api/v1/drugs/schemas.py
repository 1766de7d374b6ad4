from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from pharmatrack.domain.drugs.records import DrugRecord


class DrugCreateRequest(BaseModel):
    """Schema for registering a drug batch"""
    batch_number: Optional[str] = Field(None, max_length=64)
    drug_name: str = Field(..., min_length=1, max_length=255)
    manufacturer: str = Field(..., min_length=1, max_length=255)
    composition: str = ""
    production_date: datetime
    expiry_date: datetime
    price: float = Field(0, ge=0)
    location: str = "Manufacturing Facility"


class TransferBody(BaseModel):
    from_entity: str = Field(..., min_length=1)
    to_entity: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    transfer_date: Optional[datetime] = None


class SaleBody(BaseModel):
    pharmacy: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    location: str = Field(..., min_length=1)
    sale_date: Optional[datetime] = None


class DrugListResponse(BaseModel):
    items: List[DrugRecord]
    total: int


class PriceQuote(BaseModel):
    batch_number: str
    price: float
    discounted_price: float
    days_until_expiry: int
    is_expired: bool


class ExpirySweepResponse(BaseModel):
    expired: List[str]
    count: int
