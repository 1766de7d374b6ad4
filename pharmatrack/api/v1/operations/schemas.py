from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from pharmatrack.domain.operations.models import (
    OrderStatus, LocationKind, DeliveryStatus, ProductionRequestStatus
)


# ==================== Orders ====================

class OrderCreate(BaseModel):
    """Schema for placing an order"""
    customer_id: str
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: str = Field(..., min_length=3, max_length=255)
    pharmacy_id: str
    pharmacy_name: str = Field(..., min_length=1, max_length=200)
    drug_batch_number: str
    drug_name: str
    quantity: int = Field(..., gt=0)
    total_price: float = Field(..., ge=0)
    expected_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    customer_id: str
    customer_name: str
    customer_email: str
    pharmacy_id: str
    pharmacy_name: str
    drug_batch_number: str
    drug_name: str
    quantity: int
    total_price: float
    status: OrderStatus
    order_date: datetime
    expected_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None

    class Config:
        from_attributes = True


# ==================== Inventory ====================

class InventoryCreate(BaseModel):
    drug_batch_number: str
    drug_name: str
    location: LocationKind
    location_id: str
    location_name: str
    quantity: int = Field(..., ge=0)
    reserved_quantity: int = Field(0, ge=0)
    unit_price: float = Field(0, ge=0)
    expiry_date: datetime
    is_expired: bool = False


class InventoryUpdate(BaseModel):
    """Partial update; available quantity is derived"""
    drug_name: Optional[str] = None
    location_name: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    reserved_quantity: Optional[int] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    expiry_date: Optional[datetime] = None
    is_expired: Optional[bool] = None


class InventoryResponse(BaseModel):
    id: str
    drug_batch_number: str
    drug_name: str
    location: LocationKind
    location_id: str
    location_name: str
    quantity: int
    reserved_quantity: int
    available_quantity: int
    unit_price: float
    last_updated: datetime
    expiry_date: datetime
    is_expired: bool

    class Config:
        from_attributes = True


# ==================== Deliveries ====================

class DeliveryCreate(BaseModel):
    order_id: str
    from_location: str
    to_location: str
    from_location_name: str
    to_location_name: str
    drug_batch_number: str
    drug_name: str
    quantity: int = Field(..., gt=0)
    scheduled_date: datetime
    notes: Optional[str] = None


class DeliveryStatusUpdate(BaseModel):
    status: DeliveryStatus


class DeliveryResponse(BaseModel):
    id: str
    order_id: str
    from_location: str
    to_location: str
    from_location_name: str
    to_location_name: str
    drug_batch_number: str
    drug_name: str
    quantity: int
    status: DeliveryStatus
    scheduled_date: datetime
    actual_date: Optional[datetime] = None
    tracking_number: str
    notes: Optional[str] = None

    class Config:
        from_attributes = True


# ==================== Quality checks ====================

class QualityCheckCreate(BaseModel):
    drug_batch_number: str
    manufacturer_id: str
    manufacturer_name: str
    check_date: datetime
    quality_score: float = Field(..., ge=0, le=100)
    is_passed: bool
    notes: str = ""
    inspector_name: str


class QualityCheckResponse(QualityCheckCreate):
    id: str

    class Config:
        from_attributes = True


# ==================== Production requests ====================

class ProductionRequestCreate(BaseModel):
    distributor_id: str
    distributor_name: str
    drug_name: str
    requested_quantity: int = Field(..., gt=0)
    expected_completion_date: Optional[datetime] = None
    notes: Optional[str] = None


class ProductionRequestStatusUpdate(BaseModel):
    status: ProductionRequestStatus
    expected_completion_date: Optional[datetime] = None


class ProductionRequestResponse(BaseModel):
    id: str
    distributor_id: str
    distributor_name: str
    drug_name: str
    requested_quantity: int
    requested_at: datetime
    status: ProductionRequestStatus
    expected_completion_date: Optional[datetime] = None
    actual_completion_date: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True
