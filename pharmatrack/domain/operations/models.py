"""
Operations Domain Models

Day-to-day supply chain records around the drug batches:
- Customer orders placed with pharmacies
- Stock held at each location
- Deliveries and their tracking numbers
- Manufacturer quality checks
- Production requests from distributors

Batches are referenced by batch number only; nothing here is checked
against the drug store.
"""

from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, Float, Text, Enum
)
from pharmatrack.infrastructure.database import Base, utcnow
import enum


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class LocationKind(str, enum.Enum):
    MANUFACTURER = "manufacturer"
    DISTRIBUTOR = "distributor"
    PHARMACY = "pharmacy"


class DeliveryStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ProductionRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    IN_PRODUCTION = "in_production"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Order(Base):
    """Customer order placed with a pharmacy"""
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True)
    customer_id = Column(String(64), nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    pharmacy_id = Column(String(64), nullable=False, index=True)
    pharmacy_name = Column(String(200), nullable=False)
    drug_batch_number = Column(String(64), nullable=False)
    drug_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Float, nullable=False)
    status = Column(
        Enum(OrderStatus, values_callable=_enum_values),
        nullable=False,
        default=OrderStatus.PENDING
    )
    order_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expected_delivery_date = Column(DateTime(timezone=True))
    actual_delivery_date = Column(DateTime(timezone=True))
    notes = Column(Text)
    tracking_number = Column(String(64))


class InventoryItem(Base):
    """Stock of one batch at one location"""
    __tablename__ = "inventory_items"

    id = Column(String(64), primary_key=True)
    drug_batch_number = Column(String(64), nullable=False, index=True)
    drug_name = Column(String(255), nullable=False)
    location = Column(Enum(LocationKind, values_callable=_enum_values), nullable=False)
    location_id = Column(String(64), nullable=False)
    location_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    reserved_quantity = Column(Integer, nullable=False, default=0)
    available_quantity = Column(Integer, nullable=False, default=0)
    unit_price = Column(Float, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expiry_date = Column(DateTime(timezone=True), nullable=False)
    is_expired = Column(Boolean, nullable=False, default=False)


class Delivery(Base):
    """Shipment of an order between two locations"""
    __tablename__ = "deliveries"

    id = Column(String(64), primary_key=True)
    order_id = Column(String(64), nullable=False, index=True)
    from_location = Column(String(64), nullable=False)
    to_location = Column(String(64), nullable=False)
    from_location_name = Column(String(200), nullable=False)
    to_location_name = Column(String(200), nullable=False)
    drug_batch_number = Column(String(64), nullable=False)
    drug_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    status = Column(
        Enum(DeliveryStatus, values_callable=_enum_values),
        nullable=False,
        default=DeliveryStatus.SCHEDULED
    )
    scheduled_date = Column(DateTime(timezone=True), nullable=False)
    actual_date = Column(DateTime(timezone=True))
    tracking_number = Column(String(64), nullable=False, unique=True)
    notes = Column(Text)


class QualityCheck(Base):
    """Manufacturer quality inspection of a batch"""
    __tablename__ = "quality_checks"

    id = Column(String(64), primary_key=True)
    drug_batch_number = Column(String(64), nullable=False, index=True)
    manufacturer_id = Column(String(64), nullable=False)
    manufacturer_name = Column(String(200), nullable=False)
    check_date = Column(DateTime(timezone=True), nullable=False)
    quality_score = Column(Float, nullable=False)
    is_passed = Column(Boolean, nullable=False)
    notes = Column(Text, nullable=False, default="")
    inspector_name = Column(String(200), nullable=False)


class ProductionRequest(Base):
    """Distributor request for a production run"""
    __tablename__ = "production_requests"

    id = Column(String(64), primary_key=True)
    distributor_id = Column(String(64), nullable=False, index=True)
    distributor_name = Column(String(200), nullable=False)
    drug_name = Column(String(255), nullable=False)
    requested_quantity = Column(Integer, nullable=False)
    requested_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    status = Column(
        Enum(ProductionRequestStatus, values_callable=_enum_values),
        nullable=False,
        default=ProductionRequestStatus.PENDING
    )
    expected_completion_date = Column(DateTime(timezone=True))
    actual_completion_date = Column(DateTime(timezone=True))
    notes = Column(Text)
