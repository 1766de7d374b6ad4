"""
Drug Domain Models

Database tables behind the drug store:
- Drug batches keyed by batch number
- Lifecycle events, one row per event, ordered by sequence
"""

from sqlalchemy import (
    Column, String, Boolean, DateTime, ForeignKey, Integer, Float, Text, Enum
)
from sqlalchemy.orm import relationship
from pharmatrack.infrastructure.database import Base
import enum


class DrugStatus(str, enum.Enum):
    """Derived status of a drug batch"""
    MANUFACTURED = "manufactured"
    DISTRIBUTED = "distributed"
    SOLD = "sold"
    EXPIRED = "expired"


class EventType(str, enum.Enum):
    """Kind of lifecycle event"""
    MANUFACTURED = "manufactured"
    TRANSFERRED = "transferred"
    SOLD = "sold"


class Drug(Base):
    """One manufactured drug lot"""
    __tablename__ = "drugs"

    batch_number = Column(String(64), primary_key=True)
    drug_name = Column(String(255), nullable=False)
    manufacturer = Column(String(255), nullable=False, index=True)
    composition = Column(Text, nullable=False, default="")
    production_date = Column(DateTime(timezone=True), nullable=False)
    expiry_date = Column(DateTime(timezone=True), nullable=False)
    price = Column(Float, nullable=False, default=0)
    discounted_price = Column(Float, nullable=True)
    current_status = Column(
        Enum(DrugStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DrugStatus.MANUFACTURED
    )
    is_expired = Column(Boolean, nullable=False, default=False)
    is_blacklisted = Column(Boolean, nullable=False, default=False)
    qr_code_generated = Column(Boolean, nullable=False, default=False)
    qr_code_data = Column(Text, nullable=True)

    events = relationship(
        "DrugEvent",
        back_populates="drug",
        order_by="DrugEvent.sequence",
        cascade="all, delete-orphan"
    )


class DrugEvent(Base):
    """Lifecycle event row; columns not used by an event kind stay NULL"""
    __tablename__ = "drug_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    batch_number = Column(String(64), ForeignKey("drugs.batch_number"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    event_type = Column(
        Enum(EventType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    timestamp = Column(DateTime(timezone=True), nullable=False)
    entity = Column(String(255), nullable=True)
    from_entity = Column(String(255), nullable=True)
    to_entity = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    price = Column(Float, nullable=True)

    drug = relationship("Drug", back_populates="events")
