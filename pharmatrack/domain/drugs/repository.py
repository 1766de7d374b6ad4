"""
Drug Repository Layer

Persists drug records one batch at a time. The store owns the in-memory
projection; this layer only loads it at startup and writes through the
single entity a mutation touched.
"""

from typing import Callable, List
from sqlalchemy import delete
from sqlalchemy.orm import Session, selectinload

from pharmatrack.domain.drugs.models import Drug, DrugEvent, EventType
from pharmatrack.domain.drugs.records import (
    DrugRecord, ManufacturedEvent, TransferredEvent, SoldEvent
)
from pharmatrack.infrastructure.database import as_utc


def _event_to_row(event, sequence: int) -> DrugEvent:
    row = DrugEvent(
        sequence=sequence,
        event_type=EventType(event.type),
        timestamp=event.timestamp,
        location=event.location,
    )
    if isinstance(event, TransferredEvent):
        row.from_entity = event.from_entity
        row.to_entity = event.to_entity
    else:
        row.entity = event.entity
    if isinstance(event, SoldEvent):
        row.price = event.price
    return row


def _row_to_event(row: DrugEvent):
    timestamp = as_utc(row.timestamp)
    if row.event_type == EventType.TRANSFERRED:
        return TransferredEvent(
            timestamp=timestamp,
            from_entity=row.from_entity or "",
            to_entity=row.to_entity or "",
            location=row.location or "",
        )
    if row.event_type == EventType.SOLD:
        return SoldEvent(
            timestamp=timestamp,
            entity=row.entity or "",
            location=row.location or "",
            price=row.price or 0,
        )
    return ManufacturedEvent(
        timestamp=timestamp,
        entity=row.entity or "",
        location=row.location or "",
    )


def to_record(drug: Drug) -> DrugRecord:
    return DrugRecord(
        batch_number=drug.batch_number,
        drug_name=drug.drug_name,
        manufacturer=drug.manufacturer,
        composition=drug.composition or "",
        production_date=as_utc(drug.production_date),
        expiry_date=as_utc(drug.expiry_date),
        price=drug.price or 0,
        discounted_price=drug.discounted_price,
        current_status=drug.current_status,
        is_expired=bool(drug.is_expired),
        is_blacklisted=bool(drug.is_blacklisted),
        history=[_row_to_event(row) for row in drug.events],
        qr_code_generated=bool(drug.qr_code_generated),
        qr_code_data=drug.qr_code_data,
    )


class DrugRepository:
    """Repository for drug persistence"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load_all(self) -> List[DrugRecord]:
        """Load every stored batch with its events"""
        with self.session_factory() as db:
            drugs = db.query(Drug).options(selectinload(Drug.events)).all()
            return [to_record(drug) for drug in drugs]

    def save(self, record: DrugRecord) -> None:
        """Upsert one batch and replace its event rows"""
        with self.session_factory() as db:
            try:
                drug = db.get(Drug, record.batch_number)
                if drug is None:
                    drug = Drug(batch_number=record.batch_number)
                    db.add(drug)

                drug.drug_name = record.drug_name
                drug.manufacturer = record.manufacturer
                drug.composition = record.composition
                drug.production_date = record.production_date
                drug.expiry_date = record.expiry_date
                drug.price = record.price
                drug.discounted_price = record.discounted_price
                drug.current_status = record.current_status
                drug.is_expired = record.is_expired
                drug.is_blacklisted = record.is_blacklisted
                drug.qr_code_generated = record.qr_code_generated
                drug.qr_code_data = record.qr_code_data

                drug.events = [
                    _event_to_row(event, sequence)
                    for sequence, event in enumerate(record.history)
                ]
                db.commit()
            except Exception:
                db.rollback()
                raise

    def delete_all(self) -> None:
        """Drop every batch, used by an explicit reset"""
        with self.session_factory() as db:
            db.execute(delete(DrugEvent))
            db.execute(delete(Drug))
            db.commit()
