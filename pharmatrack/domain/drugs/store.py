"""
Drug Store

Keyed in-memory projection of every drug batch with write-through
persistence of the one batch a mutation touched.

The store is built explicitly and owns its lifecycle::

    store = DrugStore(DrugRepository(SessionLocal))
    store.init(seed=build_demo_drugs())
    ...
    store.close()
"""

import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from pharmatrack.core.exceptions import ConflictError, DrugNotFoundError, handle_database_error
from pharmatrack.domain.drugs.models import DrugStatus
from pharmatrack.domain.drugs.pricing import calculate_discounted_price
from pharmatrack.domain.drugs.records import (
    DrugCreate, DrugRecord, DrugStatistics, ManufacturedEvent, RecentSale,
    RecentTransfer, SaleRequest, SoldEvent, TransferRequest, TransferredEvent,
)
from pharmatrack.domain.drugs.repository import DrugRepository
from pharmatrack.domain.drugs.seed import SeedOperation
from pharmatrack.domain.tracking.codec import create_qr_tracking_data, parse_qr_data
from pharmatrack.infrastructure.database import as_utc
from pharmatrack.services.identifiers import generate_batch_number

Clock = Callable[[], datetime]


def _system_clock() -> datetime:
    return datetime.now(timezone.utc)


class DrugStore:
    """Drug batches keyed by batch number"""

    def __init__(self, repository: DrugRepository, clock: Optional[Clock] = None):
        self.repo = repository
        self.clock = clock or _system_clock
        self._drugs: Dict[str, DrugRecord] = {}
        self._lock = threading.RLock()

    # ==================== Lifecycle ====================

    def init(self, seed: Optional[Iterable[SeedOperation]] = None) -> None:
        """Load persisted batches; an empty store replays the seed operations"""
        with self._lock:
            try:
                records = self.repo.load_all()
            except SQLAlchemyError as e:
                raise handle_database_error(e, "loading drug records")
            self._drugs = {r.batch_number: r for r in records}
            logger.info(f"Drug store loaded {len(self._drugs)} batches")

            if seed is not None and not self._drugs:
                for operation in seed:
                    if isinstance(operation, TransferRequest):
                        self.transfer_drug(operation)
                    elif isinstance(operation, SaleRequest):
                        self.sell_drug(operation)
                    else:
                        self.create_drug(operation)
                logger.info(f"Seeded drug store with {len(self._drugs)} demo batches")

    def close(self) -> None:
        with self._lock:
            self._drugs = {}

    def reset(self) -> None:
        """Remove every batch from the store and the database"""
        with self._lock:
            try:
                self.repo.delete_all()
            except SQLAlchemyError as e:
                raise handle_database_error(e, "resetting drug records")
            self._drugs = {}

    def _now(self) -> datetime:
        return as_utc(self.clock())

    def _persist(self, record: DrugRecord, operation: str) -> None:
        try:
            self.repo.save(record)
        except SQLAlchemyError as e:
            raise handle_database_error(e, operation)

    def _commit(self, record: DrugRecord, operation: str) -> DrugRecord:
        """Write a changed copy through, then swap it into the projection"""
        self._persist(record, operation)
        self._drugs[record.batch_number] = record
        return record

    def _snapshot(self) -> List[DrugRecord]:
        with self._lock:
            return list(self._drugs.values())

    def _get_or_raise(self, batch_number: str) -> DrugRecord:
        record = self._drugs.get(batch_number)
        if record is None:
            raise DrugNotFoundError(batch_number)
        return record

    # ==================== Mutations ====================

    def create_drug(self, drug_in: DrugCreate) -> DrugRecord:
        """Register a batch; an existing batch number is overwritten"""
        now = self._now()
        production_date = as_utc(drug_in.production_date)
        expiry_date = as_utc(drug_in.expiry_date)
        is_expired = expiry_date < now

        record = DrugRecord(
            batch_number=drug_in.batch_number or generate_batch_number(),
            drug_name=drug_in.drug_name,
            manufacturer=drug_in.manufacturer,
            composition=drug_in.composition,
            production_date=production_date,
            expiry_date=expiry_date,
            price=drug_in.price or 0,
            current_status=DrugStatus.EXPIRED if is_expired else DrugStatus.MANUFACTURED,
            is_expired=is_expired,
            is_blacklisted=is_expired,
            history=[
                ManufacturedEvent(
                    timestamp=production_date,
                    entity=drug_in.manufacturer,
                    location=drug_in.location,
                )
            ],
        )

        with self._lock:
            self._commit(record, "creating drug")
        logger.info(f"Drug batch {record.batch_number} created by {record.manufacturer}")
        return record

    def transfer_drug(self, transfer: TransferRequest) -> DrugRecord:
        with self._lock:
            current = self._get_or_raise(transfer.batch_number)
            record = current.model_copy(deep=True)
            record.history.append(
                TransferredEvent(
                    timestamp=as_utc(transfer.transfer_date),
                    from_entity=transfer.from_entity,
                    to_entity=transfer.to_entity,
                    location=transfer.location,
                )
            )
            record.current_status = DrugStatus.DISTRIBUTED
            self._commit(record, "transferring drug")
        logger.info(
            f"Drug batch {record.batch_number} transferred {transfer.from_entity} -> {transfer.to_entity}"
        )
        return record

    def sell_drug(self, sale: SaleRequest) -> DrugRecord:
        with self._lock:
            current = self._get_or_raise(sale.batch_number)
            record = current.model_copy(deep=True)
            record.history.append(
                SoldEvent(
                    timestamp=as_utc(sale.sale_date),
                    entity=sale.pharmacy,
                    location=sale.location,
                    price=sale.price,
                )
            )
            record.current_status = DrugStatus.SOLD
            self._commit(record, "selling drug")
        logger.info(f"Drug batch {record.batch_number} sold by {sale.pharmacy} for {sale.price}")
        return record

    def update_expiry_status(self, now: Optional[datetime] = None) -> List[str]:
        """Flag newly expired batches and refresh near-expiry prices"""
        now = as_utc(now) if now else self._now()
        flipped: List[str] = []
        with self._lock:
            for batch_number, current in list(self._drugs.items()):
                if current.is_expired:
                    continue
                record = current.model_copy(deep=True)
                if record.expiry_date < now:
                    record.is_expired = True
                    record.is_blacklisted = True
                    record.current_status = DrugStatus.EXPIRED
                    record.discounted_price = 0
                    flipped.append(batch_number)
                else:
                    record.discounted_price = calculate_discounted_price(
                        record.price, record.expiry_date, now
                    )
                    if record.discounted_price == current.discounted_price:
                        continue
                self._commit(record, "updating expiry status")
        if flipped:
            logger.warning(f"{len(flipped)} drug batches expired: {', '.join(flipped)}")
        return flipped

    def issue_tracking_code(self, batch_number: str) -> DrugRecord:
        """Attach a tracking payload to a batch; each batch gets exactly one"""
        with self._lock:
            current = self._get_or_raise(batch_number)
            if current.qr_code_generated:
                raise ConflictError(
                    message="QR code already generated for this batch",
                    details={"batch_number": batch_number},
                    error_code="QR_ALREADY_ISSUED",
                )
            record = current.model_copy(deep=True)
            payload = create_qr_tracking_data(record, now=self._now())
            record.qr_code_generated = True
            record.qr_code_data = payload.to_json()
            self._commit(record, "issuing tracking code")
        logger.info(f"Tracking code issued for batch {batch_number}")
        return record

    # ==================== Queries ====================

    def calculate_discounted_price(self, record: DrugRecord, now: Optional[datetime] = None) -> float:
        return calculate_discounted_price(record.price, record.expiry_date, as_utc(now) if now else self._now())

    def get_drug_history(self, batch_number: str) -> Optional[DrugRecord]:
        with self._lock:
            return self._drugs.get(batch_number)

    def get_all_drugs(self) -> List[DrugRecord]:
        return self._snapshot()

    def exists(self, batch_number: str) -> bool:
        with self._lock:
            return batch_number in self._drugs

    def get_drug_by_qr(self, payload_text: str) -> Optional[DrugRecord]:
        payload = parse_qr_data(payload_text)
        if payload is None:
            return None
        return self.get_drug_history(payload.batch_number)

    def search_drugs(
        self,
        query: Optional[str] = None,
        status: Optional[DrugStatus] = None,
        manufacturer: Optional[str] = None
    ) -> List[DrugRecord]:
        """Case-insensitive match on batch number, drug name or manufacturer"""
        needle = (query or "").strip().lower()
        results = []
        for record in self._snapshot():
            if status is not None and record.current_status != status:
                continue
            if manufacturer and manufacturer.lower() not in record.manufacturer.lower():
                continue
            if needle and not any(
                needle in field.lower()
                for field in (record.batch_number, record.drug_name, record.manufacturer)
            ):
                continue
            results.append(record)
        return results

    def get_statistics(self) -> DrugStatistics:
        stats = DrugStatistics()
        for record in self._snapshot():
            stats.total += 1
            if record.current_status == DrugStatus.MANUFACTURED:
                stats.manufactured += 1
            elif record.current_status == DrugStatus.DISTRIBUTED:
                stats.distributed += 1
            elif record.current_status == DrugStatus.SOLD:
                stats.sold += 1
            elif record.current_status == DrugStatus.EXPIRED:
                stats.expired += 1
            if record.is_blacklisted:
                stats.blacklisted += 1
            if record.qr_code_generated:
                stats.qr_issued += 1
        return stats

    def recent_sales(self, limit: int = 10) -> List[RecentSale]:
        sales = [
            RecentSale(
                batch_number=record.batch_number,
                drug_name=record.drug_name,
                pharmacy=event.entity,
                location=event.location,
                price=event.price,
                timestamp=event.timestamp,
            )
            for record in self._snapshot()
            for event in record.history
            if isinstance(event, SoldEvent)
        ]
        sales.sort(key=lambda s: s.timestamp, reverse=True)
        return sales[:limit]

    def recent_transfers(self, limit: int = 10) -> List[RecentTransfer]:
        transfers = [
            RecentTransfer(
                batch_number=record.batch_number,
                drug_name=record.drug_name,
                from_entity=event.from_entity,
                to_entity=event.to_entity,
                location=event.location,
                timestamp=event.timestamp,
            )
            for record in self._snapshot()
            for event in record.history
            if isinstance(event, TransferredEvent)
        ]
        transfers.sort(key=lambda t: t.timestamp, reverse=True)
        return transfers[:limit]
