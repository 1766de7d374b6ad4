"""
QR Tracking Service Layer

Scan history for verified tracking payloads: newest first, capped, with
repeated reads of the same code collapsed into one entry.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from pharmatrack.core.config import settings
from pharmatrack.domain.tracking.codec import QRTrackingData
from pharmatrack.domain.tracking.models import QRScan
from pharmatrack.infrastructure.database import as_utc
from pharmatrack.services.identifiers import generate_scan_id


class ScanHistoryRepository:
    """Repository for QR scan rows"""

    def __init__(self, db: Session):
        self.db = db

    def latest(self) -> Optional[QRScan]:
        return self.db.query(QRScan).order_by(QRScan.scanned_at.desc()).first()

    def list(self, limit: int) -> List[QRScan]:
        return self.db.query(QRScan).order_by(QRScan.scanned_at.desc()).limit(limit).all()

    def add(self, scan: QRScan) -> QRScan:
        self.db.add(scan)
        self.db.flush()
        return scan

    def trim(self, keep: int) -> int:
        """Delete everything older than the newest ``keep`` scans"""
        stale = (
            self.db.query(QRScan.scan_id)
            .order_by(QRScan.scanned_at.desc())
            .offset(keep)
            .all()
        )
        ids = [row.scan_id for row in stale]
        if ids:
            self.db.query(QRScan).filter(QRScan.scan_id.in_(ids)).delete(synchronize_session=False)
        return len(ids)

    def clear(self) -> int:
        return self.db.query(QRScan).delete(synchronize_session=False)


class ScanHistoryService:
    """Service layer for QR scan history"""

    def __init__(self, db: Session, limit: Optional[int] = None, dedup_seconds: Optional[float] = None):
        self.db = db
        self.repo = ScanHistoryRepository(db)
        self.limit = limit if limit is not None else settings.QR_SCAN_HISTORY_LIMIT
        self.dedup_window = timedelta(
            seconds=dedup_seconds if dedup_seconds is not None else settings.QR_SCAN_DEDUP_SECONDS
        )

    def record_scan(
        self,
        payload: QRTrackingData,
        scanned_by: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Optional[QRScan]:
        """Store a verified scan; returns None when it repeats the previous one"""
        now = as_utc(now) if now else datetime.now(timezone.utc)

        previous = self.repo.latest()
        if (
            previous is not None
            and previous.batch_number == payload.batch_number
            and now - as_utc(previous.scanned_at) < self.dedup_window
        ):
            logger.debug(f"Duplicate scan of {payload.batch_number} suppressed")
            return None

        scan = self.repo.add(QRScan(
            scan_id=generate_scan_id(now),
            batch_number=payload.batch_number,
            drug_name=payload.drug_name,
            manufacturer=payload.manufacturer,
            production_date=payload.production_date,
            security_hash=payload.security_hash,
            payload_timestamp=payload.timestamp,
            scanned_by=scanned_by,
            notes=notes,
            scanned_at=now,
        ))
        removed = self.repo.trim(self.limit)
        self.db.commit()

        logger.info(f"QR scan {scan.scan_id} recorded for batch {scan.batch_number}")
        if removed:
            logger.debug(f"Dropped {removed} old scans beyond the history limit")
        return scan

    def get_history(self) -> List[QRScan]:
        return self.repo.list(self.limit)

    def clear_history(self) -> int:
        removed = self.repo.clear()
        self.db.commit()
        logger.info(f"Cleared {removed} QR scans")
        return removed
