from sqlalchemy import Column, String, DateTime, BigInteger, Text
from pharmatrack.infrastructure.database import Base, utcnow


class QRScan(Base):
    """A verified tracking payload scanned by a customer"""
    __tablename__ = "qr_scans"

    scan_id = Column(String(64), primary_key=True)
    batch_number = Column(String(64), nullable=False, index=True)
    drug_name = Column(String(255), nullable=False)
    manufacturer = Column(String(255), nullable=False)
    production_date = Column(String(32), nullable=False)  # as printed in the payload
    security_hash = Column(String(16), nullable=False)
    payload_timestamp = Column(BigInteger)
    scanned_by = Column(String(255))
    notes = Column(Text)
    scanned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
