from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from pharmatrack.domain.drugs.records import DrugRecord


class QRCodeResponse(BaseModel):
    batch_number: str
    qr_code_data: str
    image: str = Field(..., description="PNG data URL")
    filename: str


class PayloadRequest(BaseModel):
    """Decoded QR text as read by the scanner"""
    payload: str = Field(..., min_length=1)
    notes: Optional[str] = None


class VerifyResponse(BaseModel):
    valid: bool
    batch_number: Optional[str] = None
    drug: Optional[DrugRecord] = None


class ScanRecordResponse(BaseModel):
    scan_id: str
    batch_number: str
    drug_name: str
    manufacturer: str
    production_date: str
    security_hash: str
    payload_timestamp: Optional[int] = None
    scanned_by: Optional[str] = None
    notes: Optional[str] = None
    scanned_at: datetime

    class Config:
        from_attributes = True


class ScanResponse(BaseModel):
    drug: DrugRecord
    duplicate: bool
    scan: Optional[ScanRecordResponse] = None


class ClearHistoryResponse(BaseModel):
    cleared: int
