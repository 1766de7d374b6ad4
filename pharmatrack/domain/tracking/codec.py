"""
QR tracking payload codec.

The payload is a JSON object with camelCase keys::

    {"batchNumber": ..., "drugName": ..., "manufacturer": ...,
     "productionDate": "2024-01-15T00:00:00.000Z",
     "securityHash": ..., "timestamp": 1705276800000}

``securityHash`` is a 32-bit rolling hash over the identifying fields plus a
shared salt. It detects casual edits to a printed code, nothing more.
"""
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pharmatrack.core.config import settings
from pharmatrack.domain.drugs.records import DrugRecord

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class QRTrackingData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    batch_number: str = Field(alias="batchNumber")
    drug_name: str = Field(alias="drugName")
    manufacturer: str
    production_date: str = Field(alias="productionDate")
    security_hash: str = Field(alias="securityHash")
    timestamp: Optional[int] = None

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), separators=(",", ":"))


def to_iso_millis(value: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def security_hash(data: str) -> str:
    """h = h * 31 + code unit over UTF-16 code units, wrapped to signed 32 bits"""
    h = 0
    encoded = data.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(abs(h))


def _hash_input(batch_number: str, drug_name: str, manufacturer: str, production_date: str) -> str:
    return f"{batch_number}|{drug_name}|{manufacturer}|{production_date}" + settings.QR_HASH_SALT


def create_qr_tracking_data(record: DrugRecord, now: Optional[datetime] = None) -> QRTrackingData:
    production_date = to_iso_millis(record.production_date)
    timestamp = int(now.timestamp() * 1000) if now else time.time_ns() // 1_000_000
    return QRTrackingData(
        batch_number=record.batch_number,
        drug_name=record.drug_name,
        manufacturer=record.manufacturer,
        production_date=production_date,
        security_hash=security_hash(
            _hash_input(record.batch_number, record.drug_name, record.manufacturer, production_date)
        ),
        timestamp=timestamp,
    )


def verify_qr_data(payload: QRTrackingData) -> bool:
    expected = security_hash(
        _hash_input(payload.batch_number, payload.drug_name, payload.manufacturer, payload.production_date)
    )
    return payload.security_hash == expected


def parse_qr_data(text: Any) -> Optional[QRTrackingData]:
    """Decode and verify a scanned payload; None when it is unusable"""
    try:
        raw = json.loads(text)
    except (TypeError, ValueError):
        logger.debug("QR payload is not valid JSON")
        return None
    if not isinstance(raw, dict):
        return None

    required = ("batchNumber", "drugName", "manufacturer", "productionDate", "securityHash")
    if not all(isinstance(raw.get(key), str) and raw.get(key) for key in required):
        return None

    try:
        payload = QRTrackingData.model_validate(raw)
    except ValidationError:
        return None

    if not verify_qr_data(payload):
        logger.warning(f"QR integrity check failed for batch {payload.batch_number}")
        return None
    return payload
