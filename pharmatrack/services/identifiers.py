"""
Identifier generation for batches, workflow records, deliveries and QR scans.

Formats:
- batch numbers:    BATCH-1A2B3C4D
- record ids:       ORD-1717171717171-k3f9
- tracking numbers: TRK-1717171717171-2024
- scan ids:         scan_1717171717171_x8k2m0q1z
"""
import secrets
import string
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

_ALPHABET = string.ascii_lowercase + string.digits


def _epoch_ms(now: Optional[datetime] = None) -> int:
    if now is None:
        return time.time_ns() // 1_000_000
    return int(now.timestamp() * 1000)


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_batch_number() -> str:
    return f"BATCH-{uuid.uuid4().hex[:8].upper()}"


def generate_record_id(prefix: str, now: Optional[datetime] = None) -> str:
    """Prefixed id, unique even when two records land in the same millisecond."""
    return f"{prefix}-{_epoch_ms(now)}-{_random_suffix(4)}"


def generate_tracking_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"TRK-{_epoch_ms(now)}-{now.year}"


def generate_scan_id(now: Optional[datetime] = None) -> str:
    return f"scan_{_epoch_ms(now)}_{_random_suffix(9)}"
