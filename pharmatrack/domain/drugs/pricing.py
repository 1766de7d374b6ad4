import math
from datetime import datetime

from pharmatrack.infrastructure.database import as_utc

SECONDS_PER_DAY = 24 * 60 * 60

# (max days to expiry, fraction of list price), checked in order
DISCOUNT_TIERS = (
    (30, 0.5),
    (60, 0.7),
    (90, 0.85),
)


def days_until_expiry(expiry_date: datetime, now: datetime) -> int:
    """Whole days left, partial days rounded up"""
    delta = as_utc(expiry_date) - as_utc(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_discounted_price(price: float, expiry_date: datetime, now: datetime) -> float:
    """Near-expiry price; 0 means the batch is no longer for sale"""
    days = days_until_expiry(expiry_date, now)
    if days <= 0:
        return 0
    for max_days, fraction in DISCOUNT_TIERS:
        if days <= max_days:
            return round_half_up(price * fraction)
    return price
