"""One-time numeric PINs used to verify a new account's email address."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

PIN_NOT_GENERATED = "PIN not generated"
PIN_EXPIRED = "PIN expired"
PIN_INVALID = "Invalid PIN"

DEFAULT_PIN_LENGTH = 6
DEFAULT_PIN_TTL = timedelta(minutes=5)


@dataclass(frozen=True)
class PinValidation:
    valid: bool
    reason: str | None = None


def generate_pin(length: int = DEFAULT_PIN_LENGTH) -> str:
    """Return a numeric code of ``length`` digits drawn from a CSPRNG."""

    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware inserts
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_pin_expired(
    pin_created_at: datetime | None,
    now: datetime | None = None,
    ttl: timedelta = DEFAULT_PIN_TTL,
) -> bool:
    if pin_created_at is None:
        return True
    now = _as_utc(now or datetime.now(timezone.utc))
    return now > _as_utc(pin_created_at) + ttl


def validate_pin(
    stored_pin: str | None,
    supplied_pin: str,
    pin_created_at: datetime | None,
    now: datetime | None = None,
    ttl: timedelta = DEFAULT_PIN_TTL,
) -> PinValidation:
    """Check a supplied PIN against the stored one.

    The checks run in a fixed order so callers always get the most specific
    reason: a missing timestamp, then expiry, then a mismatch.
    """

    if pin_created_at is None:
        return PinValidation(False, PIN_NOT_GENERATED)
    if is_pin_expired(pin_created_at, now=now, ttl=ttl):
        return PinValidation(False, PIN_EXPIRED)
    if not stored_pin or not secrets.compare_digest(stored_pin.encode(), supplied_pin.encode()):
        return PinValidation(False, PIN_INVALID)
    return PinValidation(True)
