"""Column types shared by the models."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, TypeDecorator

from backend.core.clock import ensure_utc

# Integer primary keys are signed 64-bit on every supported backend.
MAX_ID = 2**63 - 1


def is_storable_id(value: int) -> bool:
    return 1 <= value <= MAX_ID


class UTCDateTime(TypeDecorator):
    """
    Stores instants as naive UTC and hands them back as aware UTC datetimes.

    SQLite drops the offset of timezone-aware values, so everything is
    converted to UTC on the way in and tagged as UTC on the way out. Equal
    instants therefore always produce equal stored values, which the slot
    uniqueness index relies on.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        return ensure_utc(value).replace(tzinfo=None)

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return ensure_utc(value)
