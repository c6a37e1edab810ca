"""Clock source for the pool.

All instants stored and compared by the pool are naive UTC datetimes.
"""
from __future__ import annotations

import datetime

EPOCH = datetime.datetime(1970, 1, 1)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def from_epoch_ms(value: int) -> datetime.datetime:
    return EPOCH + datetime.timedelta(milliseconds=value)
