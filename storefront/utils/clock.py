"""Wall-clock helper.

Timestamps are stored as naive UTC datetimes so they compare the same way on
every database backend.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
