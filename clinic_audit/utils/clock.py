"""
Time source for expiry checks.

Services accept an optional ``now`` and fall back to :func:`utcnow`, so tests
can pin the clock without patching.
"""
from datetime import datetime, timezone


def utcnow():
    """Current UTC time as a naive datetime (the database stores naive UTC)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
