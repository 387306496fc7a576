"""Timestamps for row mutations."""
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

_TICK = timedelta(microseconds=1)
_lock = threading.Lock()
_last: Optional[datetime] = None


def utcnow() -> datetime:
    """
    Naive UTC now, strictly increasing within the process.

    Two mutations in the same microsecond would otherwise get equal
    updated_at values; the second one is bumped by one tick instead.
    """
    global _last
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    with _lock:
        if _last is not None and now <= _last:
            now = _last + _TICK
        _last = now
    return now
