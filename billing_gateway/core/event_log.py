# billing_gateway/core/event_log.py
from __future__ import annotations
import asyncio
from collections import OrderedDict


class EventLog:
    """
    Bounded in-process record of seen webhook deliveries, keyed by
    (provider, provider_event_id). Oldest entries are evicted first.
    Survives only as long as the process; a durable consumer still has to
    dedupe on providerEventId itself.
    """

    def __init__(self, capacity: int = 10_000):
        self.capacity = capacity
        self._seen: OrderedDict[tuple[str, str], str] = OrderedDict()
        self._lock = asyncio.Lock()

    async def record_if_new(self, *, provider: str, event_id: str, event_type: str) -> bool:
        key = (provider, event_id)
        async with self._lock:
            if key in self._seen:
                self._seen.move_to_end(key)
                return False
            self._seen[key] = event_type
            while len(self._seen) > self.capacity:
                self._seen.popitem(last=False)
            return True

    def __len__(self) -> int:
        return len(self._seen)
