"""Session-scoped memo of successful roadmap results."""

from __future__ import annotations

import threading
from typing import Dict, List

from .schemas import RoadmapPeriod


class RoadmapCache:
    """Map a roadmap period to the text of its first successful generation.

    Entries live for the whole session; nothing is evicted.
    """

    def __init__(self) -> None:
        self._entries: Dict[RoadmapPeriod, str] = {}
        self._lock = threading.Lock()

    def get(self, period: RoadmapPeriod) -> str | None:
        with self._lock:
            return self._entries.get(RoadmapPeriod(period))

    def put(self, period: RoadmapPeriod, text: str) -> None:
        if not text or not text.strip():
            raise ValueError("Only non-empty roadmap text can be cached.")
        with self._lock:
            self._entries[RoadmapPeriod(period)] = text

    def periods(self) -> List[RoadmapPeriod]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, period: object) -> bool:
        with self._lock:
            return period in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
