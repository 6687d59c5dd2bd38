"""Simple in-memory store for active journey sessions."""

from __future__ import annotations

import uuid
from typing import Dict, Optional

from .config import Settings
from .journey import JourneySession
from .llm import TextProvider


class SessionMemory:
    """Hold journey sessions for the lifetime of the process."""

    def __init__(self) -> None:
        self._store: Dict[str, JourneySession] = {}

    def create(
        self,
        *,
        provider: Optional[TextProvider] = None,
        settings: Optional[Settings] = None,
    ) -> JourneySession:
        """Start a new session with a fresh intake."""

        session_id = uuid.uuid4().hex
        session = JourneySession(session_id, provider=provider, settings=settings)
        self._store[session_id] = session
        return session

    def get(self, session_id: str) -> Optional[JourneySession]:
        return self._store.get(session_id)

    def discard(self, session_id: str) -> bool:
        return self._store.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._store)
