"""In-memory event sink."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from ..config import TelemetryConfig
from .base import EventSink, Session


class InMemoryEventSink(EventSink):
    """Keeps recorded events in a list, in emission order."""

    def __init__(
        self,
        config: Optional[TelemetryConfig] = None,
        session: Optional[Session] = None,
        *,
        with_session: bool = True,
    ) -> None:
        self.config = config or TelemetryConfig()
        if session is None and with_session:
            session = Session(session_id=str(uuid4()))
        self.session = session
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def record(self, event_type: str, payload: Dict[str, Any]) -> None:
        self.events.append((event_type, payload))

    def get_session(self) -> Optional[Session]:
        return self.session

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [payload for kind, payload in self.events if kind == event_type]

    def clear(self) -> None:
        self.events.clear()
