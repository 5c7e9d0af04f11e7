"""Base event sink interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config import TelemetryConfig


@dataclass
class Session:
    """The user session telemetry is attributed to."""

    session_id: str
    record: bool = True


class EventSink(ABC):
    """Collaborator that receives events produced by the interceptors."""

    config: TelemetryConfig

    @abstractmethod
    def record(self, event_type: str, payload: Dict[str, Any]) -> None:
        """Accept one event for later delivery."""

    @abstractmethod
    def get_session(self) -> Optional[Session]:
        """Return the active session, if any."""

    async def close(self) -> None:
        """Close sink resources if needed."""
