"""Temporary credential datatypes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..utils.time import utc_now


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating a trailing ``Z`` and naive values as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Credentials:
    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: datetime

    def expired(self, now: Optional[datetime] = None) -> bool:
        return self.expiration <= (now or utc_now())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessKeyId": self.access_key_id,
            "secretAccessKey": self.secret_access_key,
            "sessionToken": self.session_token,
            "expiration": self.expiration.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Credentials":
        return cls(
            access_key_id=payload["accessKeyId"],
            secret_access_key=payload["secretAccessKey"],
            session_token=payload["sessionToken"],
            expiration=parse_timestamp(payload["expiration"]),
        )
