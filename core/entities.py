# core/entities.py
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Entry:
    """
    One stored snippet. `content` is opaque bytes; the core never decodes it.
    """

    id: str
    content: bytes
    created_at: datetime
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at

    def __repr__(self) -> str:
        # keep payloads out of logs and tracebacks
        return (
            f"Entry(id={self.id!r}, size={len(self.content)}, "
            f"created_at={self.created_at.isoformat()}, "
            f"expires_at={self.expires_at.isoformat()})"
        )


@dataclass(frozen=True)
class PublishResult:
    id: str
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Decision:
    allowed: bool
    retry_after: float = 0.0  # seconds until the window resets; 0 when allowed
