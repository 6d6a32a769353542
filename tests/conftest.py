"""Pytest configuration for tafcha tests."""
import os
import tempfile
from pathlib import Path

# Settings are read at import time; give them a throwaway database and keep
# any developer .env out of the picture.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///" + str(Path(tempfile.gettempdir()) / "tafcha-test.sqlite3"),
)

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from core.entities import Entry
from repository.snippet_repository import SqlSnippetRepository
from util.errors import DuplicateIdError

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class InMemorySnippetRepository:
    """Store double honouring the repository contract against a FakeClock."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self.rows: dict[str, Entry] = {}
        self.create_calls: list[str] = []

    async def create(self, snippet_id: str, content: bytes, expires_at: datetime) -> Entry:
        self.create_calls.append(snippet_id)
        # Check-and-insert with no await in between: atomic under asyncio.
        if snippet_id in self.rows:
            raise DuplicateIdError(snippet_id)
        entry = Entry(
            id=snippet_id,
            content=content,
            created_at=self._clock(),
            expires_at=expires_at,
        )
        self.rows[snippet_id] = entry
        return entry

    async def get(self, snippet_id: str) -> Optional[Entry]:
        entry = self.rows.get(snippet_id)
        if entry is None or not entry.is_live(self._clock()):
            return None
        return entry

    async def delete_expired(self) -> int:
        now = self._clock()
        dead = [k for k, e in self.rows.items() if not e.is_live(now)]
        for k in dead:
            del self.rows[k]
        return len(dead)

    async def delete(self, snippet_id: str) -> None:
        self.rows.pop(snippet_id, None)


class ScriptedAllocator:
    """Allocator that hands out a fixed sequence of ids, then falls back."""

    def __init__(self, ids: list[str]) -> None:
        from core.identifiers import IdentifierAllocator

        self._real = IdentifierAllocator()
        self._ids = list(ids)

    def allocate(self) -> str:
        if self._ids:
            return self._ids.pop(0)
        return self._real.allocate()

    def is_well_formed(self, candidate: object) -> bool:
        return self._real.is_well_formed(candidate)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock) -> InMemorySnippetRepository:
    return InMemorySnippetRepository(clock)


@pytest.fixture
async def sql_store(tmp_path, clock):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'snippets.sqlite3'}")
    store = SqlSnippetRepository(engine, timeout_seconds=5.0, clock=clock)
    await store.migrate()
    try:
        yield store
    finally:
        await store.close()
