# repository/snippet_repository.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Protocol, TypeVar
from sqlalchemy import delete, insert, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from core.entities import Entry
from repository.schema import Base, Snippet
from util.errors import DuplicateIdError, ExpiryNotInFutureError, StorageIOError
from util.timing import timed

logger = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values; everything stored is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SnippetRepository(Protocol):
    """
    Durable store contract. Reads never observe expired rows, duplicate ids
    raise DuplicateIdError, and every other failure surfaces as StorageIOError.
    """

    async def create(
        self, snippet_id: str, content: bytes, expires_at: datetime
    ) -> Entry: ...

    async def get(self, snippet_id: str) -> Optional[Entry]: ...

    async def delete_expired(self) -> int: ...

    async def delete(self, snippet_id: str) -> None: ...


class SqlSnippetRepository:
    """
    SQLAlchemy-backed store (PostgreSQL via asyncpg, SQLite via aiosqlite).

    - One `now` is captured per call and bound into the statement, so the
      liveness filter runs in the database against a single instant.
    - Uniqueness comes from the primary key, not from application locks.
    - No internal retries; timeouts become StorageIOError.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        timeout_seconds: float = 5.0,
        sweep_timeout_seconds: float = 30.0,
        clock: Clock = utc_now,
    ) -> None:
        self._engine = engine
        self._timeout = timeout_seconds
        self._sweep_timeout = sweep_timeout_seconds
        self._clock = clock

    def _now(self) -> datetime:
        return _as_utc(self._clock())

    async def _bounded(
        self, op: str, call: Callable[[], Awaitable[T]], timeout: float
    ) -> T:
        try:
            return await asyncio.wait_for(call(), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error("store.%s.timeout after=%.1fs", op, timeout)
            raise StorageIOError(f"{op} timed out") from e
        except (SQLAlchemyError, OSError) as e:
            logger.error("store.%s.error err=%s", op, type(e).__name__)
            raise StorageIOError(f"{op} failed") from e

    # ---------------- Schema ----------------

    async def migrate(self) -> None:
        """Create table and indexes if absent. Safe to run on every start."""

        async def _run() -> None:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        await self._bounded("migrate", _run, self._sweep_timeout)
        logger.info("store.migrate.ok")

    async def ping(self) -> None:
        async def _run() -> None:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        await self._bounded("ping", _run, self._timeout)

    async def close(self) -> None:
        await self._engine.dispose()

    # ---------------- Core operations ----------------

    async def create(
        self, snippet_id: str, content: bytes, expires_at: datetime
    ) -> Entry:
        created_at = self._now()
        expires_at = _as_utc(expires_at)
        if expires_at <= created_at:
            raise ExpiryNotInFutureError("expires_at must be later than creation time")

        stmt = insert(Snippet).values(
            id=snippet_id,
            content=content,
            created_at=created_at,
            expires_at=expires_at,
        )

        async def _run() -> None:
            try:
                async with self._engine.begin() as conn:
                    await conn.execute(stmt)
            except IntegrityError as e:
                raise DuplicateIdError(snippet_id) from e

        with timed(logger, "store.create"):
            await self._bounded("create", _run, self._timeout)

        return Entry(
            id=snippet_id,
            content=content,
            created_at=created_at,
            expires_at=expires_at,
        )

    async def get(self, snippet_id: str) -> Optional[Entry]:
        now = self._now()
        stmt = select(
            Snippet.id, Snippet.content, Snippet.created_at, Snippet.expires_at
        ).where(Snippet.id == snippet_id, Snippet.expires_at > now)

        async def _run():
            async with self._engine.connect() as conn:
                return (await conn.execute(stmt)).first()

        with timed(logger, "store.get"):
            row = await self._bounded("get", _run, self._timeout)
        if row is None:
            return None
        return Entry(
            id=row.id,
            content=bytes(row.content),
            created_at=_as_utc(row.created_at),
            expires_at=_as_utc(row.expires_at),
        )

    async def delete_expired(self) -> int:
        now = self._now()
        stmt = delete(Snippet).where(Snippet.expires_at <= now)

        async def _run() -> int:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                return max(int(result.rowcount or 0), 0)

        with timed(logger, "store.delete_expired"):
            count = await self._bounded("delete_expired", _run, self._sweep_timeout)
        if count > 0:
            logger.info("store.delete_expired count=%d", count)
        return count

    async def delete(self, snippet_id: str) -> None:
        stmt = delete(Snippet).where(Snippet.id == snippet_id)

        async def _run() -> None:
            async with self._engine.begin() as conn:
                await conn.execute(stmt)

        await self._bounded("delete", _run, self._timeout)
