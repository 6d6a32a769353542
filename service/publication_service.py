# service/publication_service.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from core import expiry
from core.entities import PublishResult
from core.identifiers import IdentifierAllocator
from repository.snippet_repository import SnippetRepository
from util.errors import (
    AllocationExhaustedError,
    ContentTooLargeError,
    DuplicateIdError,
    EmptyContentError,
    ExpiryOutOfRange,
    ExpiryOutOfRangeError,
    InvalidDurationFormat,
    InvalidExpiryError,
    StorageFailureError,
    StoreError,
)

logger = logging.getLogger(__name__)


class PublicationService:
    """
    Write and read paths over the snippet store.

    publish: size check -> expiry -> allocate id + create, retrying on
    duplicate ids up to `max_attempts` times.
    retrieve: malformed id, unknown id and expired id all come back as None.
    """

    def __init__(
        self,
        store: SnippetRepository,
        allocator: IdentifierAllocator,
        *,
        max_content_size: int,
        default_expiry: timedelta,
        min_expiry: timedelta,
        max_expiry: timedelta,
        max_attempts: int = 3,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._allocator = allocator
        self._max_content_size = max_content_size
        self._default_expiry = default_expiry
        self._min_expiry = min_expiry
        self._max_expiry = max_expiry
        self._max_attempts = max_attempts
        self._clock = clock

    @property
    def max_content_size(self) -> int:
        return self._max_content_size

    def _lifetime(self, expiry_text: Optional[str]) -> timedelta:
        try:
            return expiry.resolve(
                expiry_text, self._default_expiry, self._min_expiry, self._max_expiry
            )
        except InvalidDurationFormat as e:
            raise InvalidExpiryError(str(e)) from e
        except ExpiryOutOfRange as e:
            logger.info("publish.rejected reason=expiry_%s limit=%s", e.bound, e.limit)
            raise ExpiryOutOfRangeError(str(e)) from e

    async def publish(
        self, content: bytes, expiry_text: Optional[str] = None
    ) -> PublishResult:
        if not content:
            raise EmptyContentError("content cannot be empty")
        if len(content) > self._max_content_size:
            raise ContentTooLargeError(
                f"content exceeds maximum size of {self._max_content_size} bytes"
            )

        lifetime = self._lifetime(expiry_text)
        expires_at = self._clock() + lifetime

        for attempt in range(1, self._max_attempts + 1):
            snippet_id = self._allocator.allocate()
            try:
                entry = await self._store.create(snippet_id, content, expires_at)
            except DuplicateIdError:
                logger.warning(
                    "publish.collision attempt=%d/%d", attempt, self._max_attempts
                )
                continue
            except StoreError as e:
                logger.error("publish.persist.error err=%s", type(e).__name__)
                raise StorageFailureError("failed to store snippet") from e

            logger.info(
                "publish.ok id=%s bytes=%d expires_at=%s",
                entry.id,
                len(content),
                entry.expires_at.isoformat(),
            )
            return PublishResult(
                id=entry.id, created_at=entry.created_at, expires_at=entry.expires_at
            )

        logger.error("publish.allocation.exhausted attempts=%d", self._max_attempts)
        raise AllocationExhaustedError(
            f"no free id after {self._max_attempts} attempts"
        )

    async def retrieve(self, snippet_id: str) -> Optional[bytes]:
        if not self._allocator.is_well_formed(snippet_id):
            logger.debug("retrieve.miss reason=shape")
            return None
        try:
            entry = await self._store.get(snippet_id)
        except StoreError as e:
            logger.error("retrieve.fetch.error err=%s", type(e).__name__)
            raise StorageFailureError("failed to fetch snippet") from e
        if entry is None:
            logger.debug("retrieve.miss id=%s", snippet_id)
            return None
        logger.info("retrieve.hit id=%s bytes=%d", entry.id, len(entry.content))
        return entry.content

    async def delete(self, snippet_id: str) -> None:
        """Administrative removal. Unknown or malformed ids are a no-op."""
        if not self._allocator.is_well_formed(snippet_id):
            return
        try:
            await self._store.delete(snippet_id)
        except StoreError as e:
            raise StorageFailureError("failed to delete snippet") from e
        logger.info("delete.ok id=%s", snippet_id)
