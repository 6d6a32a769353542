# util/errors.py
from fastapi import HTTPException, status
from util.enums import ErrorCode


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self,
        message: str,
        http_status: int = status.HTTP_400_BAD_REQUEST,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=http_status, detail=message, headers=headers)
        self.code = code


class TafchaError(Exception):
    """Base for every error raised by the core."""


# ---------------- Store ----------------


class StoreError(TafchaError):
    pass


class DuplicateIdError(StoreError):
    """The id is already held by a row in the store."""

    def __init__(self, snippet_id: str) -> None:
        super().__init__(f"duplicate snippet id {snippet_id}")
        self.snippet_id = snippet_id


class StorageIOError(StoreError):
    """Opaque connectivity, constraint or timeout failure of the durable medium."""


class ExpiryNotInFutureError(StoreError):
    """expires_at is not later than the creation instant the store stamped."""


# ---------------- Expiry ----------------


class ExpiryError(TafchaError):
    pass


class InvalidDurationFormat(ExpiryError):
    code = "INVALID_DURATION_FORMAT"


class ExpiryOutOfRange(ExpiryError):
    def __init__(self, message: str, bound: str, limit: str) -> None:
        super().__init__(message)
        self.bound = bound
        self.limit = limit


# ---------------- Publication ----------------


class PublicationError(TafchaError):
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code.value)
        self.message = message or self.code.value


class EmptyContentError(PublicationError):
    code = ErrorCode.EMPTY_CONTENT


class ContentTooLargeError(PublicationError):
    code = ErrorCode.CONTENT_TOO_LARGE


class InvalidExpiryError(PublicationError):
    code = ErrorCode.INVALID_EXPIRY


class ExpiryOutOfRangeError(PublicationError):
    code = ErrorCode.EXPIRY_OUT_OF_RANGE


class StorageFailureError(PublicationError):
    code = ErrorCode.STORAGE_FAILURE


class AllocationExhaustedError(PublicationError):
    code = ErrorCode.ALLOCATION_EXHAUSTED
