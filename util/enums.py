# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class OperationClass(str, Enum):
    WRITE = "write"
    READ = "read"


class RateLimitBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


class ErrorCode(str, Enum):
    EMPTY_CONTENT = "EMPTY_CONTENT"
    CONTENT_TOO_LARGE = "CONTENT_TOO_LARGE"
    INVALID_EXPIRY = "INVALID_EXPIRY"
    EXPIRY_OUT_OF_RANGE = "EXPIRY_OUT_OF_RANGE"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    ALLOCATION_EXHAUSTED = "ALLOCATION_EXHAUSTED"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    """Public message and status per error code. Client-facing text only."""

    EMPTY_CONTENT = ErrorInfo("content cannot be empty", status.HTTP_400_BAD_REQUEST)
    CONTENT_TOO_LARGE = ErrorInfo(
        "content exceeds maximum size", 413
    )
    INVALID_EXPIRY = ErrorInfo(
        "invalid expiry (expected format like 10m, 12h, 3d, 1w)",
        status.HTTP_400_BAD_REQUEST,
    )
    EXPIRY_OUT_OF_RANGE = ErrorInfo(
        "expiry outside allowed range", status.HTTP_400_BAD_REQUEST
    )
    STORAGE_FAILURE = ErrorInfo(
        "an internal error occurred", status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    ALLOCATION_EXHAUSTED = ErrorInfo(
        "an internal error occurred", status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    NOT_FOUND = ErrorInfo("snippet not found or expired", status.HTTP_404_NOT_FOUND)
    RATE_LIMITED = ErrorInfo(
        "rate limit exceeded, please try again later",
        status.HTTP_429_TOO_MANY_REQUESTS,
    )
    INTERNAL_ERROR = ErrorInfo(
        "an internal error occurred", status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    @classmethod
    def for_code(cls, code: ErrorCode) -> ErrorInfo:
        return cls[code.value].value
