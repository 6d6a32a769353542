# controller/controller_dependencies.py
import math
from fastapi import Request
from config.settings import settings
from core.admission import AdmissionController
from service.publication_service import PublicationService
from util.constants import Headers
from util.enums import ErrorCode, ErrorMessage, OperationClass
from util.errors import AppError, ContentTooLargeError


def get_publication_service(request: Request) -> PublicationService:
    return request.app.state.publication_service


def get_admission_controller(request: Request) -> AdmissionController:
    return request.app.state.admission


def client_key(request: Request) -> str:
    if settings.TRUST_PROXY:
        fwd = request.headers.get(Headers.FORWARDED_FOR)
        if fwd:
            return fwd.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def _admit(request: Request, op: OperationClass) -> None:
    decision = await get_admission_controller(request).allow(client_key(request), op)
    if decision.allowed:
        return
    info = ErrorMessage.for_code(ErrorCode.RATE_LIMITED)
    raise AppError(
        info.message,
        info.http_status,
        code=ErrorCode.RATE_LIMITED,
        headers={Headers.RETRY_AFTER: str(max(1, math.ceil(decision.retry_after)))},
    )


async def admit_write(request: Request) -> None:
    await _admit(request, OperationClass.WRITE)


async def admit_read(request: Request) -> None:
    await _admit(request, OperationClass.READ)


async def read_snippet_body(request: Request) -> bytes:
    max_bytes = get_publication_service(request).max_content_size

    # Fast pre-check via Content-Length if present
    cl = request.headers.get(Headers.CONTENT_LENGTH)
    if cl and cl.isdigit() and int(cl) > max_bytes:
        raise ContentTooLargeError("content exceeds maximum size")

    # Hard cap while streaming (works even if no Content-Length)
    buf = bytearray()
    async for chunk in request.stream():
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise ContentTooLargeError("content exceeds maximum size")
    return bytes(buf)
