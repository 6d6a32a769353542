# controller/snippet_controller.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from config.settings import settings
from model.api import PublishResponse
from service.publication_service import PublicationService
from util.constants import Headers, InternalURIs, PLAIN_TEXT
from util.enums import ErrorCode, ErrorMessage
from util.errors import AppError
from controller.controller_dependencies import (
    admit_read,
    admit_write,
    get_publication_service,
    read_snippet_body,
)

snippet_router = APIRouter()


@snippet_router.post(
    InternalURIs.ROOT,
    response_model=PublishResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(admit_write)],
)
async def create_snippet(
    expiry: Optional[str] = Query(default=None),
    content: bytes = Depends(read_snippet_body),
    service: PublicationService = Depends(get_publication_service),
) -> PublishResponse:
    result = await service.publish(content, expiry)
    return PublishResponse(
        id=result.id,
        url=f"{settings.BASE_URL.rstrip('/')}/{result.id}",
        expires_at=result.expires_at,
    )


@snippet_router.get(InternalURIs.SNIPPET, dependencies=[Depends(admit_read)])
async def get_snippet(
    snippet_id: str,
    service: PublicationService = Depends(get_publication_service),
) -> Response:
    content = await service.retrieve(snippet_id)
    if content is None:
        # Same answer for malformed, unknown and expired ids.
        info = ErrorMessage.for_code(ErrorCode.NOT_FOUND)
        raise AppError(info.message, info.http_status, code=ErrorCode.NOT_FOUND)
    return Response(content=content, media_type=PLAIN_TEXT, headers=Headers.NOSNIFF)
