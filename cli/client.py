# cli/client.py
from datetime import datetime
from typing import Optional
import httpx
from pydantic import ValidationError
from model.api import ErrorResponse, PublishResponse


class ClientError(Exception):
    pass


class SnippetNotFound(ClientError):
    pass


class TafchaClient:
    """Thin HTTP client for the publishing API. No store logic lives here."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout, connect=min(timeout, 10.0))
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)

    def create(self, content: bytes, expiry: Optional[str] = None) -> PublishResponse:
        params = {"expiry": expiry} if expiry else None
        try:
            with self._client() as client:
                res = client.post(
                    self._base_url + "/",
                    content=content,
                    params=params,
                    headers={"Content-Type": "text/plain"},
                )
        except httpx.RequestError as e:
            raise ClientError(f"sending request: {e}") from e

        if res.status_code != httpx.codes.CREATED:
            raise ClientError(_describe_failure(res))
        try:
            return PublishResponse.model_validate_json(res.content)
        except ValidationError as e:
            raise ClientError("parsing response: unexpected payload") from e

    def get(self, snippet_id: str) -> bytes:
        try:
            with self._client() as client:
                res = client.get(f"{self._base_url}/{snippet_id}")
        except httpx.RequestError as e:
            raise ClientError(f"sending request: {e}") from e

        if res.status_code == httpx.codes.NOT_FOUND:
            raise SnippetNotFound("snippet not found or expired")
        if res.status_code != httpx.codes.OK:
            raise ClientError(_describe_failure(res))
        return res.content


def _describe_failure(res: httpx.Response) -> str:
    try:
        err = ErrorResponse.model_validate_json(res.content).error
        if err.message:
            return f"API error ({err.code}): {err.message}"
    except ValidationError:
        pass
    return f"unexpected status {res.status_code}: {res.text}"


def format_local(ts: datetime) -> str:
    return ts.astimezone().strftime("%Y-%m-%d %H:%M:%S")
