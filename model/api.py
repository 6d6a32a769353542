# model/api.py
from datetime import datetime
from pydantic import BaseModel


class PublishResponse(BaseModel):
    id: str
    url: str
    expires_at: datetime


class ApiError(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ApiError


class HealthResponse(BaseModel):
    status: str
    message: str | None = None
