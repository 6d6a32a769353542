# controller/health_controller.py
import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from model.api import HealthResponse
from util.constants import InternalURIs
from util.errors import StoreError

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get(InternalURIs.HEALTHZ, response_model=HealthResponse)
async def healthz() -> HealthResponse:
    return HealthResponse(status="ok")


@health_router.get(InternalURIs.READYZ, response_model=HealthResponse)
async def readyz(request: Request):
    store = request.app.state.store
    ping = getattr(store, "ping", None)
    if ping is not None:
        try:
            await ping()
        except StoreError:
            logger.error("readyz.store.unavailable")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "error", "message": "database unavailable"},
            )
    return HealthResponse(status="ok")
