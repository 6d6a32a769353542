# main.py
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional
import routes
from config.cache import close_redis, get_redis
from config.database import create_engine
from config.settings import settings
from core.admission import (
    AdmissionController,
    InMemoryAdmissionController,
    RateLimitConfig,
    RedisAdmissionController,
)
from core.identifiers import IdentifierAllocator
from core.sweeper import EvictionSweeper
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from model.api import ApiError, ErrorResponse
from repository.snippet_repository import SnippetRepository, SqlSnippetRepository
from service.publication_service import PublicationService
from starlette.middleware.cors import CORSMiddleware
from util.enums import Color, Environment, ErrorMessage, OperationClass, RateLimitBackend
from util.errors import AppError, PublicationError
from util.logger import init_logger

logger = logging.getLogger(__name__)


def _limits() -> dict[OperationClass, RateLimitConfig]:
    window = settings.RATE_LIMIT_WINDOW_SECONDS
    return {
        OperationClass.WRITE: RateLimitConfig(settings.WRITE_RATE_LIMIT, window),
        OperationClass.READ: RateLimitConfig(settings.READ_RATE_LIMIT, window),
    }


async def _build_admission() -> AdmissionController:
    if settings.RATE_LIMIT_BACKEND == RateLimitBackend.REDIS:
        return RedisAdmissionController(await get_redis(), _limits())
    return InMemoryAdmissionController(_limits())


def _error_body(code: str, message: str) -> dict:
    return ErrorResponse(error=ApiError(code=code, message=message)).model_dump()


def create_app(
    *,
    store: Optional[SnippetRepository] = None,
    admission: Optional[AdmissionController] = None,
) -> FastAPI:
    """
    Build the ASGI app. `store` / `admission` replace the configured backends
    (tests pass doubles here); otherwise they are created in the lifespan.
    """

    @asynccontextmanager
    async def lifespan(fastApi: FastAPI):
        init_logger()
        print(f"{Color.GREEN}Initializing...{Color.RESET}")
        owned_store: Optional[SqlSnippetRepository] = None
        try:
            the_store = store
            if the_store is None:
                owned_store = SqlSnippetRepository(
                    create_engine(settings),
                    timeout_seconds=settings.STORE_TIMEOUT_SECONDS,
                    sweep_timeout_seconds=settings.SWEEP_TIMEOUT_SECONDS,
                )
                await owned_store.migrate()
                the_store = owned_store

            fastApi.state.store = the_store
            fastApi.state.admission = admission or await _build_admission()
            fastApi.state.publication_service = PublicationService(
                the_store,
                IdentifierAllocator(),
                max_content_size=settings.MAX_CONTENT_SIZE,
                default_expiry=settings.DEFAULT_EXPIRY,
                min_expiry=settings.MIN_EXPIRY,
                max_expiry=settings.MAX_EXPIRY,
                max_attempts=settings.ID_ALLOCATION_ATTEMPTS,
            )
            sweeper = EvictionSweeper(the_store, settings.SWEEP_INTERVAL_SECONDS)
            fastApi.state.sweeper = sweeper
            sweeper.start()
            print(f"{Color.BLUE}Server Started{Color.RESET}")
        except Exception:
            logger.error("startup.failed", exc_info=True)
            if owned_store is not None:
                await owned_store.close()
            await close_redis()
            raise

        try:
            yield
        finally:
            await sweeper.stop()
            if owned_store is not None:
                await owned_store.close()
            try:
                await close_redis()
            except Exception as e:
                logger.error("shutdown.redis.error err=%s", type(e).__name__)

            print(f"{Color.RED}Server Shutdown{Color.RESET}")

    app = FastAPI(title="tafcha", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ALLOWED_ORIGIN],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Accept"],
        expose_headers=["Retry-After"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        t0 = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "http.request method=%s path=%s status=%d ms=%d",
            request.method,
            request.url.path,
            response.status_code,
            int((time.perf_counter() - t0) * 1000),
        )
        return response

    @app.exception_handler(PublicationError)
    async def publication_error_handler(request: Request, exc: PublicationError):
        info = ErrorMessage.for_code(exc.code)
        # 5xx details stay in the logs
        message = info.message if info.http_status >= 500 else exc.message
        return JSONResponse(
            status_code=info.http_status, content=_error_body(exc.code.value, message)
        )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code.value, str(exc.detail)),
            headers=exc.headers,
        )

    routes.register_routes(app)
    return app


app: FastAPI = create_app()


def serve() -> None:
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=reload)


if __name__ == "__main__":
    serve()
