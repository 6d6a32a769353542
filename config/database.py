# config/database.py
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from config.settings import Settings


def async_url(url: str) -> str:
    """Map plain DSNs (postgres://, postgresql://, sqlite://) onto async drivers."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]
    parsed = make_url(url)
    if parsed.drivername == "postgresql":
        parsed = parsed.set(drivername="postgresql+asyncpg")
    elif parsed.drivername == "sqlite":
        parsed = parsed.set(drivername="sqlite+aiosqlite")
    return parsed.render_as_string(hide_password=False)


def create_engine(settings: Settings) -> AsyncEngine:
    url = async_url(settings.DATABASE_URL)
    if make_url(url).get_backend_name() == "sqlite":
        # SQLite picks its own pool; sizing knobs do not apply.
        return create_async_engine(url)
    return create_async_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE_SECONDS,
        pool_timeout=settings.STORE_TIMEOUT_SECONDS,
        pool_pre_ping=True,
    )
