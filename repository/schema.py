# repository/schema.py
"""SQLAlchemy model for the snippets table."""
from datetime import datetime
from sqlalchemy import DateTime, Index, LargeBinary, String
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from core.identifiers import LENGTH


class Base(AsyncAttrs, DeclarativeBase):
    pass


class Snippet(Base):
    __tablename__ = "snippets"
    __table_args__ = (
        # Lookups by id with the liveness predicate
        Index("ix_snippets_id_expires_at", "id", "expires_at"),
    )

    id: Mapped[str] = mapped_column(String(LENGTH), primary_key=True)
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    # Bulk eviction scans this index
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
