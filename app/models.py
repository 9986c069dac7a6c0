"""SQLAlchemy ORM models for the URL shortener application.

Data Model Layout
=================
::
    urls table
    ├─ id (BIGINT PRIMARY KEY, auto-increment, never exposed)
    ├─ code (VARCHAR(10) UNIQUE, INDEXED)
    ├─ long_url (TEXT NOT NULL)
    ├─ created_at (TIMESTAMPTZ, DEFAULT NOW())
    └─ hits (INTEGER DEFAULT 0)

Key Behaviours
===============
- code is unique; the constraint is the only guard against duplicate codes.
- created_at is set by the database and never updated.
- hits is the only mutable column, bumped with an atomic UPDATE.
- long_url is stored verbatim without length limits.

Classes:
    URL:  Represents a shortened URL mapping with its hit counter.
"""

import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

__all__ = ["URL", "CODE_MAX_LENGTH"]

CODE_MAX_LENGTH = 10


class URL(Base):
    __tablename__ = "urls"

    # SQLite only auto-increments INTEGER primary keys.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    code: Mapped[str] = mapped_column(String(CODE_MAX_LENGTH), unique=True, index=True, nullable=False)
    long_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    hits: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    def __repr__(self) -> str:
        return f"<URL(id={self.id}, code='{self.code}', hits={self.hits})>"
