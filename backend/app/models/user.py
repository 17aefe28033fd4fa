from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, SmallInteger, String, func
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.core.database import Base


class UserStatus(enum.IntEnum):
    INACTIVE = 0
    ACTIVE = 1
    BLOCKED = 9


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    business_id: Mapped[int] = mapped_column(Integer, nullable=False)
    role_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(150), nullable=False, default="")
    alias: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    # bcrypt hash, or a plaintext value from before hashing was introduced
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    # Stored as a raw code; values outside UserStatus are treated as inactive
    status: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=UserStatus.ACTIVE
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    __table_args__ = (Index("ix_users_business_id", "business_id"),)
