# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox_auth.infrastructure.db.session import Base

USERS_EMAIL_CONSTRAINT = "users_uc_email"


class UserRow(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name=USERS_EMAIL_CONSTRAINT),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )


class SessionRow(Base):
    __tablename__ = "sessions"
    __table_args__ = (Index("sessions_expiry_idx", "expiry"),)
    token: Mapped[str] = mapped_column(String(43), primary_key=True)
    # JSON-encoded attribute map
    data: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    expiry: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
