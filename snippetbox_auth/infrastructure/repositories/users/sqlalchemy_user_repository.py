# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import exists
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from snippetbox_auth.domain.users.entities import CredentialRecord
from snippetbox_auth.domain.users.entities import User as DomainUser
from snippetbox_auth.domain.users.exceptions import (
    ConcurrentRotationError,
    DuplicateEmailError,
    NoSuchRecordError,
)
from snippetbox_auth.domain.users.repositories import UserRepository
from snippetbox_auth.infrastructure.db.models import USERS_EMAIL_CONSTRAINT, UserRow
from snippetbox_auth.infrastructure.db.session import Database
from snippetbox_auth.shared.errors import StoreUnavailableError
from snippetbox_auth.shared.logging import logger


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively; the stored form is case-folded."""
    return email.strip().casefold()


def as_utc(value: datetime) -> datetime:
    # SQLite hands timezone-aware columns back naive
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _is_email_constraint(exc: IntegrityError) -> bool:
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == USERS_EMAIL_CONSTRAINT
    message = str(exc.orig)
    # MySQL/MariaDB name the key, SQLite names the column
    return USERS_EMAIL_CONSTRAINT in message or "users.email" in message


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
        logger.error(f"store.{operation}: backend unavailable ({type(exc).__name__})")
        raise StoreUnavailableError(type(exc).__name__) from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            logger.error(f"store.{operation}: connection invalidated")
            raise StoreUnavailableError("connection invalidated") from exc
        raise


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    def insert(self, name: str, email: str, hashed_password: str) -> int:
        try:
            with translate_store_errors("insert"), self._db.session_scope() as session:
                row = UserRow(
                    name=name,
                    email=normalize_email(email),
                    hashed_password=hashed_password,
                    created=datetime.now(UTC),
                )
                session.add(row)
                session.flush()
                user_id = row.id
        except IntegrityError as exc:
            if _is_email_constraint(exc):
                raise DuplicateEmailError() from exc
            raise
        logger.debug(f"store.insert: user_id={user_id}")
        return user_id

    def find_by_email(self, email: str) -> CredentialRecord:
        with translate_store_errors("find_by_email"), self._db.session_scope() as session:
            row = (
                session.query(UserRow.id, UserRow.hashed_password)
                .filter(UserRow.email == normalize_email(email))
                .first()
            )
            if row is None:
                raise NoSuchRecordError()
            return CredentialRecord(user_id=row.id, hashed_password=row.hashed_password)

    def exists(self, user_id: int) -> bool:
        with translate_store_errors("exists"), self._db.session_scope() as session:
            return bool(session.query(exists().where(UserRow.id == user_id)).scalar())

    def get_by_id(self, user_id: int) -> DomainUser:
        with translate_store_errors("get_by_id"), self._db.session_scope() as session:
            row = (
                session.query(UserRow.id, UserRow.name, UserRow.email, UserRow.created)
                .filter(UserRow.id == user_id)
                .first()
            )
            if row is None:
                raise NoSuchRecordError()
            return DomainUser(
                id=row.id,
                name=row.name,
                email=row.email,
                created=as_utc(row.created),
            )

    def fetch_hashed_password(self, user_id: int) -> str:
        with translate_store_errors("fetch_hashed_password"), self._db.session_scope() as session:
            digest = (
                session.query(UserRow.hashed_password)
                .filter(UserRow.id == user_id)
                .scalar()
            )
            if digest is None:
                raise NoSuchRecordError()
            return digest

    def update_hashed_password(
        self, user_id: int, hashed_password: str, *, expected: str | None = None
    ) -> None:
        with translate_store_errors("update_hashed_password"), self._db.session_scope() as session:
            query = session.query(UserRow).filter(UserRow.id == user_id)
            if expected is not None:
                # expected is the digest this store returned earlier, never caller input
                query = query.filter(UserRow.hashed_password == expected)
            updated = query.update(
                {UserRow.hashed_password: hashed_password}, synchronize_session=False
            )
            if updated:
                logger.debug(f"store.update_hashed_password: user_id={user_id}")
                return
            present = session.query(exists().where(UserRow.id == user_id)).scalar()

        if not present:
            raise NoSuchRecordError()
        logger.warning(f"store.update_hashed_password: concurrent change user_id={user_id}")
        raise ConcurrentRotationError()


__all__ = [
    "SqlAlchemyUserRepository",
    "as_utc",
    "normalize_email",
    "translate_store_errors",
]
