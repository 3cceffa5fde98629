# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Registration, login, lookup and password rotation for local accounts."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from snippetbox_auth.domain.users.entities import User
from snippetbox_auth.domain.users.exceptions import (
    DuplicateEmailError,
    EmailAlreadyInUseError,
    InvalidCredentialsError,
    NoSuchRecordError,
)
from snippetbox_auth.domain.users.repositories import PasswordHasher, UserRepository
from snippetbox_auth.shared.errors import AppError, InternalError
from snippetbox_auth.shared.logging import logger
from snippetbox_auth.shared.resilience import Deadline


class CredentialService:
    def __init__(
        self,
        *,
        users: UserRepository,
        password_hasher: PasswordHasher,
        deadline_factory: Callable[[], Deadline],
        check_rotation_conflicts: bool = False,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._deadline_factory = deadline_factory
        self._check_rotation_conflicts = check_rotation_conflicts
        # Verified against when the email is unknown so both failure paths cost one hash check.
        self._dummy_digest = password_hasher.hash("snippetbox-auth-timing-equaliser")

    def register(self, name: str, email: str, password: str) -> int:
        deadline = self._deadline_factory()
        with _internal_errors("register"):
            hashed = deadline.call("hash", self._password_hasher.hash, password)
            try:
                user_id = deadline.call(
                    "insert", self._users.insert, name, email, hashed
                )
            except DuplicateEmailError:
                logger.info("credentials.register: email already in use")
                raise EmailAlreadyInUseError() from None
        logger.info(f"credentials.register: ok user_id={user_id}")
        return user_id

    def authenticate(self, email: str, password: str) -> int:
        deadline = self._deadline_factory()
        with _internal_errors("authenticate"):
            try:
                record = deadline.call("find_by_email", self._users.find_by_email, email)
            except NoSuchRecordError:
                deadline.call(
                    "verify", self._password_hasher.verify, password, self._dummy_digest
                )
                logger.info("credentials.authenticate: rejected")
                raise InvalidCredentialsError() from None

            matches = deadline.call(
                "verify", self._password_hasher.verify, password, record.hashed_password
            )
        if not matches:
            logger.info("credentials.authenticate: rejected")
            raise InvalidCredentialsError()
        logger.info(f"credentials.authenticate: ok user_id={record.user_id}")
        return record.user_id

    def exists(self, user_id: int) -> bool:
        deadline = self._deadline_factory()
        with _internal_errors("exists"):
            return deadline.call("exists", self._users.exists, user_id)

    def get(self, user_id: int) -> User:
        deadline = self._deadline_factory()
        with _internal_errors("get"):
            return deadline.call("get_by_id", self._users.get_by_id, user_id)

    def rotate_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """Replace the stored digest after re-verifying the current password.

        Read, verify and write are separate statements. Two rotations racing on
        one account are last-write-wins unless conflict checking is enabled, in
        which case the write only lands if the digest is still the one that was
        verified.
        """
        deadline = self._deadline_factory()
        with _internal_errors("rotate_password"):
            try:
                current = deadline.call(
                    "fetch_hashed_password", self._users.fetch_hashed_password, user_id
                )
            except NoSuchRecordError:
                raise InvalidCredentialsError() from None

            if not deadline.call(
                "verify", self._password_hasher.verify, current_password, current
            ):
                logger.info(f"credentials.rotate_password: rejected user_id={user_id}")
                raise InvalidCredentialsError()

            new_hashed = deadline.call("hash", self._password_hasher.hash, new_password)
            expected = current if self._check_rotation_conflicts else None
            deadline.call(
                "update_hashed_password",
                self._users.update_hashed_password,
                user_id,
                new_hashed,
                expected=expected,
            )
        logger.info(f"credentials.rotate_password: ok user_id={user_id}")


@contextmanager
def _internal_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        logger.exception(f"credentials.{operation}: unexpected {type(exc).__name__}")
        raise InternalError(f"{operation} failed") from exc


__all__ = ["CredentialService"]
