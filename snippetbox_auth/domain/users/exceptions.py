# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from snippetbox_auth.shared.errors.base import DomainError


class NoSuchRecordError(DomainError):
    code = "no_record"
    status = HTTPStatus.NOT_FOUND


class EmailAlreadyInUseError(DomainError):
    code = "email_in_use"
    status = HTTPStatus.CONFLICT

    def __init__(self) -> None:
        super().__init__(
            context={"fields": {"email": "Email address is already in use"}}
        )


class InvalidCredentialsError(DomainError):
    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED

    def __init__(self) -> None:
        # Same message whether the email or the password was wrong.
        super().__init__(context={"message": "Email or password is incorrect"})


class ConcurrentRotationError(DomainError):
    code = "password_changed_concurrently"
    status = HTTPStatus.CONFLICT


class DuplicateEmailError(Exception):
    """Raised by the store when the email uniqueness constraint rejects an insert."""
