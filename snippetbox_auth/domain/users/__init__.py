# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import CredentialRecord, Session, User
from .exceptions import (
    ConcurrentRotationError,
    DuplicateEmailError,
    EmailAlreadyInUseError,
    InvalidCredentialsError,
    NoSuchRecordError,
)
from .repositories import PasswordHasher, SessionStore, UserRepository

__all__ = [
    "ConcurrentRotationError",
    "CredentialRecord",
    "DuplicateEmailError",
    "EmailAlreadyInUseError",
    "InvalidCredentialsError",
    "NoSuchRecordError",
    "PasswordHasher",
    "Session",
    "SessionStore",
    "User",
    "UserRepository",
]
