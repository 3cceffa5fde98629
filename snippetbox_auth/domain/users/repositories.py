# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Protocol

from .entities import CredentialRecord, Session, User


class UserRepository(Protocol):
    def insert(self, name: str, email: str, hashed_password: str) -> int: ...
    def find_by_email(self, email: str) -> CredentialRecord: ...
    def exists(self, user_id: int) -> bool: ...
    def get_by_id(self, user_id: int) -> User: ...
    def fetch_hashed_password(self, user_id: int) -> str: ...
    def update_hashed_password(
        self, user_id: int, hashed_password: str, *, expected: str | None = None
    ) -> None: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...


class SessionStore(Protocol):
    def find(self, token: str) -> Session | None: ...

    def update(
        self,
        token: str,
        *,
        expires_at: datetime,
        updates: Mapping[str, Any] | None = None,
        removals: Iterable[str] = (),
        new_token: str | None = None,
    ) -> Session: ...

    def pop(self, token: str, key: str) -> Any | None: ...
    def delete_expired(self) -> int: ...
