# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Binds a verified identity to a server-side session.

Every mutation is handed to the session store as a single call so the store
can apply it in one transaction; the binder never reads a session, edits it
locally and writes it back.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from snippetbox_auth.domain.users.entities import Session
from snippetbox_auth.domain.users.repositories import SessionStore
from snippetbox_auth.shared.logging import logger
from snippetbox_auth.shared.resilience import Deadline

AUTHENTICATED_USER_ID = "authenticated_user_id"
FLASH = "flash"

# 32 random bytes -> 43 URL-safe characters
_TOKEN_BYTES = 32


def new_token() -> str:
    return secrets.token_urlsafe(_TOKEN_BYTES)


class SessionBinder:
    def __init__(
        self,
        *,
        store: SessionStore,
        lifetime: timedelta,
        deadline_factory: Callable[[], Deadline],
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._store = store
        self._lifetime = lifetime
        self._deadline_factory = deadline_factory
        self._clock = clock

    def load(self, token: str | None) -> Session:
        """Return the live session for ``token`` or a fresh anonymous one.

        A fresh session is not persisted until something is written to it.
        """
        if token:
            session = self._deadline_factory().call("session.find", self._store.find, token)
            if session is not None:
                return session
        return Session(token=new_token(), values={}, expires_at=self._expiry())

    def set_authenticated(self, session: Session, user_id: int) -> Session:
        # Privilege change: the pre-login token must not stay usable.
        renewed = self._update(
            session,
            updates={AUTHENTICATED_USER_ID: int(user_id)},
            new_token=new_token(),
        )
        logger.info(f"session.bind: user_id={user_id}")
        return renewed

    def clear_authenticated(self, session: Session) -> Session:
        renewed = self._update(
            session,
            removals=(AUTHENTICATED_USER_ID,),
            new_token=new_token(),
        )
        logger.info("session.unbind: identity cleared, token renewed")
        return renewed

    def current_identity(self, session: Session) -> int | None:
        value = session.values.get(AUTHENTICATED_USER_ID)
        if value is None:
            return None
        return int(value)

    def is_authenticated(self, session: Session) -> bool:
        return self.current_identity(session) is not None

    def put_flash(self, session: Session, message: str) -> Session:
        return self._update(session, updates={FLASH: message})

    def pop_flash(self, session: Session) -> str | None:
        value = self._deadline_factory().call(
            "session.pop", self._store.pop, session.token, FLASH
        )
        return None if value is None else str(value)

    def _update(self, session: Session, **changes: Any) -> Session:
        return self._deadline_factory().call(
            "session.update",
            self._store.update,
            session.token,
            expires_at=self._expiry(),
            **changes,
        )

    def _expiry(self) -> datetime:
        return self._clock() + self._lifetime


__all__ = ["AUTHENTICATED_USER_ID", "FLASH", "SessionBinder", "new_token"]
