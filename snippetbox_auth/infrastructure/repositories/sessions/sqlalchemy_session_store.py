# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session as OrmSession

from snippetbox_auth.domain.users.entities import Session
from snippetbox_auth.domain.users.repositories import SessionStore
from snippetbox_auth.infrastructure.db.models import SessionRow
from snippetbox_auth.infrastructure.db.session import Database
from snippetbox_auth.infrastructure.repositories.users.sqlalchemy_user_repository import (
    as_utc,
    translate_store_errors,
)
from snippetbox_auth.shared.logging import logger


def _decode(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    data = json.loads(raw)
    return data if isinstance(data, dict) else {}


def _encode(values: Mapping[str, Any]) -> str:
    return json.dumps(dict(values), separators=(",", ":"), sort_keys=True)


class SqlAlchemySessionStore(SessionStore):
    """Server-side sessions keyed by an opaque token.

    Expired rows are invisible to every read and are replaced on write; the
    sweeper only reclaims space.
    """

    def __init__(
        self,
        database: Database,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._db = database
        self._clock = clock

    def find(self, token: str) -> Session | None:
        with translate_store_errors("session.find"), self._db.session_scope() as session:
            row = (
                session.query(SessionRow)
                .filter(SessionRow.token == token, SessionRow.expiry > self._clock())
                .first()
            )
            if row is None:
                return None
            return Session(token=row.token, values=_decode(row.data), expires_at=as_utc(row.expiry))

    def update(
        self,
        token: str,
        *,
        expires_at: datetime,
        updates: Mapping[str, Any] | None = None,
        removals: Iterable[str] = (),
        new_token: str | None = None,
    ) -> Session:
        with translate_store_errors("session.update"), self._db.session_scope() as session:
            raw = self._live_data(session, token)
            values = _decode(raw)
            values.update(updates or {})
            for key in removals:
                values.pop(key, None)

            target = new_token or token
            if new_token is not None:
                session.query(SessionRow).filter(SessionRow.token == token).delete(
                    synchronize_session=False
                )
            written = (
                raw is not None
                and new_token is None
                and self._write(session, token, values, expires_at)
            )
            if not written:
                # renamed, absent, expired or vanished under us: (re)create it
                session.merge(SessionRow(token=target, data=_encode(values), expiry=expires_at))

        if new_token is not None:
            logger.debug("session.update: token renewed")
        return Session(token=target, values=values, expires_at=expires_at)

    def pop(self, token: str, key: str) -> Any | None:
        with translate_store_errors("session.pop"), self._db.session_scope() as session:
            values = _decode(self._live_data(session, token))
            if key not in values:
                return None
            value = values.pop(key)
            if not self._write(session, token, values):
                return None
            return value

    def delete_expired(self) -> int:
        with translate_store_errors("session.delete_expired"), self._db.session_scope() as session:
            removed = (
                session.query(SessionRow)
                .filter(SessionRow.expiry <= self._clock())
                .delete(synchronize_session=False)
            )
        if removed:
            logger.info(f"session.sweep: removed {removed} expired session(s)")
        return int(removed or 0)

    def _live_data(self, session: OrmSession, token: str) -> str | None:
        # row lock where the backend has one; SQLite holds the write lock from BEGIN
        return (
            session.query(SessionRow.data)
            .filter(SessionRow.token == token, SessionRow.expiry > self._clock())
            .with_for_update()
            .scalar()
        )

    def _write(
        self,
        session: OrmSession,
        token: str,
        values: Mapping[str, Any],
        expires_at: datetime | None = None,
    ) -> bool:
        changes: dict[Any, Any] = {SessionRow.data: _encode(values)}
        if expires_at is not None:
            changes[SessionRow.expiry] = expires_at
        written = (
            session.query(SessionRow)
            .filter(SessionRow.token == token)
            .update(changes, synchronize_session=False)
        )
        return bool(written)


class SessionSweeper:
    """Daemon thread that periodically deletes expired sessions."""

    def __init__(self, store: SessionStore, interval: float) -> None:
        self._store = store
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="session-sweeper", daemon=True
        )
        self._thread.start()
        logger.info(f"session.sweep: started, interval={self._interval}s")

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def sweep_once(self) -> int:
        try:
            return self._store.delete_expired()
        except Exception:
            logger.exception("session.sweep: failed")
            return 0

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.sweep_once()


__all__ = ["SessionSweeper", "SqlAlchemySessionStore"]
