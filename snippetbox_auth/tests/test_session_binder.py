from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import timedelta

import pytest

from snippetbox_auth.application.services.session_binder import (
    AUTHENTICATED_USER_ID,
    SessionBinder,
)
from snippetbox_auth.infrastructure.db import Database
from snippetbox_auth.infrastructure.repositories.sessions import (
    SessionSweeper,
    SqlAlchemySessionStore,
)
from snippetbox_auth.shared.errors import DeadlineExceededError
from snippetbox_auth.shared.resilience import Deadline

from conftest import FakeClock

LIFETIME = timedelta(hours=12)


@pytest.fixture()
def store(database: Database, clock: FakeClock) -> SqlAlchemySessionStore:
    return SqlAlchemySessionStore(database, clock=clock)


@pytest.fixture()
def binder(store: SqlAlchemySessionStore, clock: FakeClock) -> SessionBinder:
    return SessionBinder(
        store=store,
        lifetime=LIFETIME,
        deadline_factory=lambda: Deadline(10.0),
        clock=clock,
    )


def test_load_without_token_is_anonymous_and_unsaved(
    binder: SessionBinder, store: SqlAlchemySessionStore
) -> None:
    session = binder.load(None)

    assert binder.is_authenticated(session) is False
    assert binder.current_identity(session) is None
    assert len(session.token) == 43
    assert store.find(session.token) is None


def test_unknown_token_gets_a_fresh_session(binder: SessionBinder) -> None:
    session = binder.load("forged-token")

    assert session.token != "forged-token"
    assert session.values == {}


def test_set_authenticated_renews_token(
    binder: SessionBinder, store: SqlAlchemySessionStore
) -> None:
    anonymous = binder.put_flash(binder.load(None), "hello")

    bound = binder.set_authenticated(anonymous, 1)

    assert bound.token != anonymous.token
    assert binder.current_identity(bound) == 1
    assert store.find(anonymous.token) is None

    reloaded = binder.load(bound.token)
    assert reloaded.token == bound.token
    assert reloaded.values[AUTHENTICATED_USER_ID] == 1
    assert reloaded.values["flash"] == "hello"


def test_clear_authenticated_changes_token_and_drops_identity(
    binder: SessionBinder, store: SqlAlchemySessionStore
) -> None:
    bound = binder.set_authenticated(binder.load(None), 1)

    cleared = binder.clear_authenticated(bound)

    assert cleared.token != bound.token
    assert binder.is_authenticated(cleared) is False
    assert store.find(bound.token) is None
    assert binder.is_authenticated(binder.load(cleared.token)) is False


def test_flash_is_read_once(binder: SessionBinder) -> None:
    session = binder.put_flash(binder.load(None), "Your signup was successful.")

    assert binder.pop_flash(session) == "Your signup was successful."
    assert binder.pop_flash(session) is None


def test_expired_session_is_invisible(
    binder: SessionBinder, clock: FakeClock
) -> None:
    bound = binder.set_authenticated(binder.load(None), 1)

    clock.advance(hours=12, seconds=1)
    reloaded = binder.load(bound.token)

    assert reloaded.token != bound.token
    assert binder.is_authenticated(reloaded) is False


def test_writes_extend_the_lifetime(
    binder: SessionBinder, clock: FakeClock
) -> None:
    session = binder.put_flash(binder.load(None), "first")

    clock.advance(hours=11)
    session = binder.put_flash(session, "second")
    clock.advance(hours=11)

    assert binder.load(session.token).token == session.token


def test_store_pop(store: SqlAlchemySessionStore, clock: FakeClock) -> None:
    store.update("tok", expires_at=clock() + LIFETIME, updates={"a": 1, "b": 2})

    assert store.pop("tok", "a") == 1
    assert store.pop("tok", "a") is None
    assert store.find("tok").values == {"b": 2}

    assert store.pop("missing", "b") is None


def test_delete_expired_and_sweeper(
    store: SqlAlchemySessionStore, clock: FakeClock
) -> None:
    store.update("old", expires_at=clock() + timedelta(minutes=5), updates={"x": 1})
    store.update("new", expires_at=clock() + LIFETIME, updates={"x": 2})

    clock.advance(minutes=10)
    sweeper = SessionSweeper(store, interval=60)

    assert sweeper.sweep_once() == 1
    assert store.delete_expired() == 0
    assert store.find("new") is not None


def test_sweeper_thread_starts_and_stops(store: SqlAlchemySessionStore) -> None:
    sweeper = SessionSweeper(store, interval=60)

    sweeper.start()
    assert sweeper.running is True

    sweeper.stop(timeout=5)
    assert sweeper.running is False


class SlowReadStore(SqlAlchemySessionStore):
    """Holds each read-merge-write open long enough for writers to overlap."""

    def _live_data(self, session, token):
        data = super()._live_data(session, token)
        time.sleep(0.2)
        return data


def _run_together(*calls: Callable[[], object]) -> tuple[list, list[Exception]]:
    results: list = []
    errors: list[Exception] = []

    def run(call: Callable[[], object]) -> None:
        try:
            results.append(call())
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=run, args=(call,)) for call in calls]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return results, errors


def test_concurrent_updates_to_one_session_keep_both_keys(
    database: Database, clock: FakeClock
) -> None:
    store = SlowReadStore(database, clock=clock)
    expires_at = clock() + LIFETIME
    store.update("tok", expires_at=expires_at, updates={"seed": 1})

    _, errors = _run_together(
        lambda: store.update("tok", expires_at=expires_at, updates={"tab_a": True}),
        lambda: store.update("tok", expires_at=expires_at, updates={"tab_b": True}),
    )

    assert errors == []
    assert store.find("tok").values == {"seed": 1, "tab_a": True, "tab_b": True}


def test_concurrent_pops_hand_the_value_out_once(
    database: Database, clock: FakeClock
) -> None:
    store = SlowReadStore(database, clock=clock)
    store.update("tok", expires_at=clock() + LIFETIME, updates={"flash": "once"})

    results, errors = _run_together(
        lambda: store.pop("tok", "flash"),
        lambda: store.pop("tok", "flash"),
    )

    assert errors == []
    assert results.count("once") == 1
    assert results.count(None) == 1


def test_flash_racing_login_does_not_fail(
    database: Database, clock: FakeClock
) -> None:
    binder = SessionBinder(
        store=SlowReadStore(database, clock=clock),
        lifetime=LIFETIME,
        deadline_factory=lambda: Deadline(10.0),
        clock=clock,
    )
    anonymous = binder.put_flash(binder.load(None), "seed")

    results, errors = _run_together(
        lambda: binder.set_authenticated(anonymous, 7),
        lambda: binder.put_flash(anonymous, "other"),
    )

    assert errors == []
    bound = next(s for s in results if s.token != anonymous.token)
    assert binder.current_identity(binder.load(bound.token)) == 7
    leftover = binder.load(anonymous.token)
    assert binder.is_authenticated(leftover) is False


def test_spent_deadline_stops_session_writes(
    store: SqlAlchemySessionStore, clock: FakeClock
) -> None:
    binder = SessionBinder(
        store=store,
        lifetime=LIFETIME,
        deadline_factory=lambda: Deadline(0.0),
        clock=clock,
    )

    with pytest.raises(DeadlineExceededError):
        binder.put_flash(binder.load(None), "never stored")
