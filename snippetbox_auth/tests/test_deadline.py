from __future__ import annotations

import pytest

from snippetbox_auth.infrastructure.db import Database
from snippetbox_auth.shared.config import AppConfig
from snippetbox_auth.shared.errors import DeadlineExceededError, StoreUnavailableError
from snippetbox_auth.shared.resilience import Deadline


class TickingClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_call_runs_within_budget() -> None:
    clock = TickingClock()
    deadline = Deadline(5.0, clock=clock)

    assert deadline.call("add", lambda a, b: a + b, 2, 3) == 5
    assert deadline.remaining() == pytest.approx(5.0)


def test_call_refuses_once_budget_is_spent() -> None:
    clock = TickingClock()
    deadline = Deadline(5.0, clock=clock)
    calls: list[int] = []

    clock.now += 5.0

    with pytest.raises(DeadlineExceededError) as excinfo:
        deadline.call("insert", calls.append, 1)

    assert calls == []
    assert excinfo.value.operation == "insert"
    assert isinstance(excinfo.value, StoreUnavailableError)
    assert deadline.remaining() == 0.0


def test_budget_is_shared_across_steps() -> None:
    clock = TickingClock()
    deadline = Deadline(1.0, clock=clock)

    def slow_step() -> str:
        clock.now += 1.5
        return "done"

    assert deadline.call("hash", slow_step) == "done"
    assert deadline.expired() is True
    with pytest.raises(DeadlineExceededError):
        deadline.call("insert", lambda: None)


def test_database_waits_are_bounded_by_the_request_budget(config: AppConfig) -> None:
    db = Database(config.database, step_timeout=0.5)
    try:
        with db.engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA busy_timeout").scalar() == 500
        assert db.engine.pool.timeout() <= 0.5
    finally:
        db.dispose()
