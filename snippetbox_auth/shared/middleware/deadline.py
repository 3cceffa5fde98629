# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable

from flask import Flask, g, has_request_context

from snippetbox_auth.shared.resilience import Deadline


def request_deadline(budget: float) -> Callable[[], Deadline]:
    """Deadline factory shared by everything one request calls.

    Inside a request every caller gets the same ``Deadline``; outside one
    (scripts, the sweeper) each call gets its own budget.
    """

    def _current() -> Deadline:
        if has_request_context():
            deadline = g.get("deadline")
            if deadline is None:
                deadline = g.deadline = Deadline(budget)
            return deadline
        return Deadline(budget)

    return _current


def configure_request_deadline(app: Flask, budget: float) -> None:
    @app.before_request
    def _start_deadline() -> None:
        g.deadline = Deadline(budget)


__all__ = ["configure_request_deadline", "request_deadline"]
