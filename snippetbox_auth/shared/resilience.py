# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Per-request time budget for blocking store and hasher calls."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from snippetbox_auth.shared.errors import DeadlineExceededError
from snippetbox_auth.shared.logging import logger

T = TypeVar("T")


@dataclass(slots=True)
class Deadline:
    """Absolute monotonic deadline shared by every step of one request."""

    budget: float
    clock: Callable[[], float] = time.monotonic
    _expires_at: float = field(init=False)

    def __post_init__(self) -> None:
        self._expires_at = self.clock() + self.budget

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self.clock())

    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def call(self, operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run one blocking step, refusing to start it once the budget is spent.

        A step that is already running is not interrupted; the pool checkout
        timeout and the database busy timeout bound it instead.
        """
        if self.expired():
            logger.warning(f"deadline: budget of {self.budget:.2f}s spent before {operation}")
            raise DeadlineExceededError(operation)
        started = self.clock()
        result = func(*args, **kwargs)
        elapsed = self.clock() - started
        if elapsed > self.budget / 2:
            logger.debug(f"deadline: slow step {operation} took {elapsed:.3f}s")
        return result


__all__ = ["Deadline"]
