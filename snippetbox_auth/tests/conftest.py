from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from snippetbox_auth.infrastructure.db import Database
from snippetbox_auth.shared.config import (
    AppConfig,
    DatabaseConfig,
    HashingConfig,
    load_config,
)

# cheap enough to keep the suite fast; production uses scrypt
TEST_HASH_METHOD = "pbkdf2:sha256:1000"


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def config(tmp_path: Path) -> AppConfig:
    return load_config(
        app_env="test",
        secret_key="test-secret",
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'snippetbox.db'}"),
        hashing=HashingConfig(method=TEST_HASH_METHOD),
    )


@pytest.fixture()
def database(config: AppConfig) -> Iterator[Database]:
    db = Database(config.database)
    db.init_schema()
    yield db
    db.dispose()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
