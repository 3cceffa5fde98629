# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from snippetbox_auth.shared.config import DatabaseConfig
from snippetbox_auth.shared.logging import logger


class Base(DeclarativeBase):
    pass


def _is_memory_url(url: str) -> bool:
    return ":memory:" in url or url.rstrip("/").endswith(("sqlite:", "pysqlite:"))


def _build_engine(config: DatabaseConfig, step_timeout: float) -> Engine:
    is_sqlite = config.url.startswith("sqlite")
    if is_sqlite and _is_memory_url(config.url):
        # one shared connection, otherwise every checkout sees an empty database
        return create_engine(
            config.url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    checkout_timeout = min(config.pool_timeout, step_timeout)
    connect_args: dict[str, object] = {}
    if is_sqlite:
        connect_args = {"check_same_thread": False, "timeout": step_timeout}

    return create_engine(
        config.url,
        echo=False,
        pool_pre_ping=True,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=checkout_timeout,
        connect_args=connect_args,
    )


class Database:
    """Engine plus session factory, owned by the composition root.

    ``step_timeout`` bounds a single blocking step: pool checkout and, on
    SQLite, the wait for the database write lock.
    """

    def __init__(self, config: DatabaseConfig, *, step_timeout: float = 30.0) -> None:
        self._config = config
        self.engine: Engine = _build_engine(config, step_timeout)
        if config.url.startswith("sqlite"):
            event.listen(self.engine, "connect", _sqlite_pragmas(step_timeout))
            event.listen(self.engine, "begin", _begin_immediate)
        self._factory = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        session = self._factory()
        logger.debug("db.session: opened")
        try:
            yield session
            session.commit()
            logger.debug("db.session: committed")
        except Exception:
            session.rollback()
            logger.debug("db.session: rolled back")
            raise
        finally:
            session.close()

    def init_schema(self) -> None:
        # models must be imported so their tables are registered on Base.metadata
        from snippetbox_auth.infrastructure.db import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ensured")

    def dispose(self) -> None:
        self.engine.dispose()


def _sqlite_pragmas(step_timeout: float):
    busy_ms = int(step_timeout * 1000)

    def _set_pragmas(dbapi_conn, _) -> None:
        # pysqlite would otherwise defer BEGIN until the first write
        dbapi_conn.isolation_level = None
        cur = dbapi_conn.cursor()
        try:
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.execute(f"PRAGMA busy_timeout={busy_ms};")
        finally:
            cur.close()

    return _set_pragmas


def _begin_immediate(conn) -> None:
    # take the write lock up front so read-merge-write sequences are serialised
    conn.exec_driver_sql("BEGIN IMMEDIATE")
