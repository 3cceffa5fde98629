from __future__ import annotations

from datetime import UTC
from pathlib import Path

import pytest

from snippetbox_auth.domain.users.exceptions import (
    ConcurrentRotationError,
    DuplicateEmailError,
    NoSuchRecordError,
)
from snippetbox_auth.infrastructure.db import Database
from snippetbox_auth.infrastructure.db.models import UserRow
from snippetbox_auth.infrastructure.repositories.users import SqlAlchemyUserRepository
from snippetbox_auth.shared.config import DatabaseConfig
from snippetbox_auth.shared.errors import StoreUnavailableError


@pytest.fixture()
def repo(database: Database) -> SqlAlchemyUserRepository:
    return SqlAlchemyUserRepository(database)


def test_insert_assigns_increasing_ids(repo: SqlAlchemyUserRepository) -> None:
    assert repo.insert("Alice", "a@example.com", "digest-a") == 1
    assert repo.insert("Bob", "b@example.com", "digest-b") == 2


def test_duplicate_email_is_reported_case_insensitively(
    repo: SqlAlchemyUserRepository, database: Database
) -> None:
    repo.insert("Alice", "a@example.com", "digest-a")

    with pytest.raises(DuplicateEmailError):
        repo.insert("Alice again", "a@example.com", "digest-b")
    with pytest.raises(DuplicateEmailError):
        repo.insert("Alice again", "  A@Example.COM ", "digest-b")

    with database.session_scope() as session:
        assert session.query(UserRow).count() == 1


def test_find_by_email(repo: SqlAlchemyUserRepository) -> None:
    user_id = repo.insert("Alice", "a@example.com", "digest-a")

    record = repo.find_by_email("A@example.com")
    assert record.user_id == user_id
    assert record.hashed_password == "digest-a"
    assert "digest-a" not in repr(record)

    with pytest.raises(NoSuchRecordError):
        repo.find_by_email("nobody@example.com")


def test_exists(repo: SqlAlchemyUserRepository) -> None:
    user_id = repo.insert("Alice", "a@example.com", "digest-a")

    assert repo.exists(user_id) is True
    assert repo.exists(user_id + 1) is False


def test_get_by_id_returns_public_view(repo: SqlAlchemyUserRepository) -> None:
    user_id = repo.insert("Alice", "a@example.com", "digest-a")

    user = repo.get_by_id(user_id)
    assert (user.id, user.name, user.email) == (user_id, "Alice", "a@example.com")
    assert user.created.tzinfo is not None
    assert user.created.utcoffset() == UTC.utcoffset(None)

    with pytest.raises(NoSuchRecordError):
        repo.get_by_id(404)


def test_update_hashed_password(repo: SqlAlchemyUserRepository) -> None:
    user_id = repo.insert("Alice", "a@example.com", "digest-a")

    repo.update_hashed_password(user_id, "digest-b")

    assert repo.fetch_hashed_password(user_id) == "digest-b"


def test_update_missing_user(repo: SqlAlchemyUserRepository) -> None:
    with pytest.raises(NoSuchRecordError):
        repo.update_hashed_password(7, "digest")
    with pytest.raises(NoSuchRecordError):
        repo.fetch_hashed_password(7)


def test_update_with_stale_expected_digest(repo: SqlAlchemyUserRepository) -> None:
    user_id = repo.insert("Alice", "a@example.com", "digest-a")
    repo.update_hashed_password(user_id, "digest-b")

    with pytest.raises(ConcurrentRotationError):
        repo.update_hashed_password(user_id, "digest-c", expected="digest-a")
    assert repo.fetch_hashed_password(user_id) == "digest-b"

    repo.update_hashed_password(user_id, "digest-c", expected="digest-b")
    assert repo.fetch_hashed_password(user_id) == "digest-c"


def test_unreachable_database_is_store_unavailable(tmp_path: Path) -> None:
    missing = tmp_path / "no" / "such" / "dir" / "snippetbox.db"
    db = Database(DatabaseConfig(url=f"sqlite:///{missing}", pool_timeout=1))
    repo = SqlAlchemyUserRepository(db)

    with pytest.raises(StoreUnavailableError):
        repo.exists(1)
    with pytest.raises(StoreUnavailableError):
        repo.insert("Alice", "a@example.com", "digest-a")
    db.dispose()
