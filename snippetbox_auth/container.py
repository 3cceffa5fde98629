"""Application dependency container."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from functools import cached_property

from snippetbox_auth.application.services.credentials import CredentialService
from snippetbox_auth.application.services.password_hashing import WerkzeugPasswordHasher
from snippetbox_auth.application.services.session_binder import SessionBinder
from snippetbox_auth.infrastructure.db.session import Database
from snippetbox_auth.infrastructure.repositories.sessions import (
    SessionSweeper,
    SqlAlchemySessionStore,
)
from snippetbox_auth.infrastructure.repositories.users import SqlAlchemyUserRepository
from snippetbox_auth.interfaces.http.controllers.auth_controller import AuthController
from snippetbox_auth.shared.config import AppConfig
from snippetbox_auth.shared.middleware.deadline import request_deadline
from snippetbox_auth.shared.resilience import Deadline


class Container:
    def __init__(self, config: AppConfig, database: Database) -> None:
        self.config = config
        self.database = database

    @cached_property
    def deadline_factory(self) -> Callable[[], Deadline]:
        return request_deadline(self.config.auth.request_deadline)

    @cached_property
    def password_hasher(self) -> WerkzeugPasswordHasher:
        return WerkzeugPasswordHasher(self.config.hashing)

    @cached_property
    def user_repository(self) -> SqlAlchemyUserRepository:
        return SqlAlchemyUserRepository(self.database)

    @cached_property
    def session_store(self) -> SqlAlchemySessionStore:
        return SqlAlchemySessionStore(self.database)

    @cached_property
    def credential_service(self) -> CredentialService:
        return CredentialService(
            users=self.user_repository,
            password_hasher=self.password_hasher,
            deadline_factory=self.deadline_factory,
            check_rotation_conflicts=self.config.auth.rotation_conflict_check,
        )

    @cached_property
    def session_binder(self) -> SessionBinder:
        return SessionBinder(
            store=self.session_store,
            lifetime=timedelta(seconds=self.config.session.lifetime),
            deadline_factory=self.deadline_factory,
        )

    @cached_property
    def session_sweeper(self) -> SessionSweeper:
        return SessionSweeper(self.session_store, self.config.session.sweep_interval)

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(
            credentials=self.credential_service,
            sessions=self.session_binder,
        )
