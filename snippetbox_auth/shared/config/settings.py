# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import os
import sys

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_flag(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


class DatabaseConfig(BaseModel):
    url: str = Field("sqlite:///snippetbox.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")

    model_config = ConfigDict(validate_by_name=True)


class HashingConfig(BaseModel):
    # werkzeug method string: "scrypt:n:r:p" or "pbkdf2:sha256:iterations"
    method: str = Field("scrypt:32768:8:1", alias="PASSWORD_HASH_METHOD")
    salt_length: int = Field(16, ge=8, alias="PASSWORD_SALT_LENGTH")

    model_config = ConfigDict(validate_by_name=True)

    @field_validator("method")
    @classmethod
    def _check_method(cls, value: str) -> str:
        name = value.split(":", 1)[0]
        if name not in ("scrypt", "pbkdf2"):
            raise ValueError(f"unsupported password hash method: {name}")
        return value


class SessionConfig(BaseModel):
    lifetime: int = Field(12 * 60 * 60, ge=60, alias="SESSION_LIFETIME")
    cookie_name: str = Field("session", alias="SESSION_COOKIE_NAME")
    cookie_secure: bool = Field(False, alias="SESSION_COOKIE_SECURE")
    cookie_samesite: str = Field("Lax", alias="SESSION_COOKIE_SAMESITE")
    sweep_interval: float = Field(300.0, ge=1.0, alias="SESSION_SWEEP_INTERVAL")

    model_config = ConfigDict(validate_by_name=True)

    @field_validator("cookie_secure", mode="before")
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        return _parse_flag(value)


class AuthConfig(BaseModel):
    request_deadline: float = Field(10.0, gt=0, alias="AUTH_REQUEST_DEADLINE")
    rotation_conflict_check: bool = Field(False, alias="AUTH_ROTATION_CONFLICT_CHECK")

    model_config = ConfigDict(validate_by_name=True)

    @field_validator("rotation_conflict_check", mode="before")
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        return _parse_flag(value)


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig.model_validate(dict(os.environ))


def _hashing_config_factory() -> HashingConfig:
    return HashingConfig.model_validate(dict(os.environ))


def _session_config_factory() -> SessionConfig:
    return SessionConfig.model_validate(dict(os.environ))


def _auth_config_factory() -> AuthConfig:
    return AuthConfig.model_validate(dict(os.environ))


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    secret_key: str = Field("dev", alias="SECRET_KEY")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    hashing: HashingConfig = Field(default_factory=_hashing_config_factory)
    session: SessionConfig = Field(default_factory=_session_config_factory)
    auth: AuthConfig = Field(default_factory=_auth_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        validate_by_name=True,
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        return _parse_flag(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        if self.secret_key in ("dev", "development", "test", ""):
            print(
                "\n❌ CRITICAL SECURITY ERROR: Insecure SECRET_KEY detected in production!\n"
                "   SECRET_KEY must be a strong random value in production.\n"
                "   Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\"\n",
                file=sys.stderr,
            )
            sys.exit(1)

        warnings = []
        if not self.session.cookie_secure:
            warnings.append("⚠️  Session cookie Secure flag is DISABLED (use HTTPS!)")
        if not self.auth.rotation_conflict_check:
            warnings.append("⚠️  Concurrent password rotations are last-write-wins")

        if warnings:
            print("\n⚠️  PRODUCTION SECURITY WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)
            print(file=sys.stderr)

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


def load_config(**overrides) -> AppConfig:
    """Build a configuration snapshot for one composition root.

    Not cached: each application owns its own instance and hands it to the
    components it builds.
    """
    return AppConfig(**overrides)


__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "HashingConfig",
    "SessionConfig",
    "load_config",
]
