from __future__ import annotations

import re

from pydantic import BaseModel, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from snippetbox_auth.shared.errors.validation import ValidationErrorType

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
MIN_PASSWORD_LENGTH = 8


def _not_blank(value: str) -> str:
    if not value.strip():
        raise PydanticCustomError(
            ValidationErrorType.BLANK,
            "This field cannot be blank",
            {},
        )
    return value


def _valid_email(value: str) -> str:
    _not_blank(value)
    if not EMAIL_RX.match(value.strip()):
        raise PydanticCustomError(
            ValidationErrorType.EMAIL_INVALID,
            "This field must be a valid email address",
            {},
        )
    return value.strip()


def _long_enough(value: str) -> str:
    _not_blank(value)
    if len(value) < MIN_PASSWORD_LENGTH:
        raise PydanticCustomError(
            ValidationErrorType.TOO_SHORT,
            "This field must be at least {min_length} characters long",
            {"min_length": MIN_PASSWORD_LENGTH},
        )
    return value


class SignupRequestDTO(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _not_blank(value)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _valid_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _long_enough(value)


class LoginRequestDTO(BaseModel):
    email: str = ""
    password: str = ""  # no length rule on login

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _valid_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _not_blank(value)


class PasswordUpdateRequestDTO(BaseModel):
    current_password: str = ""
    new_password: str = ""
    new_password_confirmation: str = ""

    @field_validator("current_password")
    @classmethod
    def validate_current(cls, value: str) -> str:
        return _not_blank(value)

    @field_validator("new_password")
    @classmethod
    def validate_new(cls, value: str) -> str:
        return _long_enough(value)

    @field_validator("new_password_confirmation")
    @classmethod
    def validate_confirmation(cls, value: str, info: ValidationInfo) -> str:
        _not_blank(value)
        new_password = info.data.get("new_password")
        if new_password is not None and value != new_password:
            raise PydanticCustomError(
                ValidationErrorType.MISMATCH,
                "Passwords do not match",
                {},
            )
        return value


class OkDTO(BaseModel):
    ok: bool = True
    flash: str | None = None


class AccountDTO(BaseModel):
    id: int
    name: str
    email: str
    created: str
    flash: str | None = None


__all__ = [
    "AccountDTO",
    "LoginRequestDTO",
    "OkDTO",
    "PasswordUpdateRequestDTO",
    "SignupRequestDTO",
]
