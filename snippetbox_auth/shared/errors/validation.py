# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from enum import StrEnum
from typing import Any, NoReturn

from pydantic import ValidationError as PydanticValidationError

from .base import ValidationError


class ValidationErrorType(StrEnum):
    BLANK = "blank"
    EMAIL_INVALID = "email_invalid"
    TOO_SHORT = "too_short"
    MISMATCH = "mismatch"
    INCORRECT = "incorrect"


def format_pydantic_errors(exc: PydanticValidationError) -> dict[str, Any]:
    errors_list = []
    fields: dict[str, str] = {}

    for error in exc.errors():
        loc = error.get("loc", ())
        field_path = ".".join(str(part) for part in loc if part is not None)

        # first message per field wins, the same way a form shows one error per input
        if field_path and field_path not in fields:
            fields[field_path] = error.get("msg", "")

        errors_list.append(
            {
                "field": field_path or "unknown",
                "type": error.get("type", "value_error"),
            }
        )

    return {
        "fields": fields,
        "errors": errors_list,
    }


def raise_validation_error(exc: PydanticValidationError) -> NoReturn:
    context = format_pydantic_errors(exc)
    raise ValidationError(context=context) from exc


__all__ = [
    "ValidationErrorType",
    "format_pydantic_errors",
    "raise_validation_error",
]
