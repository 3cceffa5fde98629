# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, cast


@dataclass(slots=True)
class AppError(Exception):
    code: str
    status: HTTPStatus
    context: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        Exception.__init__(self, self.code)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code}
        if self.context:
            payload["context"] = dict(self.context)
        return payload


class DomainError(AppError):
    """Expected outcome the caller is meant to interpret."""

    def __init__(
        self,
        *,
        code: str | None = None,
        status: HTTPStatus | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        resolved_code = code or cast(str, getattr(self, "code", "domain_error"))
        resolved_status = status or cast(
            HTTPStatus, getattr(self, "status", HTTPStatus.BAD_REQUEST)
        )
        super().__init__(code=resolved_code, status=resolved_status, context=context)


class InfrastructureError(AppError):
    """Unexpected fault. Rendered to users only as ``internal_error``."""

    def __init__(
        self,
        code: str = "infrastructure_error",
        *,
        detail: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code=code, status=HTTPStatus.INTERNAL_SERVER_ERROR, context=context
        )
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"error": "internal_error"}

    def __str__(self) -> str:
        if self.detail:
            return f"{self.code}: {self.detail}"
        return self.code


class ValidationError(AppError):
    def __init__(
        self,
        code: str = "validation_error",
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            context=context,
        )


class StoreUnavailableError(InfrastructureError):
    def __init__(self, detail: str | None = None) -> None:
        super().__init__("store_unavailable", detail=detail)


class DeadlineExceededError(StoreUnavailableError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"deadline exceeded before {operation}")
        self.operation = operation


class HashingError(InfrastructureError):
    def __init__(self, detail: str | None = None) -> None:
        super().__init__("hashing_failure", detail=detail)


class InternalError(InfrastructureError):
    def __init__(self, detail: str | None = None) -> None:
        super().__init__("internal_error", detail=detail)
