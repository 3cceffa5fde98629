# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True, frozen=True)
class User:
    """Public view of an identity. Carries no password material."""

    id: int
    name: str
    email: str
    created: datetime


@dataclass(slots=True, frozen=True)
class CredentialRecord:
    """Row fragment needed to verify a login. Never leaves the service layer."""

    user_id: int
    hashed_password: str = field(repr=False)


@dataclass(slots=True, frozen=True)
class Session:
    token: str = field(repr=False)
    values: dict[str, Any]
    expires_at: datetime
