from .base import (
    AppError,
    DeadlineExceededError,
    DomainError,
    HashingError,
    InfrastructureError,
    InternalError,
    StoreUnavailableError,
    ValidationError,
)
from .http import handle_app_error, register_error_handler

__all__ = [
    "AppError",
    "DeadlineExceededError",
    "DomainError",
    "HashingError",
    "InfrastructureError",
    "InternalError",
    "StoreUnavailableError",
    "ValidationError",
    "handle_app_error",
    "register_error_handler",
]
