from .deadline import configure_request_deadline, request_deadline
from .error_handler import configure_error_handling
from .request_logger import configure_request_logging
from .session import (
    configure_sessions,
    current_session,
    current_user_id,
    replace_session,
    require_authentication,
)

__all__ = [
    "configure_error_handling",
    "configure_request_deadline",
    "configure_request_logging",
    "configure_sessions",
    "current_session",
    "current_user_id",
    "replace_session",
    "request_deadline",
    "require_authentication",
]
