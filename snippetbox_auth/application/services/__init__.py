from .credentials import CredentialService
from .password_hashing import WerkzeugPasswordHasher
from .session_binder import AUTHENTICATED_USER_ID, FLASH, SessionBinder, new_token

__all__ = [
    "AUTHENTICATED_USER_ID",
    "FLASH",
    "CredentialService",
    "SessionBinder",
    "WerkzeugPasswordHasher",
    "new_token",
]
