"""Password hashing strategies."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from snippetbox_auth.domain.users.repositories import PasswordHasher
from snippetbox_auth.shared.config import HashingConfig
from snippetbox_auth.shared.errors import HashingError

_KNOWN_METHODS = ("scrypt", "pbkdf2")


class WerkzeugPasswordHasher(PasswordHasher):
    """Salted adaptive hashing backed by werkzeug.

    Digests look like ``method$salt$hexdigest``; the cost parameters live in
    the method segment, so raising them only affects newly written digests.
    Verification goes through ``hmac.compare_digest`` inside werkzeug.
    """

    def __init__(self, config: HashingConfig) -> None:
        self._method = config.method
        self._salt_length = config.salt_length

    def hash(self, password: str) -> str:
        try:
            return str(
                generate_password_hash(
                    password, method=self._method, salt_length=self._salt_length
                )
            )
        except (ValueError, TypeError, MemoryError) as exc:
            raise HashingError(type(exc).__name__) from exc

    def verify(self, password: str, hashed: str) -> bool:
        _check_digest_shape(hashed)
        try:
            return bool(check_password_hash(hashed, password))
        except (ValueError, TypeError, MemoryError) as exc:
            raise HashingError("malformed digest") from exc


def _check_digest_shape(hashed: str) -> None:
    # werkzeug silently answers False for these; a corrupt row must not look like a wrong password
    if not isinstance(hashed, str) or hashed.count("$") != 2:
        raise HashingError("malformed digest")
    method = hashed.split("$", 1)[0]
    if method.split(":", 1)[0] not in _KNOWN_METHODS:
        raise HashingError("unknown digest method")


__all__ = ["WerkzeugPasswordHasher"]
