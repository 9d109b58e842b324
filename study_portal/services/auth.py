"""Single-administrator authorization gate backed by a signed cookie."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from itsdangerous import BadSignature, Signer

from ..config import AdminCredentials
from ..errors import Unauthorized
from .events import emit_auth_event


LOGGER = logging.getLogger(__name__)

SESSION_TOKEN = "ok"


def _matches(candidate: str, expected: str) -> bool:
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


class AdminGate:
    """Issue and verify the admin session cookie.

    Every valid session carries the same token, signed with the configured
    secret. A cookie is accepted only when its signature verifies and the
    unsigned value equals that token.
    """

    def __init__(
        self,
        credentials: AdminCredentials,
        secret_key: str,
        *,
        cookie_name: str = "study_admin",
    ) -> None:
        self._credentials = credentials
        self._cookie_name = cookie_name
        self._signer = Signer(secret_key, salt=cookie_name)

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    def credentials_match(self, username: Optional[str], password: Optional[str]) -> bool:
        if not isinstance(username, str) or not isinstance(password, str):
            return False
        if not self._credentials.username or not self._credentials.password:
            return False
        user_ok = _matches(username, self._credentials.username)
        password_ok = _matches(password, self._credentials.password)
        return user_ok and password_ok

    def login(self, username: Optional[str], password: Optional[str]) -> str:
        """Return the signed session cookie value for valid credentials."""

        if not self.credentials_match(username, password):
            emit_auth_event("Rejected admin login", level=logging.WARNING)
            raise Unauthorized("Invalid credentials")
        emit_auth_event("Admin logged in")
        return self._signer.sign(SESSION_TOKEN).decode("utf-8")

    def is_authenticated(self, cookie_value: Optional[str]) -> bool:
        if not cookie_value:
            return False
        try:
            value = self._signer.unsign(cookie_value)
        except BadSignature:
            return False
        return value.decode("utf-8", errors="replace") == SESSION_TOKEN

    def require(self, cookie_value: Optional[str]) -> None:
        if not self.is_authenticated(cookie_value):
            LOGGER.debug("Rejected request without a valid admin session")
            raise Unauthorized("Unauthorized")


__all__ = ["AdminGate", "SESSION_TOKEN"]
