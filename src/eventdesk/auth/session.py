# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Signed session tokens.

A session is ``{uid, iat}`` signed and timestamped by itsdangerous. There is no
server-side session table: any token that fails verification, has expired, or
carries a malformed payload simply reads back as "no session".
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from eventdesk.auth.users import UserIdentity
from eventdesk.config import Settings
from eventdesk.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    user_id: str
    issued_at: int


@dataclass(frozen=True)
class CookieDirective:
    """How the transport must set (or expire) the session cookie."""

    name: str
    value: str
    max_age: int
    httponly: bool = True
    samesite: str = "lax"
    secure: bool = False
    path: str = "/"

    def cookie_kwargs(self) -> dict:
        return {
            "key": self.name,
            "value": self.value,
            "max_age": self.max_age,
            "httponly": self.httponly,
            "samesite": self.samesite,
            "secure": self.secure,
            "path": self.path,
        }


class SessionManager:
    def __init__(self, settings: Settings):
        if not settings.secret_key:
            raise ConfigurationError("SessionManager needs a signing secret")
        self._settings = settings
        self._serializer = URLSafeTimedSerializer(secret_key=settings.secret_key, salt=settings.session_salt)

    @property
    def cookie_name(self) -> str:
        return self._settings.cookie_name

    def _directive(self, value: str, max_age: int) -> CookieDirective:
        return CookieDirective(
            name=self._settings.cookie_name,
            value=value,
            max_age=max_age,
            secure=self._settings.cookie_secure,
        )

    def create_session(self, identity: UserIdentity) -> CookieDirective:
        token = self._serializer.dumps({"uid": identity.id, "iat": int(time.time())})
        return self._directive(token, self._settings.session_max_age)

    def read_session(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        try:
            data = self._serializer.loads(token, max_age=self._settings.session_max_age)
        except SignatureExpired:
            logger.debug("Session token expired")
            return None
        except BadData:
            logger.debug("Session token rejected: bad signature or payload")
            return None

        if not isinstance(data, dict):
            logger.debug("Session token rejected: payload is not an object")
            return None
        uid = str(data.get("uid") or "").strip()
        iat = data.get("iat")
        if not uid or not isinstance(iat, int) or isinstance(iat, bool):
            logger.debug("Session token rejected: malformed payload")
            return None
        return Session(user_id=uid, issued_at=iat)

    def destroy_session(self, token: Optional[str] = None) -> CookieDirective:
        """Return a directive that blanks and expires the cookie client-side."""
        sess = self.read_session(token)
        if sess:
            logger.info("User %s logged out", sess.user_id)
        return self._directive("", 0)
