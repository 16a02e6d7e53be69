# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar
from urllib.parse import quote

from fastapi import Request

from eventdesk.auth.session import SessionManager
from eventdesk.auth.users import CredentialStore, UserIdentity
from eventdesk.errors import LoginRequired

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"

T = TypeVar("T")


def login_url(next_url: str = "/") -> str:
    if not next_url or next_url == "/":
        return LOGIN_PATH
    return f"{LOGIN_PATH}?next={quote(next_url, safe='/')}"


class AccessGuard:
    """Gate in front of every protected operation.

    Two states only: a request either resolves to a known user or it does not.
    A valid signature for a user that no longer exists counts as "not".
    """

    def __init__(self, sessions: SessionManager, credentials: CredentialStore):
        self.sessions = sessions
        self.credentials = credentials

    def identify(self, token: Optional[str]) -> Optional[UserIdentity]:
        sess = self.sessions.read_session(token)
        if not sess:
            return None
        user = self.credentials.get_by_id(sess.user_id)
        if user is None:
            logger.warning("Session for unknown user %s rejected", sess.user_id)
        return user

    def require(self, token: Optional[str], next_url: str = "/") -> UserIdentity:
        user = self.identify(token)
        if user is None:
            raise LoginRequired(login_url(next_url))
        return user

    def run(self, token: Optional[str], operation: Callable[..., T], *args, **kwargs) -> T:
        self.require(token)
        return operation(*args, **kwargs)


def _guard(request: Request) -> AccessGuard:
    return request.app.state.guard


def load_user_from_request(request: Request) -> Optional[UserIdentity]:
    guard = _guard(request)
    token = request.cookies.get(guard.sessions.cookie_name, "")
    return guard.identify(token)


def current_user_optional(request: Request) -> Optional[UserIdentity]:
    u = getattr(request.state, "user", None)
    if u is not None:
        return u
    return load_user_from_request(request)


def require_user(request: Request) -> UserIdentity:
    u = getattr(request.state, "user", None)
    if u is not None:
        return u
    guard = _guard(request)
    next_url = str(request.url.path)
    if request.url.query:
        next_url += "?" + request.url.query
    # LoginRequired is turned into a 303 by the app exception handler.
    return guard.require(request.cookies.get(guard.sessions.cookie_name, ""), next_url)
