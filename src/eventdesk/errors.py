# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Domain error codes and exceptions."""

from __future__ import annotations

from enum import Enum

GENERIC_LOGIN_ERROR = "Invalid email or password"


class ErrorCode(Enum):
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    CONFIGURATION = "CONFIGURATION"
    VALIDATION = "VALIDATION"
    LOGIN_REQUIRED = "LOGIN_REQUIRED"


class DomainError(Exception):
    """Base error with a code and a user-safe message."""

    code: ErrorCode = ErrorCode.VALIDATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class AuthError(DomainError):
    """Login failed. Subclasses only differ in logs, never in what users see."""

    def __init__(self, email: str) -> None:
        super().__init__(GENERIC_LOGIN_ERROR)
        self.email = email


class UserNotFoundError(AuthError):
    code = ErrorCode.USER_NOT_FOUND


class InvalidCredentialsError(AuthError):
    code = ErrorCode.INVALID_CREDENTIALS


class NotFoundError(DomainError):
    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: str) -> None:
        super().__init__("Event not found")
        self.event_id = event_id


class ConfigurationError(DomainError):
    code = ErrorCode.CONFIGURATION


class ValidationError(DomainError):
    code = ErrorCode.VALIDATION


class LoginRequired(DomainError):
    code = ErrorCode.LOGIN_REQUIRED

    def __init__(self, login_url: str = "/login") -> None:
        super().__init__("Login required")
        self.login_url = login_url
