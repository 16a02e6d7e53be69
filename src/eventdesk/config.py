# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from eventdesk.errors import ConfigurationError

# Anchor default data paths to the project root, not the working directory.
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_USERS_PATH = BASE_DIR / "data" / "users.yml"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_TRUTHY = {"1", "true", "yes", "y"}


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    secret_key: str
    session_salt: str = "eventdesk.session.v1"
    cookie_name: str = "evd_session"
    session_max_age: int = 28800  # 8 hours
    cookie_secure: bool = False
    users_path: Path = DEFAULT_USERS_PATH
    seed_path: Optional[Path] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the environment.

        Raises ConfigurationError when the signing secret is missing: the
        service must not start with an unsigned session scheme.
        """
        env = os.environ if environ is None else environ

        secret = (env.get("EVD_SECRET_KEY") or env.get("SECRET_KEY") or "").strip()
        if not secret:
            raise ConfigurationError("Missing EVD_SECRET_KEY (or SECRET_KEY) in environment")

        raw_max_age = env.get("EVD_SESSION_MAX_AGE", "28800")
        try:
            max_age = int(raw_max_age)
        except ValueError:
            raise ConfigurationError(f"EVD_SESSION_MAX_AGE must be an integer, got {raw_max_age!r}") from None
        if max_age <= 0:
            raise ConfigurationError("EVD_SESSION_MAX_AGE must be positive")

        production = (env.get("EVD_ENV") or "development").strip().lower() == "production"
        secure_override = env.get("EVD_COOKIE_SECURE")
        secure = _flag(secure_override) if secure_override is not None else production

        seed = (env.get("EVD_SEED_PATH") or "").strip()

        return cls(
            secret_key=secret,
            session_salt=env.get("EVD_SESSION_SALT", "eventdesk.session.v1"),
            cookie_name=env.get("EVD_COOKIE_NAME", "evd_session"),
            session_max_age=max_age,
            cookie_secure=secure,
            users_path=Path(env.get("EVD_USERS_PATH", str(DEFAULT_USERS_PATH))).resolve(),
            seed_path=Path(seed).resolve() if seed else None,
            log_level=(env.get("EVD_LOG_LEVEL") or "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)
