# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Credential store and authenticator.

Users live in a YAML file keyed by email::

    version: 1
    users:
      user@mail.com:
        id: u-1
        display_name: Jane
        password_hash: $argon2id$...

The store is loaded once at startup and is read-only afterwards. Password
hashes stay inside this module: callers only ever see ``UserIdentity``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml

from eventdesk.auth.passwords import hash_password, needs_rehash, verify_password
from eventdesk.errors import ConfigurationError, InvalidCredentialsError, UserNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserIdentity:
    id: str
    display_name: Optional[str]
    email: str


@dataclass(frozen=True)
class UserRecord:
    id: str
    display_name: Optional[str]
    email: str
    password_hash: str

    def identity(self) -> UserIdentity:
        return UserIdentity(id=self.id, display_name=self.display_name, email=self.email)


def _load_users_file(path: Path) -> Dict[str, UserRecord]:
    if not path.exists():
        logger.warning("Users file %s not found; nobody will be able to log in", path)
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    users = (raw.get("users") or {}) if isinstance(raw, dict) else {}
    out: Dict[str, UserRecord] = {}
    for email, udata in users.items():
        if not isinstance(udata, dict):
            continue
        email = str(email).strip()
        uid = str(udata.get("id") or "").strip()
        ph = str(udata.get("password_hash") or "").strip()
        if not email or not uid or not ph:
            logger.warning("Skipping incomplete user entry %r in %s", email, path)
            continue
        name = udata.get("display_name")
        out[email] = UserRecord(
            id=uid,
            display_name=str(name).strip() if name else None,
            email=email,
            password_hash=ph,
        )
    return out


class CredentialStore:
    """Read-only user lookup by email (exact, case-sensitive) or id."""

    def __init__(self, records: Dict[str, UserRecord]):
        by_id: Dict[str, UserRecord] = {}
        for rec in records.values():
            if rec.id in by_id:
                raise ConfigurationError(f"Duplicate user id {rec.id!r}")
            by_id[rec.id] = rec
        self._by_email = dict(records)
        self._by_id = by_id

    @classmethod
    def from_yaml(cls, path: Path) -> "CredentialStore":
        store = cls(_load_users_file(Path(path)))
        logger.info("Loaded %d user(s) from %s", len(store), path)
        return store

    def __len__(self) -> int:
        return len(self._by_email)

    def get_by_email(self, email: str) -> Optional[UserIdentity]:
        rec = self._by_email.get(email or "")
        return rec.identity() if rec else None

    def get_by_id(self, user_id: str) -> Optional[UserIdentity]:
        rec = self._by_id.get(user_id or "")
        return rec.identity() if rec else None

    def _record(self, email: str) -> Optional[UserRecord]:
        return self._by_email.get(email or "")


class Authenticator:
    def __init__(self, store: CredentialStore):
        self._store = store
        self._dummy_hash: Optional[str] = None

    def _burn_verification(self, password: str) -> None:
        # Unknown emails still pay for one argon2 verification.
        if self._dummy_hash is None:
            self._dummy_hash = hash_password("not-a-real-password")
        verify_password(self._dummy_hash, password or "x")

    def authenticate(self, email: str, password: str) -> UserIdentity:
        rec = self._store._record(email)
        if rec is None:
            self._burn_verification(password)
            logger.info("Login failed for %r: unknown email", email)
            raise UserNotFoundError(email)
        if not verify_password(rec.password_hash, password):
            logger.info("Login failed for %r: wrong password", email)
            raise InvalidCredentialsError(email)
        if needs_rehash(rec.password_hash):
            logger.warning("Password hash for user %s uses outdated parameters", rec.id)
        logger.info("User %s logged in", rec.id)
        return rec.identity()
