#!/usr/bin/env python3
from __future__ import annotations

import os
import uuid
from getpass import getpass
from pathlib import Path

import yaml

from eventdesk.auth.passwords import hash_password
from eventdesk.config import DEFAULT_USERS_PATH

USERS_PATH = Path(os.getenv("EVD_USERS_PATH", str(DEFAULT_USERS_PATH))).resolve()


def main() -> None:
    USERS_PATH.parent.mkdir(parents=True, exist_ok=True)
    if USERS_PATH.exists():
        raw = yaml.safe_load(USERS_PATH.read_text(encoding="utf-8")) or {}
    else:
        raw = {"version": 1, "users": {}}

    if "users" not in raw or not isinstance(raw["users"], dict):
        raw["users"] = {}

    email = input("Email: ").strip()
    if not email:
        raise SystemExit("Email is required")
    display_name = input("Display name (optional): ").strip()

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    existing = raw["users"].get(email) or {}
    raw["users"][email] = {
        "id": existing.get("id") or uuid.uuid4().hex[:12],
        "display_name": display_name or None,
        "password_hash": hash_password(pw1),
    }

    USERS_PATH.write_text(yaml.safe_dump(raw, sort_keys=False, allow_unicode=True), encoding="utf-8")
    print(f"OK -> {USERS_PATH}")


if __name__ == "__main__":
    main()
