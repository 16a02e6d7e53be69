import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from eventdesk.app import create_app
from eventdesk.auth.passwords import hash_password
from eventdesk.auth.session import SessionManager
from eventdesk.auth.users import CredentialStore
from eventdesk.config import Settings
from eventdesk.store.events import EventStore

USER_EMAIL = "user@mail.com"
USER_PASSWORD = "correct horse battery staple"
USER_ID = "u-0001"


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(USER_PASSWORD)


@pytest.fixture()
def users_file(tmp_path: Path, password_hash: str) -> Path:
    """A users.yml with one regular user and one entry missing its hash."""
    path = tmp_path / "users.yml"
    raw = {
        "version": 1,
        "users": {
            USER_EMAIL: {"id": USER_ID, "display_name": "Jane Doe", "password_hash": password_hash},
            "broken@mail.com": {"id": "u-0002"},
        },
    }
    path.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture()
def settings(users_file: Path) -> Settings:
    return Settings(secret_key="test-secret-key", users_path=users_file, log_level="DEBUG")


@pytest.fixture()
def credentials(users_file: Path) -> CredentialStore:
    return CredentialStore.from_yaml(users_file)


@pytest.fixture()
def sessions(settings: Settings) -> SessionManager:
    return SessionManager(settings)


@pytest.fixture()
def store() -> EventStore:
    return EventStore()


@pytest.fixture()
def client(settings, store, credentials) -> TestClient:
    return TestClient(create_app(settings=settings, store=store, credentials=credentials))


@pytest.fixture()
def logged_in_client(client: TestClient) -> TestClient:
    r = client.post(
        "/login",
        data={"email": USER_EMAIL, "password": USER_PASSWORD},
        follow_redirects=False,
    )
    assert r.status_code == 303
    return client
