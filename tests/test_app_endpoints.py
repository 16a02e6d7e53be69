from dataclasses import replace

import pytest

from eventdesk.app import create_app, parse_bool_literal
from eventdesk.errors import GENERIC_LOGIN_ERROR, ConfigurationError, ValidationError
from eventdesk.store.events import EventMutation

from conftest import USER_EMAIL, USER_PASSWORD


def test_app_refuses_to_start_without_secret(monkeypatch):
    monkeypatch.delenv("EVD_SECRET_KEY", raising=False)
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        create_app()


def test_app_refuses_blank_secret_in_explicit_settings(settings, credentials):
    with pytest.raises(ConfigurationError):
        create_app(settings=replace(settings, secret_key=""), credentials=credentials)


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/"),
        ("get", "/events"),
        ("get", "/events/abc"),
        ("get", "/events/abc/edit"),
        ("post", "/events"),
        ("post", "/events/abc"),
        ("post", "/events/abc/delete"),
        ("post", "/events/abc/favorite"),
    ],
)
def test_protected_routes_redirect_to_login(client, store, method, path):
    store.create(EventMutation(id="abc", title="Secret"))
    r = getattr(client, method)(path, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("/login")
    assert store.get("abc").title == "Secret"
    assert len(store) == 1


def test_redirect_keeps_requested_path(client):
    r = client.get("/events/abc", follow_redirects=False)
    assert r.headers["location"] == "/login?next=/events/abc"


def test_redirect_keeps_query_string(client):
    r = client.get("/events", params={"q": "a"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login?next=/events%3Fq%3Da"


def test_login_page(client):
    r = client.get("/login")
    assert r.status_code == 200
    assert 'name="email"' in r.text


@pytest.mark.parametrize(
    "email,password",
    [
        (USER_EMAIL, "wrong"),
        ("nobody@mail.com", USER_PASSWORD),
        (USER_EMAIL, ""),
        ("", "x"),
        ("", ""),
    ],
)
def test_login_failure_is_generic(client, email, password):
    r = client.post("/login", data={"email": email, "password": password}, follow_redirects=False)
    assert r.status_code == 401
    assert GENERIC_LOGIN_ERROR in r.text
    assert "set-cookie" not in r.headers


def test_login_sets_session_cookie(client, settings):
    r = client.post(
        "/login",
        data={"email": USER_EMAIL, "password": USER_PASSWORD},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    cookie = r.headers["set-cookie"].lower()
    assert cookie.startswith(settings.cookie_name + "=")
    assert "httponly" in cookie
    assert "samesite=lax" in cookie
    assert "path=/" in cookie
    assert "; secure" not in cookie


def test_login_honours_local_next_only(client):
    data = {"email": USER_EMAIL, "password": USER_PASSWORD}
    r = client.post("/login", data={**data, "next": "/events/abc"}, follow_redirects=False)
    assert r.headers["location"] == "/events/abc"
    r = client.post("/login", data={**data, "next": "https://evil.example"}, follow_redirects=False)
    assert r.headers["location"] == "/"
    r = client.post("/login", data={**data, "next": "//evil.example"}, follow_redirects=False)
    assert r.headers["location"] == "/"


def test_login_page_redirects_when_logged_in(logged_in_client):
    r = logged_in_client.get("/login", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


def test_login_logout_scenario(logged_in_client, store):
    rec = store.create(EventMutation(title="Team offsite", date="2024-05-05"))
    r = logged_in_client.get(f"/events/{rec.id}")
    assert r.status_code == 200
    assert "Team offsite" in r.text

    r = logged_in_client.post("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"

    r = logged_in_client.get(f"/events/{rec.id}", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("/login")


def test_tampered_cookie_is_unauthenticated(client, settings, sessions, credentials):
    token = sessions.create_session(credentials.get_by_email(USER_EMAIL)).value
    client.cookies.set(settings.cookie_name, "A" + token[1:] if token[0] != "A" else "B" + token[1:])
    r = client.get("/events", follow_redirects=False)
    assert r.status_code == 303


def test_home_redirects_to_events(logged_in_client):
    r = logged_in_client.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/events"


def test_list_and_search(logged_in_client, store):
    store.create(EventMutation(title="Board games", date="2024-01-01"))
    store.create(EventMutation(title="Chess night", date="2024-02-01"))
    r = logged_in_client.get("/events")
    assert r.status_code == 200
    assert r.text.index("Chess night") < r.text.index("Board games")

    r = logged_in_client.get("/events", params={"q": "board"})
    assert "Board games" in r.text
    assert "Chess night" not in r.text


def test_create_empty_event(logged_in_client, store):
    r = logged_in_client.post("/events", follow_redirects=False)
    assert r.status_code == 303
    (rec,) = store.list()
    assert r.headers["location"] == f"/events/{rec.id}/edit"
    assert logged_in_client.get(r.headers["location"]).status_code == 200


def test_update_event(logged_in_client, store):
    rec = store.create(EventMutation(title="Draft", location="Room 1"))
    r = logged_in_client.post(
        f"/events/{rec.id}",
        data={"title": "Final", "date": "2024-07-01", "human_id": "ignored"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == f"/events/{rec.id}"
    updated = store.get(rec.id)
    assert updated.title == "Final"
    assert updated.date == "2024-07-01"
    assert updated.location == "Room 1"


def test_update_with_blank_field_clears_it(logged_in_client, store):
    rec = store.create(EventMutation(title="Talk", organizer="Ops"))
    logged_in_client.post(f"/events/{rec.id}", data={"organizer": ""}, follow_redirects=False)
    assert store.get(rec.id).organizer is None
    assert store.get(rec.id).title == "Talk"


def test_update_bad_date_is_400(logged_in_client, store):
    rec = store.create(EventMutation(title="Talk"))
    r = logged_in_client.post(f"/events/{rec.id}", data={"date": "next friday"}, follow_redirects=False)
    assert r.status_code == 400
    assert store.get(rec.id).date is None


def test_update_missing_is_404(logged_in_client, store):
    r = logged_in_client.post("/events/missing-id", data={"title": "x"}, follow_redirects=False)
    assert r.status_code == 404
    assert len(store) == 0


def test_get_missing_is_404(logged_in_client):
    assert logged_in_client.get("/events/missing-id").status_code == 404
    assert logged_in_client.get("/events/missing-id/edit").status_code == 404


def test_blank_id_is_400(logged_in_client):
    assert logged_in_client.get("/events/%20").status_code == 400


def test_delete_event(logged_in_client, store):
    rec = store.create(EventMutation(title="gone"))
    r = logged_in_client.post(f"/events/{rec.id}/delete", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    assert store.get(rec.id) is None
    r = logged_in_client.post(f"/events/{rec.id}/delete", follow_redirects=False)
    assert r.status_code == 303


def test_favorite_toggle(logged_in_client, store):
    rec = store.create(EventMutation(title="fav"))
    r = logged_in_client.post(f"/events/{rec.id}/favorite", data={"favorite": "true"}, follow_redirects=False)
    assert r.status_code == 303
    assert store.get(rec.id).favorite is True
    logged_in_client.post(f"/events/{rec.id}/favorite", data={"favorite": "false"}, follow_redirects=False)
    assert store.get(rec.id).favorite is False


def test_favorite_rejects_non_literal(logged_in_client, store):
    rec = store.create(EventMutation(title="fav"))
    r = logged_in_client.post(f"/events/{rec.id}/favorite", data={"favorite": "yes"}, follow_redirects=False)
    assert r.status_code == 400
    assert store.get(rec.id).favorite is False


def test_parse_bool_literal():
    assert parse_bool_literal("true") is True
    assert parse_bool_literal("false") is False
    for bad in ["True", "1", "", None]:
        with pytest.raises(ValidationError):
            parse_bool_literal(bad)


def test_seed_loaded_at_startup(settings, credentials, tmp_path):
    seed = tmp_path / "events.yml"
    seed.write_text("- title: Seeded\n  date: 2024-01-01\n", encoding="utf-8")
    app = create_app(settings=replace(settings, seed_path=seed), credentials=credentials)
    assert [e.title for e in app.state.store.list()] == ["Seeded"]
