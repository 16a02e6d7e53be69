# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pydantic
from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from eventdesk.auth.session import CookieDirective, SessionManager
from eventdesk.auth.users import Authenticator, CredentialStore
from eventdesk.config import Settings, configure_logging
from eventdesk.errors import AuthError, LoginRequired, NotFoundError, ValidationError
from eventdesk.guard import AccessGuard, current_user_optional, require_user
from eventdesk.store.events import MUTABLE_FIELDS, EventMutation, EventStore

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

EDITABLE_FIELDS = tuple(f for f in MUTABLE_FIELDS if f != "favorite")


def _render(request: Request, template_name: str, ctx: dict, status_code: int = 200):
    """TemplateResponse wrapper injecting the current user."""
    base_ctx = {"current_user": getattr(request.state, "user", None)}
    return templates.TemplateResponse(request, template_name, {**base_ctx, **(ctx or {})}, status_code=status_code)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def _set_cookie(resp, directive: CookieDirective) -> None:
    resp.set_cookie(**directive.cookie_kwargs())


def _safe_next(next_url: Optional[str]) -> str:
    """Only site-relative redirect targets are honoured."""
    n = (next_url or "").strip()
    if not n.startswith("/") or n.startswith("//") or "\\" in n:
        return "/"
    return n


def parse_bool_literal(value: Optional[str]) -> bool:
    v = (value or "").strip()
    if v == "true":
        return True
    if v == "false":
        return False
    raise ValidationError(f"Expected 'true' or 'false', got {value!r}")


def _mutation(fields: dict) -> EventMutation:
    try:
        return EventMutation(**fields)
    except pydantic.ValidationError as e:
        msgs = "; ".join(str(err.get("msg", "")) for err in e.errors())
        raise ValidationError(msgs or "Invalid event data") from None


def get_store(request: Request) -> EventStore:
    return request.app.state.store


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[EventStore] = None,
    credentials: Optional[CredentialStore] = None,
) -> FastAPI:
    # Missing secret raises ConfigurationError here, before anything is served.
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    credentials = credentials if credentials is not None else CredentialStore.from_yaml(settings.users_path)
    store = store if store is not None else EventStore()
    if settings.seed_path:
        store.load_seed(settings.seed_path)

    sessions = SessionManager(settings)

    app = FastAPI()
    app.state.settings = settings
    app.state.store = store
    app.state.credentials = credentials
    app.state.sessions = sessions
    app.state.authenticator = Authenticator(credentials)
    app.state.guard = AccessGuard(sessions, credentials)

    @app.middleware("http")
    async def _auth_middleware(request: Request, call_next):
        request.state.user = current_user_optional(request)
        return await call_next(request)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return _render(request, "error.html", {"title": "Not found", "message": exc.message}, status_code=404)

    @app.exception_handler(ValidationError)
    async def _bad_request(request: Request, exc: ValidationError):
        return _render(request, "error.html", {"title": "Bad request", "message": exc.message}, status_code=400)

    @app.exception_handler(LoginRequired)
    async def _login_required(request: Request, exc: LoginRequired):
        return _redirect(exc.login_url)

    # ------------------ Routes ------------------

    @app.get("/login", response_class=HTMLResponse)
    def login_get(request: Request, next: str = "/"):
        if getattr(request.state, "user", None):
            return _redirect(_safe_next(next))
        return _render(request, "login.html", {"next": _safe_next(next), "error": "", "email": ""})

    @app.post("/login")
    def login_post(
        request: Request,
        email: str = Form(""),
        password: str = Form(""),
        next: str = Form("/"),
    ):
        try:
            user = request.app.state.authenticator.authenticate(email=email, password=password)
        except AuthError as e:
            return _render(
                request,
                "login.html",
                {"next": _safe_next(next), "error": e.message, "email": email},
                status_code=401,
            )
        resp = _redirect(_safe_next(next))
        _set_cookie(resp, request.app.state.sessions.create_session(user))
        return resp

    @app.post("/logout")
    def logout_post(request: Request):
        sessions: SessionManager = request.app.state.sessions
        directive = sessions.destroy_session(request.cookies.get(sessions.cookie_name))
        resp = _redirect("/login")
        _set_cookie(resp, directive)
        return resp

    @app.get("/")
    def home(user=Depends(require_user)):
        return _redirect("/events")

    @app.get("/events", response_class=HTMLResponse)
    def list_events(
        request: Request,
        q: str = "",
        user=Depends(require_user),
        store: EventStore = Depends(get_store),
    ):
        events = store.search(q)
        return _render(request, "events.html", {"events": events, "q": q})

    @app.post("/events")
    def create_event(user=Depends(require_user), store: EventStore = Depends(get_store)):
        rec = store.create_empty()
        return _redirect(f"/events/{rec.id}/edit")

    @app.get("/events/{event_id}", response_class=HTMLResponse)
    def show_event(
        request: Request,
        event_id: str,
        user=Depends(require_user),
        store: EventStore = Depends(get_store),
    ):
        rec = store.get(event_id)
        if rec is None:
            raise NotFoundError(event_id)
        return _render(request, "event.html", {"event": rec})

    @app.get("/events/{event_id}/edit", response_class=HTMLResponse)
    def edit_event(
        request: Request,
        event_id: str,
        user=Depends(require_user),
        store: EventStore = Depends(get_store),
    ):
        rec = store.get(event_id)
        if rec is None:
            raise NotFoundError(event_id)
        return _render(request, "edit.html", {"event": rec, "fields": EDITABLE_FIELDS})

    @app.post("/events/{event_id}")
    async def update_event(
        request: Request,
        event_id: str,
        user=Depends(require_user),
        store: EventStore = Depends(get_store),
    ):
        form = await request.form()
        # Field names come from the edit form; anything else is ignored.
        fields = {k: str(v) for k, v in form.items() if k in EDITABLE_FIELDS}
        rec = store.update(event_id, _mutation(fields))
        return _redirect(f"/events/{rec.id}")

    @app.post("/events/{event_id}/delete")
    def delete_event(event_id: str, user=Depends(require_user), store: EventStore = Depends(get_store)):
        store.delete(event_id)
        return _redirect("/")

    @app.post("/events/{event_id}/favorite")
    def favorite_event(
        event_id: str,
        favorite: str = Form(...),
        user=Depends(require_user),
        store: EventStore = Depends(get_store),
    ):
        rec = store.set_favorite(event_id, parse_bool_literal(favorite))
        return _redirect(f"/events/{rec.id}")

    return app
