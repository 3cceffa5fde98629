# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from functools import wraps

from flask import Flask, Response, g, jsonify, make_response, request

from snippetbox_auth.application.services.credentials import CredentialService
from snippetbox_auth.application.services.session_binder import SessionBinder
from snippetbox_auth.domain.users.entities import Session
from snippetbox_auth.shared.config import SessionConfig
from snippetbox_auth.shared.logging import logger, set_user_id


def current_session() -> Session:
    return g.session


def replace_session(session: Session) -> Session:
    """Adopt a session returned by the binder so its cookie is written back."""
    g.session = session
    g.session_written = True
    return session


def current_user_id() -> int | None:
    return getattr(g, "user_id", None)


def require_authentication(f):
    @wraps(f)
    def inner(*a, **kw):
        if current_user_id() is None:
            logger.warning(
                f"Unauthenticated access to {request.method} {request.path}"
            )
            response = jsonify({"error": "unauthorized"})
            response.status_code = 401
        else:
            response = make_response(f(*a, **kw))
        # authenticated pages must not be cached by the browser
        response.headers["Cache-Control"] = "no-store"
        return response

    return inner


def configure_sessions(
    app: Flask,
    *,
    binder: SessionBinder,
    credentials: CredentialService,
    config: SessionConfig,
) -> None:
    @app.before_request
    def _load_session() -> None:
        g.session = binder.load(request.cookies.get(config.cookie_name))
        g.session_written = False
        g.user_id = None

        identity = binder.current_identity(g.session)
        if identity is None:
            return
        if credentials.exists(identity):
            g.user_id = identity
            set_user_id(identity)
        else:
            # account is gone; treat the request as anonymous
            logger.info(f"session: stale identity user_id={identity}")

    @app.after_request
    def _write_session(response: Response) -> Response:
        if not getattr(g, "session_written", False):
            return response

        session = current_session()
        response.set_cookie(
            config.cookie_name,
            session.token,
            expires=session.expires_at,
            path="/",
            httponly=True,
            secure=config.cookie_secure,
            samesite=config.cookie_samesite,
        )
        # cookie headers vary per client
        response.vary.add("Cookie")
        return response


__all__ = [
    "configure_sessions",
    "current_session",
    "current_user_id",
    "replace_session",
    "require_authentication",
]
