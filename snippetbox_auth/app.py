# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import atexit

from flask import Flask

from snippetbox_auth.container import Container
from snippetbox_auth.infrastructure.db import Database
from snippetbox_auth.shared.config import AppConfig, load_config
from snippetbox_auth.shared.logging import logger, setup_logging
from snippetbox_auth.shared.middleware import (
    configure_error_handling,
    configure_request_deadline,
    configure_request_logging,
    configure_sessions,
)


def create_app(config: AppConfig | None = None, *, start_sweeper: bool = True) -> Flask:
    config = config or load_config()
    setup_logging("DEBUG" if config.debug_logging else config.log_level)

    database = Database(config.database, step_timeout=config.auth.request_deadline)
    database.init_schema()
    container = Container(config, database)

    app = Flask(__name__)
    app.config.update(SECRET_KEY=config.secret_key)
    app.extensions["snippetbox_auth"] = container

    configure_error_handling(app, debug_mode=config.debug_logging)
    configure_request_logging(app, debug_mode=config.debug_logging)
    configure_request_deadline(app, config.auth.request_deadline)
    configure_sessions(
        app,
        binder=container.session_binder,
        credentials=container.credential_service,
        config=config.session,
    )
    app.register_blueprint(container.auth_controller.as_blueprint())

    if start_sweeper:
        container.session_sweeper.start()
        atexit.register(container.session_sweeper.stop)

    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "origin-when-cross-origin")
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-XSS-Protection", "0")
        resp.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com",
        )
        if config.session.cookie_secure:
            resp.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return resp

    logger.info(f"Flask app initialized env={config.app_env}")
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=4000, debug=False)
