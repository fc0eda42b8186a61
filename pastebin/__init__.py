from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from flask import Flask
from flask_cors import CORS

from .config import get_config
from .db import init_db
from .observability import init_observability
from .api.pastes import api_bp
from .api.views import views_bp
from .worker.purge_worker import start_purge_worker


def create_app(
    env_name: str | None = None,
    config_overrides: Mapping[str, Any] | None = None,
) -> Flask:
    """
    Application factory for the paste service.

    The configuration is selected based on the provided ``env_name`` or,
    if not given, the ``APP_ENV`` environment variable (falling back to
    ``development``). ``config_overrides`` is applied last.
    """
    if env_name is None:
        env_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__)
    app_config = get_config(env_name)
    app.config.from_object(app_config)
    if config_overrides:
        app.config.update(config_overrides)

    origin = app.config["CORS_ORIGIN"]
    CORS(
        app,
        origins=origin,
        methods=["GET", "POST"],
        supports_credentials=origin != "*",
    )

    # Initialize infrastructure layers
    init_db(app)
    init_observability(app)

    # Register blueprints
    app.register_blueprint(api_bp)
    app.register_blueprint(views_bp)

    # Start background purge of expired pastes. The purge runs on the wall
    # clock, so it stays off in testing and whenever TEST_MODE lets requests
    # supply their own "now".
    if (
        not app.config.get("TESTING", False)
        and not app.config.get("TEST_MODE", False)
        and app.config.get("PURGE_EXPIRED_ENABLED", True)
    ):
        start_purge_worker(app)

    return app
