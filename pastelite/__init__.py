from __future__ import annotations

import logging
import os
from http import HTTPStatus
from typing import Any, Mapping

from flask import Flask
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError

from .api import register_blueprints
from .clock import Clock, init_clock
from .config import get_config
from .db import init_db
from .observability import get_correlation_id, init_observability


logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(SQLAlchemyError)
    def _handle_database_error(exc: SQLAlchemyError):  # type: ignore[unused-variable]
        logger.exception(
            "Unhandled database error",
            extra={
                "event": "unhandled_database_error",
                "error_type": type(exc).__name__,
                "correlation_id": get_correlation_id(),
            },
        )
        return {"error": "Internal server error"}, HTTPStatus.INTERNAL_SERVER_ERROR


def create_app(
    env_name: str | None = None,
    *,
    clock: Clock | None = None,
    config_overrides: Mapping[str, Any] | None = None,
) -> Flask:
    """
    Application factory for the Flask backend.

    The configuration is selected based on the provided ``env_name`` or,
    if not given, the ``APP_ENV`` environment variable (falling back to
    ``development``). ``clock`` replaces the clock otherwise picked from
    ``TEST_MODE``.
    """
    if env_name is None:
        env_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__)
    app_config = get_config(env_name)
    app.config.from_object(app_config)
    if config_overrides:
        app.config.update(config_overrides)

    CORS(app)

    # Initialize infrastructure layers
    init_observability(app)
    init_db(app)
    init_clock(app, clock)

    register_blueprints(app)
    _register_error_handlers(app)

    return app
