from __future__ import annotations

from flask import Flask

from .pages import pages_bp
from .pastes import api_bp


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(api_bp)
    app.register_blueprint(pages_bp)
