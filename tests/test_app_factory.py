from __future__ import annotations

from flask import Flask

from pastelite import create_app
from pastelite.clock import (
    CLOCK_EXTENSION_KEY,
    ManualClock,
    RequestHeaderClock,
    SystemClock,
)
from pastelite.config import (
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
)


def test_create_app_returns_flask_instance() -> None:
    app = create_app("testing")
    assert isinstance(app, Flask)


def test_routes_are_registered() -> None:
    app = create_app("testing")
    rules = {rule.rule for rule in app.url_map.iter_rules()}
    assert {"/api/healthz", "/api/pastes", "/api/pastes/<paste_id>", "/p/<paste_id>"} <= rules


def test_system_clock_used_outside_test_mode() -> None:
    app = create_app("testing", config_overrides={"TEST_MODE": False})
    assert isinstance(app.extensions[CLOCK_EXTENSION_KEY], SystemClock)


def test_header_clock_used_in_test_mode() -> None:
    app = create_app("testing", config_overrides={"TEST_MODE": True})
    assert isinstance(app.extensions[CLOCK_EXTENSION_KEY], RequestHeaderClock)


def test_explicit_clock_wins() -> None:
    clock = ManualClock()
    app = create_app("testing", clock=clock, config_overrides={"TEST_MODE": True})
    assert app.extensions[CLOCK_EXTENSION_KEY] is clock


def test_get_config_by_name() -> None:
    assert get_config("testing") is TestingConfig
    assert get_config("prod") is ProductionConfig
    assert get_config(None) is DevelopmentConfig
    assert get_config("unknown") is DevelopmentConfig


def test_production_never_enables_test_mode() -> None:
    assert ProductionConfig.TEST_MODE is False
