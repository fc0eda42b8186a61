from __future__ import annotations

from flask import Flask

from pastebin import create_app
from pastebin.config import DevelopmentConfig, ProductionConfig, get_config


def test_create_app_returns_flask_instance() -> None:
    app = create_app("testing")
    assert isinstance(app, Flask)
    assert app.config["TESTING"] is True
    assert app.config["PURGE_EXPIRED_ENABLED"] is False


def test_config_overrides_are_applied_last() -> None:
    app = create_app("testing", {"TEST_MODE": True, "CORS_ORIGIN": "https://paste.example"})
    assert app.config["TEST_MODE"] is True
    assert app.config["CORS_ORIGIN"] == "https://paste.example"


def test_get_config_falls_back_to_development() -> None:
    assert get_config(None) is DevelopmentConfig
    assert get_config("unknown") is DevelopmentConfig
    assert get_config("prod") is ProductionConfig


def test_routes_are_registered() -> None:
    app = create_app("testing")
    rules = {rule.rule for rule in app.url_map.iter_rules()}
    assert {"/api/healthz", "/api/pastes", "/api/pastes/<paste_id>", "/p/<paste_id>"} <= rules
