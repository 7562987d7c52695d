"""Configuration selection and the production signing-key guard."""

from __future__ import annotations

import pytest
from authgate.core.config import (
    PLACEHOLDER_JWT_SECRET,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    env_bool,
    get_config,
)
from authgate.factory import create_app


@pytest.mark.parametrize(
    ("env", "expected"),
    [("production", ProductionConfig), ("Testing", TestingConfig), ("unknown", DevelopmentConfig)],
)
def test_get_config_from_env(monkeypatch, env, expected):
    monkeypatch.setenv("APP_ENV", env)
    assert get_config() is expected


@pytest.mark.parametrize(("raw", "expected"), [("yes", True), ("On", True), ("0", False), ("nope", False)])
def test_env_bool(monkeypatch, raw, expected):
    monkeypatch.setenv("SOME_FLAG", raw)
    assert env_bool("SOME_FLAG") is expected


def test_production_refuses_placeholder_signing_key():
    class UnsafeProduction(ProductionConfig):
        JWT_SECRET_KEY = PLACEHOLDER_JWT_SECRET
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        REDIS_URL = None

    with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
        create_app(UnsafeProduction)
