"""Fixtures for probe endpoints, which need a database of their own.

Probes open fresh connections from the engine; the shared in-memory
connection used by the transactional fixtures would be reset by them, so
these tests run against a file-backed SQLite database instead.
"""

from __future__ import annotations

import pytest
from authgate.core.config import TestingConfig
from authgate.core.extensions import db as _db
from authgate.factory import create_app


@pytest.fixture(autouse=True)
def _factories_session():
    """Probe tests never touch the transactional session."""
    yield


def _make_app(tmp_path, *, create_schema: bool):
    class ProbeConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'probes.db'}"
        LOG_LEVEL = "WARNING"

    app = create_app(ProbeConfig)
    if create_schema:
        with app.app_context():
            _db.create_all()
    return app


@pytest.fixture()
def probe_app(tmp_path):
    app = _make_app(tmp_path, create_schema=True)
    yield app
    with app.app_context():
        _db.engine.dispose()


@pytest.fixture()
def empty_probe_app(tmp_path):
    app = _make_app(tmp_path, create_schema=False)
    yield app
    with app.app_context():
        _db.engine.dispose()
