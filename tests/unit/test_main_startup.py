from __future__ import annotations

import asyncio
import logging

import pytest

from api.db.session import get_db
from api.main import _initialise_application, app, app_lifespan
from catalog.qloo_client import CatalogConfigError


class _ClosableClient:
    def __init__(self):
        self.closed = False

    async def aclose(self):
        self.closed = True


def test_initialise_application_initialises_engine(monkeypatch):
    called = {"init": 0, "sessionmaker": 0}

    def fake_init():
        called["init"] += 1

    def fake_get_sessionmaker():
        called["sessionmaker"] += 1

    monkeypatch.setattr("api.main.init_engine", fake_init)
    monkeypatch.setattr("api.main.get_sessionmaker", fake_get_sessionmaker)

    # ensure no overrides so startup should call both functions
    app.dependency_overrides.clear()
    _initialise_application(app)

    assert called["init"] == 1
    assert called["sessionmaker"] == 1


def test_initialise_application_skips_when_override_present(monkeypatch):
    called = {"init": 0}

    def fake_init():
        called["init"] += 1

    monkeypatch.setattr("api.main.init_engine", fake_init)

    def override_get_db():
        yield None

    app.dependency_overrides[get_db] = override_get_db
    _initialise_application(app)

    assert called["init"] == 0


def test_lifespan_builds_and_closes_catalog_client(monkeypatch):
    client = _ClosableClient()
    monkeypatch.setattr("api.main._initialise_application", lambda app: None)
    monkeypatch.setattr("api.main.build_catalog_client", lambda: client)
    app.state.catalog_client = None

    async def scenario():
        async with app_lifespan(app):
            assert app.state.catalog_client is client
            assert client.closed is False

    asyncio.run(scenario())

    assert client.closed is True
    assert app.state.catalog_client is None


def test_lifespan_keeps_preconfigured_client(monkeypatch):
    client = _ClosableClient()
    monkeypatch.setattr("api.main._initialise_application", lambda app: None)

    def fail_build():
        raise AssertionError("should not build a second client")

    monkeypatch.setattr("api.main.build_catalog_client", fail_build)
    app.state.catalog_client = client

    async def scenario():
        async with app_lifespan(app):
            assert app.state.catalog_client is client

    asyncio.run(scenario())

    assert client.closed is False
    assert app.state.catalog_client is client


def test_missing_catalog_credentials_abort_startup(monkeypatch):
    monkeypatch.setattr("api.main._initialise_application", lambda app: None)
    monkeypatch.setattr("api.config.QLOO_API_KEY", "")
    app.state.catalog_client = None

    async def scenario():
        async with app_lifespan(app):
            pass

    with pytest.raises(CatalogConfigError):
        asyncio.run(scenario())


def test_http_client_loggers_are_quieted():
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
