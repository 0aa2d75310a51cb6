"""
Shared pytest fixtures — in‑memory SQLite, FastAPI TestClient and mocked
outbound HTTP.
"""
import pathlib

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from verifier.database import Base, get_db
from verifier import models  # noqa: F401  — register models
from verifier.dependencies import get_adapters, get_fetcher, get_notifier
from verifier.main import app
from verifier.pipeline.adapters import (
    AbyssiniaAdapter,
    CbeAdapter,
    DashenAdapter,
    Provider,
    TelebirrAdapter,
)
from verifier.pipeline.fetcher import RetryPolicy, SourceFetcher
from verifier.pipeline.notifier import Notifier

FIXTURES = pathlib.Path(__file__).resolve().parent.parent / "fixtures"

CBE_URL = "https://cbe.test/"
CALLBACK_URL = "https://callback.test/hook"

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ── Outbound HTTP ────────────────────────────────────────────────────────────

class Recorder:
    """Collects requests seen by an ``httpx.MockTransport`` handler."""

    def __init__(self, handler):
        self.handler = handler
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def calls(self) -> int:
        return len(self.requests)


def fixture_bytes(name: str) -> bytes:
    return (FIXTURES / name).read_bytes()


@pytest.fixture()
def cbe_receipt() -> bytes:
    return fixture_bytes("cbe_receipt.txt")


@pytest.fixture()
def adapters():
    return {
        Provider.TELEBIRR: TelebirrAdapter(
            primary_url="https://telebirr.test/receipt/",
            fallback_url="https://mirror.test/verify?reference=",
            retry_policy=RetryPolicy(),
        ),
        Provider.CBE: CbeAdapter(url=CBE_URL, retry_policy=RetryPolicy()),
        Provider.ABYSSINIA: AbyssiniaAdapter(
            url="https://boa.test/slip/?id=",
            retry_policy=RetryPolicy(max_attempts=3, delay_seconds=1.0),
        ),
        Provider.DASHEN: DashenAdapter(url="https://dashen.test/receipt/", retry_policy=RetryPolicy()),
    }


@pytest.fixture()
def bank(cbe_receipt):
    """Receipt sources: serves the CBE fixture for FT1234 + 5017, 404 otherwise."""

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == f"{CBE_URL}?id=FT12345017":
            return httpx.Response(200, content=cbe_receipt, headers={"content-type": "text/plain"})
        return httpx.Response(404)

    return Recorder(handler)


@pytest.fixture()
def callback():
    """Downstream callback endpoint that accepts everything."""
    return Recorder(lambda request: httpx.Response(200, json={"ok": True}))


@pytest.fixture()
def fetcher(bank):
    return SourceFetcher(transport=httpx.MockTransport(bank), sleep=lambda seconds: None)


@pytest.fixture()
def notifier(callback):
    return Notifier(url=CALLBACK_URL, secret="s3cret", transport=httpx.MockTransport(callback))


@pytest.fixture()
def api_client(client, adapters, fetcher, notifier):
    """``client`` with every outbound collaborator mocked."""
    app.dependency_overrides[get_adapters] = lambda: adapters
    app.dependency_overrides[get_fetcher] = lambda: fetcher
    app.dependency_overrides[get_notifier] = lambda: notifier
    return client
