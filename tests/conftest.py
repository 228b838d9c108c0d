"""Shared fixtures for smartauto tests.

The store is a temporary SQLite file opened through aiosqlite with NullPool,
so every event loop (TestClient portal or ``asyncio.run``) gets its own
connections. Outbound webhook calls go through ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import os
from decimal import Decimal
from typing import Any, Dict, List, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from smartauto import crud
from smartauto.app import app
from smartauto.db import Base, get_db
from smartauto.deps import get_http_client, get_relay_client
from smartauto.errors import RelayError
from smartauto.relay import WEBHOOK_URLS

DESTINATIONS = {url: name for name, url in WEBHOOK_URLS.items()}
OWNER_ID = "own-test-42"


def run(coro):
    return asyncio.run(coro)


class Outbound:
    """Records webhook forwards and plays the automation endpoints."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.fail: set = set()
        self.status: Dict[str, int] = {}
        self.errors: Dict[str, Exception] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        dest = DESTINATIONS.get(str(request.url), "unknown")
        if dest in self.errors:
            raise self.errors[dest]
        if dest in self.fail:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(self.status.get(dest, 200), text=f"{dest} accepted")

    def destinations(self) -> List[str]:
        return [DESTINATIONS.get(str(r.url), "unknown") for r in self.requests]


class FakeRelay:
    """Stands in for RelayClient; records every notification."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.error: Optional[str] = None
        self.on_send = None

    async def send(self, type_: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.on_send is not None:
            await self.on_send(type_, payload)
        self.calls.append((type_, payload))
        if self.error:
            raise RelayError(self.error)
        return {"success": True, "result": f"{type_} accepted"}


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'smartauto.db'}", poolclass=NullPool)

    async def create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    run(create())
    yield async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    run(engine.dispose())


@pytest.fixture
def outbound() -> Outbound:
    return Outbound()


@pytest.fixture
def fake_relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def client(session_factory, outbound, fake_relay, monkeypatch):
    monkeypatch.setenv("OWNER_ID", OWNER_ID)

    async def _get_db():
        async with session_factory() as session:
            yield session

    async def _get_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(outbound.handler)) as http:
            yield http

    async def _get_relay_client():
        yield fake_relay

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_http_client] = _get_http_client
    app.dependency_overrides[get_relay_client] = _get_relay_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register a customer and return bearer headers."""

    def _signup(email: str = "alice@smartauto.io", name: str = "Alice", password: str = "secret123") -> Dict[str, str]:
        r = client.post("/signup", json={"name": name, "email": email, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _signup


@pytest.fixture
def owner_headers(client, signup) -> Dict[str, str]:
    signup(email="owner@smartauto.io", name="Owner", password="owner-pass")
    r = client.post("/owner/login", json={
        "email": "owner@smartauto.io", "password": "owner-pass", "owner_id": OWNER_ID,
    })
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def add_product(session_factory):
    def _add(name: str = "Widget", price: str = "9.99", stock: int = 5, code: Optional[str] = None) -> Dict[str, Any]:
        async def go():
            async with session_factory() as db:
                return await crud.insert(db, "products", {
                    "product_id": code or f"SA-{name.upper()[:3]}-001",
                    "name": name,
                    "price": Decimal(price),
                    "stock": stock,
                })
        return run(go())

    return _add


@pytest.fixture
def add_order(session_factory):
    def _add(**fields: Any) -> Dict[str, Any]:
        record = {
            "order_id": "SA-20240315-1001",
            "product_id": "p1",
            "product_name": "Widget",
            "quantity": 1,
            "unit_price": Decimal("10.00"),
            "total_price": Decimal("10.00"),
            "customer_name": "Alice",
            "customer_email": "alice@smartauto.io",
            "shipping_address": "1 Main St",
            "user_id": "u-alice",
            "status": "pending",
        }
        record.update(fields)

        async def go():
            async with session_factory() as db:
                return await crud.insert(db, "orders", record)
        return run(go())

    return _add


@pytest.fixture
def count_rows(session_factory):
    def _count(table: str) -> int:
        async def go():
            async with session_factory() as db:
                return len(await crud.query(db, table))
        return run(go())

    return _count
