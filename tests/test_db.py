"""Tests for database URL handling in smartauto.db."""

from __future__ import annotations

from sqlalchemy.pool import NullPool

from smartauto.db import database_url, engine_options


class TestDatabaseUrl:
    """DATABASE_URL is normalized before the engine is built."""

    def test_relative_sqlite_path_is_kept(self) -> None:
        url = database_url("sqlite+aiosqlite:///./smartauto.db")
        assert url.drivername == "sqlite+aiosqlite"
        assert url.database == "./smartauto.db"
        assert url.render_as_string(hide_password=False) == "sqlite+aiosqlite:///./smartauto.db"

    def test_in_memory_sqlite(self) -> None:
        url = database_url("sqlite+aiosqlite:///:memory:")
        assert url.database == ":memory:"
        assert engine_options(url) == {"poolclass": NullPool}

    def test_postgres_gets_async_driver_and_drops_libpq_options(self) -> None:
        url = database_url("postgresql://shop:pw@db.example.com:5432/smartauto?sslmode=require&channel_binding=require&application_name=api")
        assert url.drivername == "postgresql+asyncpg"
        assert url.host == "db.example.com"
        assert url.port == 5432
        assert url.database == "smartauto"
        assert url.password == "pw"
        assert dict(url.query) == {"application_name": "api"}

    def test_async_postgres_url_is_unchanged(self) -> None:
        url = database_url("postgresql+asyncpg://shop:pw@localhost/smartauto")
        assert url.drivername == "postgresql+asyncpg"
        assert url.query == {}

    def test_postgres_keeps_connection_pool(self) -> None:
        options = engine_options(database_url("postgresql://shop:pw@localhost/smartauto"))
        assert "poolclass" not in options
        assert options["pool_pre_ping"] is True
