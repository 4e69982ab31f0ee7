import pytest

from difm.config import Settings
from difm.db import _async_url


def test_defaults(monkeypatch):
    for name in ("STORE_BACKEND", "DATABASE_URL", "SUPABASE_DB_URL", "COOKIE_SECURE", "CORS_ORIGINS", "PORT"):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert s.store_backend == "postgres"
    assert s.database_url is None
    assert s.cookie_secure is False
    assert s.cors_origins == ["*"]
    assert s.port == 8000


def test_from_env(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "Supabase")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("SUPABASE_DB_URL", "postgres://u:p@h/db")
    monkeypatch.setenv("COOKIE_SECURE", "true")
    monkeypatch.setenv("CORS_ORIGINS", "https://difm.app, https://admin.difm.app")
    s = Settings.from_env()
    assert s.store_backend == "supabase"
    assert s.database_url == "postgres://u:p@h/db"
    assert s.cookie_secure is True
    assert s.cors_origins == ["https://difm.app", "https://admin.difm.app"]


def test_unknown_backend(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "mysql")
    with pytest.raises(RuntimeError):
        Settings.from_env()


def test_missing_values_fail_when_required():
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        Settings().require_database_url()
    with pytest.raises(RuntimeError, match="SUPABASE_URL"):
        Settings().require_supabase()


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgres://u:p@h:5432/db", "postgresql+asyncpg://u:p@h:5432/db"),
        ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgresql+asyncpg://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
    ],
)
def test_async_url(url, expected):
    assert _async_url(url) == expected
