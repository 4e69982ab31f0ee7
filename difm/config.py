# difm/config.py
import os
from dataclasses import dataclass, field
from typing import List, Optional

BACKENDS = ("postgres", "supabase")


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass(frozen=True)
class Settings:
    store_backend: str = "postgres"
    database_url: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    cookie_secure: bool = False
    session_max_age: int = 60 * 60 * 24  # 1 day
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        backend = os.getenv("STORE_BACKEND", "postgres").lower()
        if backend not in BACKENDS:
            raise RuntimeError(f"STORE_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")
        return cls(
            store_backend=backend,
            # SUPABASE_DB_URL is the name older deploys used
            database_url=os.getenv("DATABASE_URL") or os.getenv("SUPABASE_DB_URL"),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE"),
            cookie_secure=os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes"),
            session_max_age=int(os.getenv("SESSION_MAX_AGE", str(60 * 60 * 24))),
            cors_origins=_split(os.getenv("CORS_ORIGINS", "*")),
            port=int(os.getenv("PORT", "8000")),
        )

    def require_database_url(self) -> str:
        if not self.database_url:
            raise RuntimeError("DATABASE_URL is not set")
        return self.database_url

    def require_supabase(self):
        if not self.supabase_url or not self.supabase_key:
            raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE")
        return self.supabase_url, self.supabase_key
