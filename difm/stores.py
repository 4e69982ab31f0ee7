# difm/stores.py
"""Store access for the "User" and "Job" tables.

Two backends share one interface: Postgres through an async SQLAlchemy
session factory, and Supabase through its PostgREST client. A ``Stores``
bundle is built once per process (see ``build_stores``) and handed to
whatever needs it; nothing here keeps a module-level client.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from anyio import to_thread
from postgrest.exceptions import APIError
from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from supabase import Client, create_client

from .config import Settings
from .db import make_engine, make_sessionmaker
from .errors import DuplicateUser
from .models import Credentials, JobStatus, JobSummary, Role, UserProfile

log = logging.getLogger("uvicorn.error")

# Projection for anything that leaves the API. Never add passwordHash here.
PROFILE_COLUMNS = ("id", "email", "name", "role", "isOnline")
JOB_SUMMARY_COLUMNS = ("id", "status", "fixedPrice", "description")

_PROFILE_SQL = ", ".join(f'"{c}"' for c in PROFILE_COLUMNS)
_PROFILE_REST = ",".join(PROFILE_COLUMNS)
_JOB_SUMMARY_SQL = ", ".join(f'"{c}"' for c in JOB_SUMMARY_COLUMNS)
_JOB_SUMMARY_REST = ",".join(JOB_SUMMARY_COLUMNS)

PROVIDER_CHECK_COLUMNS = ("email", "role", "providerType", "categories", "providerStatus", "latitude", "longitude")
RECENT_JOB_COLUMNS = (
    "id", "description", "category", "status", "providerId", "latitude", "longitude", "requiredCapability",
)

UNIQUE_VIOLATION = "23505"


class UserStore(Protocol):
    async def get_profile(self, user_id: str) -> Optional[UserProfile]: ...

    async def get_credentials(self, email: str) -> Optional[Credentials]: ...

    async def create_user(
        self, *, email: str, name: str, password_hash: str, role: Role, is_online: bool
    ) -> UserProfile: ...

    async def set_online(self, user_id: str, is_online: bool) -> bool: ...

    async def update_location(
        self, user_id: str, latitude: float, longitude: float, *, go_online: bool = False
    ) -> None: ...

    async def find_by_emails(self, emails: Sequence[str]) -> List[Dict[str, Any]]: ...


class JobStore(Protocol):
    async def list_by_status(self, statuses: Sequence[JobStatus]) -> List[JobSummary]: ...

    async def count_by_descriptions(self, descriptions: Sequence[str]) -> int: ...

    async def delete_by_descriptions(self, descriptions: Sequence[str]) -> int: ...

    async def recent(self, limit: int = 5) -> List[Dict[str, Any]]: ...


def _credentials(row) -> Credentials:
    return Credentials(profile=UserProfile.from_row(row), password_hash=row.get("passwordHash"))


def _sqlstate(exc: IntegrityError) -> Optional[str]:
    # the asyncpg adapter copies the code onto orig; the raw driver error is its cause
    orig = exc.orig
    for err in (orig, getattr(orig, "__cause__", None)):
        code = getattr(err, "sqlstate", None) or getattr(err, "pgcode", None)
        if code:
            return code
    return None


# Postgres (async SQLAlchemy)
class SqlUserStore:
    def __init__(self, sessions: async_sessionmaker):
        self._sessions = sessions

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        async with self._sessions() as db:
            result = await db.execute(
                text(f'select {_PROFILE_SQL} from "User" where id = :uid'), {"uid": user_id}
            )
            row = result.mappings().first()
        return UserProfile.from_row(row) if row else None

    async def get_credentials(self, email: str) -> Optional[Credentials]:
        async with self._sessions() as db:
            result = await db.execute(
                text(f'select {_PROFILE_SQL}, "passwordHash" from "User" where email = :email'),
                {"email": email},
            )
            row = result.mappings().first()
        return _credentials(row) if row else None

    async def create_user(self, *, email, name, password_hash, role, is_online) -> UserProfile:
        q = text(f"""
            insert into "User" (id, email, name, "passwordHash", role, "isOnline")
            values (:id, :email, :name, :password_hash, :role, :is_online)
            returning {_PROFILE_SQL}
        """)
        params = {
            "id": str(uuid.uuid4()),
            "email": email,
            "name": name,
            "password_hash": password_hash,
            "role": role.value,
            "is_online": is_online,
        }
        async with self._sessions() as db:
            try:
                result = await db.execute(q, params)
                row = result.mappings().first()
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                if _sqlstate(e) == UNIQUE_VIOLATION:
                    raise DuplicateUser(email) from e
                raise
        return UserProfile.from_row(row)

    async def set_online(self, user_id: str, is_online: bool) -> bool:
        async with self._sessions() as db:
            result = await db.execute(
                text('update "User" set "isOnline" = :flag where id = :uid returning "isOnline"'),
                {"flag": is_online, "uid": user_id},
            )
            value = result.scalar_one_or_none()
            if value is None:
                await db.rollback()
                raise LookupError(f"user {user_id} vanished during update")
            await db.commit()
        return bool(value)

    async def update_location(self, user_id, latitude, longitude, *, go_online=False) -> None:
        sets = 'latitude = :lat, longitude = :lng'
        if go_online:
            sets += ', "isOnline" = true'
        async with self._sessions() as db:
            await db.execute(
                text(f'update "User" set {sets} where id = :uid'),
                {"lat": latitude, "lng": longitude, "uid": user_id},
            )
            await db.commit()

    async def find_by_emails(self, emails):
        cols = ", ".join(f'"{c}"' for c in PROVIDER_CHECK_COLUMNS)
        q = text(f'select {cols} from "User" where email in :emails').bindparams(
            bindparam("emails", expanding=True)
        )
        async with self._sessions() as db:
            result = await db.execute(q, {"emails": list(emails)})
            return [dict(r) for r in result.mappings().all()]


class SqlJobStore:
    def __init__(self, sessions: async_sessionmaker):
        self._sessions = sessions

    async def list_by_status(self, statuses):
        q = text(f'select {_JOB_SUMMARY_SQL} from "Job" where status::text in :statuses').bindparams(
            bindparam("statuses", expanding=True)
        )
        async with self._sessions() as db:
            result = await db.execute(q, {"statuses": [s.value for s in statuses]})
            return [JobSummary.from_row(r) for r in result.mappings().all()]

    async def count_by_descriptions(self, descriptions):
        q = text('select count(*) from "Job" where description in :descs').bindparams(
            bindparam("descs", expanding=True)
        )
        async with self._sessions() as db:
            result = await db.execute(q, {"descs": list(descriptions)})
            return int(result.scalar_one())

    async def delete_by_descriptions(self, descriptions):
        q = text('delete from "Job" where description in :descs').bindparams(
            bindparam("descs", expanding=True)
        )
        async with self._sessions() as db:
            result = await db.execute(q, {"descs": list(descriptions)})
            await db.commit()
        return result.rowcount

    async def recent(self, limit=5):
        cols = ", ".join(f'"{c}"' for c in RECENT_JOB_COLUMNS)
        async with self._sessions() as db:
            result = await db.execute(
                text(f'select {cols} from "Job" order by "createdAt" desc limit :n'), {"n": limit}
            )
            return [dict(r) for r in result.mappings().all()]


# Supabase (PostgREST). The client is synchronous, so calls run in a thread.
async def _run(query):
    resp = await to_thread.run_sync(query.execute)
    return resp.data or []


class SupabaseUserStore:
    def __init__(self, client: Client):
        self._sb = client

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        rows = await _run(self._sb.table("User").select(_PROFILE_REST).eq("id", user_id).limit(1))
        return UserProfile.from_row(rows[0]) if rows else None

    async def get_credentials(self, email: str) -> Optional[Credentials]:
        rows = await _run(
            self._sb.table("User").select(_PROFILE_REST + ",passwordHash").eq("email", email).limit(1)
        )
        return _credentials(rows[0]) if rows else None

    async def create_user(self, *, email, name, password_hash, role, is_online) -> UserProfile:
        try:
            rows = await _run(self._sb.table("User").insert({
                "id": str(uuid.uuid4()),
                "email": email,
                "name": name,
                "passwordHash": password_hash,
                "role": role.value,
                "isOnline": is_online,
            }))
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise DuplicateUser(email) from e
            raise
        return UserProfile.from_row(rows[0])

    async def set_online(self, user_id: str, is_online: bool) -> bool:
        rows = await _run(self._sb.table("User").update({"isOnline": is_online}).eq("id", user_id))
        if not rows:
            raise LookupError(f"user {user_id} vanished during update")
        return bool(rows[0]["isOnline"])

    async def update_location(self, user_id, latitude, longitude, *, go_online=False) -> None:
        data = {"latitude": latitude, "longitude": longitude}
        if go_online:
            data["isOnline"] = True
        await _run(self._sb.table("User").update(data).eq("id", user_id))

    async def find_by_emails(self, emails):
        return await _run(
            self._sb.table("User").select(",".join(PROVIDER_CHECK_COLUMNS)).in_("email", list(emails))
        )


class SupabaseJobStore:
    def __init__(self, client: Client):
        self._sb = client

    async def list_by_status(self, statuses):
        rows = await _run(
            self._sb.table("Job").select(_JOB_SUMMARY_REST).in_("status", [s.value for s in statuses])
        )
        return [JobSummary.from_row(r) for r in rows]

    async def count_by_descriptions(self, descriptions):
        rows = await _run(self._sb.table("Job").select("id").in_("description", list(descriptions)))
        return len(rows)

    async def delete_by_descriptions(self, descriptions):
        rows = await _run(self._sb.table("Job").delete().in_("description", list(descriptions)))
        return len(rows)

    async def recent(self, limit=5):
        return await _run(
            self._sb.table("Job").select(",".join(RECENT_JOB_COLUMNS)).order("createdAt", desc=True).limit(limit)
        )


@dataclass
class Stores:
    users: UserStore
    jobs: JobStore
    engine: Optional[AsyncEngine] = None
    supabase: Optional[Client] = None

    async def ping(self) -> None:
        if self.engine is not None:
            async with self.engine.connect() as conn:
                await conn.execute(text("select 1"))
        elif self.supabase is not None:
            await _run(self.supabase.table("User").select("id").limit(1))

    async def aclose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def build_stores(settings: Settings) -> Stores:
    if settings.store_backend == "supabase":
        url, key = settings.require_supabase()
        client = create_client(url, key)
        log.info("stores: supabase backend at %s", url)
        return Stores(users=SupabaseUserStore(client), jobs=SupabaseJobStore(client), supabase=client)

    engine = make_engine(settings.require_database_url())
    sessions = make_sessionmaker(engine)
    log.info("stores: postgres backend")
    return Stores(users=SqlUserStore(sessions), jobs=SqlJobStore(sessions), engine=engine)
