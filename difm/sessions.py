# difm/sessions.py
import hashlib
import hmac
from typing import Mapping, Optional

from fastapi import Response

from .config import Settings
from .errors import NotAuthenticated
from .models import UserProfile
from .stores import UserStore

SESSION_COOKIE = "userId"
ROLE_COOKIE = "userRole"


async def resolve_current_user(cookies: Mapping[str, str], store: UserStore) -> UserProfile:
    """
    Resolve the ``userId`` session cookie to the caller's public profile.

    Raises NotAuthenticated when the cookie is missing and when it names a
    user that doesn't exist; the two are reported identically. Does one
    store read at most and never writes.
    """
    user_id: Optional[str] = cookies.get(SESSION_COOKIE)
    if not user_id:
        raise NotAuthenticated()

    profile = await store.get_profile(user_id)
    if profile is None:
        raise NotAuthenticated()
    return profile


def hash_password(password: str) -> str:
    # matches the hashes already stored for existing accounts
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return hmac.compare_digest(hash_password(password), password_hash)


def start_session(response: Response, profile: UserProfile, settings: Settings) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        profile.id,
        max_age=settings.session_max_age,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    # readable by the frontend for redirects; never trusted server-side
    response.set_cookie(
        ROLE_COOKIE,
        profile.role.value,
        max_age=settings.session_max_age,
        path="/",
        secure=settings.cookie_secure,
        samesite="lax",
    )


def end_session(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(ROLE_COOKIE, path="/")
