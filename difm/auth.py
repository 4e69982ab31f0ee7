# difm/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from .config import Settings
from .deps import get_settings, get_user_store
from .errors import DuplicateUser, UnknownEnumValue
from .models import LoginIn, RegisterIn, Role, UserProfile
from .sessions import end_session, hash_password, start_session, verify_password
from .stores import UserStore

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials"


@router.post("/register", response_model=UserProfile)
async def register(payload: RegisterIn, users: UserStore = Depends(get_user_store)):
    if not (payload.email and payload.password and payload.name and payload.role):
        raise HTTPException(status_code=400, detail="Missing fields")
    try:
        role = Role.parse(payload.role)
    except UnknownEnumValue:
        raise HTTPException(status_code=400, detail="Invalid role")

    try:
        profile = await users.create_user(
            email=payload.email,
            name=payload.name,
            password_hash=hash_password(payload.password),
            role=role,
            # providers start online so they receive offers straight away
            is_online=role is Role.PROVIDER,
        )
    except DuplicateUser:
        raise HTTPException(status_code=409, detail="User already exists")

    log.info("registered user %s (%s)", profile.id, role.value)
    return profile


@router.post("/login", response_model=UserProfile)
async def login(
    payload: LoginIn,
    response: Response,
    users: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_settings),
):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Missing credentials")

    creds = await users.get_credentials(payload.email)
    # unknown email and wrong password look the same to the caller
    if creds is None or not verify_password(payload.password, creds.password_hash):
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    start_session(response, creds.profile, settings)
    return creds.profile


@router.post("/logout")
async def logout(response: Response):
    end_session(response)
    return {"success": True}
