# difm/users.py
import logging

from fastapi import APIRouter, Depends, HTTPException

from .deps import get_current_user, get_user_store
from .models import LocationIn, OnlineStatusIn, OnlineStatusOut, Role, UserProfile
from .stores import UserStore

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api/user", tags=["user"])

ONLINE_MESSAGE = "You are now online and will receive job offers"
OFFLINE_MESSAGE = "You are now offline and will not receive new job offers"


@router.get("/me", response_model=UserProfile)
async def me(user: UserProfile = Depends(get_current_user)):
    return user


@router.post("/online-status", response_model=OnlineStatusOut)
async def set_online_status(
    payload: OnlineStatusIn,
    user: UserProfile = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    """Toggle a provider's availability for new job offers."""
    if user.role is not Role.PROVIDER:
        raise HTTPException(status_code=403, detail="Only providers can toggle online status")
    if not isinstance(payload.is_online, bool):
        raise HTTPException(status_code=400, detail="isOnline must be a boolean")

    is_online = await users.set_online(user.id, payload.is_online)
    log.info("provider %s is now %s", user.id, "online" if is_online else "offline")
    return OnlineStatusOut(
        is_online=is_online,
        message=ONLINE_MESSAGE if is_online else OFFLINE_MESSAGE,
    )


@router.post("/location")
async def update_location(
    payload: LocationIn,
    user: UserProfile = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    if payload.latitude is None or payload.longitude is None:
        raise HTTPException(status_code=400, detail="Missing coordinates")

    # providers sharing a location are available for dispatch
    await users.update_location(
        user.id,
        payload.latitude,
        payload.longitude,
        go_online=user.role is Role.PROVIDER,
    )
    return {"success": True}
