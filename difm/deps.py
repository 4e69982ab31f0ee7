# difm/deps.py
from fastapi import Depends, Request

from .config import Settings
from .models import UserProfile
from .sessions import resolve_current_user
from .stores import JobStore, Stores, UserStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_stores(request: Request) -> Stores:
    return request.app.state.stores


def get_user_store(stores: Stores = Depends(get_stores)) -> UserStore:
    return stores.users


def get_job_store(stores: Stores = Depends(get_stores)) -> JobStore:
    return stores.jobs


async def get_current_user(request: Request, users: UserStore = Depends(get_user_store)) -> UserProfile:
    return await resolve_current_user(request.cookies, users)
