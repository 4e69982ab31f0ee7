import logging

from fastapi import APIRouter, Depends, HTTPException

from .deps import get_stores
from .stores import Stores

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health():
    return {"ok": True}


@router.get("/db")
async def health_db(stores: Stores = Depends(get_stores)):
    try:
        await stores.ping()
    except Exception as e:
        log.warning("db health check failed: %s", e)
        raise HTTPException(status_code=503, detail=f"DB check failed: {e}")
    return {"ok": True, "db": "up"}
