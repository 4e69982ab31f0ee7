# difm/main.py
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .auth import router as auth_router
from .config import Settings
from .errors import register_exception_handlers
from .health import router as health_router
from .stores import Stores, build_stores
from .users import router as users_router

log = logging.getLogger("uvicorn.error")


def create_app(
    settings: Optional[Settings] = None,
    stores_factory: Callable[[Settings], Stores] = build_stores,
) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.stores = stores_factory(settings)
        try:
            yield
        finally:
            await app.state.stores.aclose()
            log.info("stores closed")

    app = FastAPI(title="DIFM API", version="1.0.0", lifespan=lifespan, redoc_url=None)
    app.state.settings = settings

    # session cookies need credentialed CORS; "*" is only for local dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/")
    def root():
        return {"name": "difm-api"}

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    return app


def run(host: str = "0.0.0.0", port: Optional[int] = None, reload: bool = False) -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "difm.main:create_app",
        factory=True,
        host=host,
        port=port or Settings.from_env().port,
        reload=reload,
    )


if __name__ == "__main__":
    run(reload=True)
