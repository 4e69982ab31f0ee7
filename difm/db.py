from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine


def _async_url(db_url: str) -> str:
    # Postgres URLs copied from a dashboard carry no driver
    if db_url.startswith("postgres://"):
        db_url = "postgresql://" + db_url[len("postgres://"):]
    if db_url.startswith("postgresql://"):
        db_url = "postgresql+asyncpg://" + db_url[len("postgresql://"):]
    return db_url


def make_engine(db_url: str) -> AsyncEngine:
    return create_async_engine(_async_url(db_url), echo=False, pool_size=5, max_overflow=10)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)
