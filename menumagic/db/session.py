from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from menumagic.core.config import settings


def engine_options(database_url: str) -> dict[str, object]:
    """create_engine() keyword arguments for the configured backend."""
    if database_url.lower().startswith("sqlite"):
        # Request handlers run in a threadpool; one SQLite connection may cross threads.
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout_seconds,
        "pool_recycle": settings.db_pool_recycle_seconds,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
