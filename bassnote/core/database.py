import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from .config import settings

log = logging.getLogger("bassnote.database")


def _normalized_database_url(raw_url: str) -> str:
    """
    DATABASE_URL normalization:
    - postgres:// or postgresql:// without a driver -> psycopg3 dialect.
    - Anything else (SQLite etc.) is returned unchanged.
    """
    if not raw_url:
        return "sqlite:///./bassnote.db"
    raw_url = raw_url.strip()
    if raw_url.startswith("postgres://"):
        return "postgresql+psycopg://" + raw_url[len("postgres://") :]
    if raw_url.startswith("postgresql://") and "+psycopg" not in raw_url.split("://", 1)[0]:
        return "postgresql+psycopg://" + raw_url[len("postgresql://") :]
    return raw_url


def build_engine(database_url: str, sslmode: str = "") -> Engine:
    url = _normalized_database_url(database_url)
    connect_args: dict = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    elif sslmode:
        connect_args["sslmode"] = sslmode
    # In-memory SQLite: one shared connection so init_db tables are visible to every request
    use_static_pool = url.startswith("sqlite") and ":memory:" in url
    return create_engine(
        url,
        connect_args=connect_args,
        poolclass=StaticPool if use_static_pool else None,
        pool_pre_ping=not url.startswith("sqlite"),
    )


DATABASE_URL = _normalized_database_url(settings.database_url)
engine = build_engine(settings.database_url, settings.database_sslmode)


def init_db(bind: Engine | None = None) -> None:
    """Create the users table if it does not exist yet."""
    from bassnote import models  # noqa: F401  (registers table metadata)

    SQLModel.metadata.create_all(bind or engine)


def check_connection(bind: Engine | None = None) -> bool:
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        log.error("Database connection check failed: %s", e)
        return False
