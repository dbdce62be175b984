from .config import settings
from .database import engine, init_db

__all__ = ["settings", "engine", "init_db"]
