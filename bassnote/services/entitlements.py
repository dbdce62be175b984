"""Entitlement store: one boolean Pro flag per opaque user id.

Two backends share the same contract:

- ``DatabaseEntitlementStore``: durable, one row per user in ``users``; writes use the
  database's native ``INSERT ... ON CONFLICT DO UPDATE`` so repeated or concurrent
  calls for the same id converge without application locking.
- ``InMemoryEntitlementStore``: volatile dict for demos; everything is lost when the
  process restarts.
"""
from __future__ import annotations

import logging
import threading
from typing import Protocol

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from bassnote.core.config import Settings
from bassnote.core.errors import StoreError
from bassnote.models import UserEntitlement

log = logging.getLogger("bassnote.entitlements")

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class EntitlementStore(Protocol):
    def get_status(self, user_id: str) -> bool:
        """Stored Pro flag, or False when the user has no record."""
        ...

    def set_pro(self, user_id: str) -> None:
        """Mark the user as Pro; safe to repeat."""
        ...


class DatabaseEntitlementStore:
    backend = "database"

    def __init__(self, engine: Engine):
        dialect = engine.dialect.name
        if dialect not in _UPSERT_DIALECTS:
            raise ValueError(f"Unsupported database dialect for entitlements: {dialect}")
        self._engine = engine
        self._insert = _UPSERT_DIALECTS[dialect]

    def get_status(self, user_id: str) -> bool:
        try:
            with Session(self._engine) as session:
                row = session.get(UserEntitlement, user_id)
        except SQLAlchemyError as e:
            raise StoreError("Internal server error during status fetch.", detail=str(e)) from e
        return bool(row.is_pro) if row else False

    def set_pro(self, user_id: str) -> None:
        stmt = (
            self._insert(UserEntitlement.__table__)
            .values(id=user_id, is_pro=True)
            .on_conflict_do_update(index_elements=["id"], set_={"is_pro": True})
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError("Internal server error while saving entitlement.", detail=str(e)) from e
        log.info("Entitlement stored: user_id=%s is_pro=True", user_id)


class InMemoryEntitlementStore:
    """Process-local store. Data is lost on restart; use only for demos and tests."""

    backend = "memory"

    def __init__(self):
        self._entitlements: dict[str, bool] = {}
        self._lock = threading.Lock()
        log.warning("Using in-memory entitlement store: Pro unlocks are lost on restart")

    def get_status(self, user_id: str) -> bool:
        with self._lock:
            return self._entitlements.get(user_id, False)

    def set_pro(self, user_id: str) -> None:
        with self._lock:
            self._entitlements[user_id] = True
        log.info("Entitlement stored in memory: user_id=%s is_pro=True", user_id)


def build_entitlement_store(settings: Settings, engine: Engine) -> EntitlementStore:
    if settings.entitlement_backend == "memory":
        return InMemoryEntitlementStore()
    return DatabaseEntitlementStore(engine)
