"""Entitlement store contract: both backends, durability, concurrent upserts."""
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import OperationalError

from bassnote.core.config import Settings
from bassnote.core.database import build_engine, init_db
from bassnote.core.errors import StoreError
from bassnote.services.entitlements import (
    DatabaseEntitlementStore,
    InMemoryEntitlementStore,
    build_entitlement_store,
)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "entitlements.db"


@pytest.fixture
def db_store(db_path):
    engine = build_engine(f"sqlite:///{db_path}")
    init_db(engine)
    yield DatabaseEntitlementStore(engine)
    engine.dispose()


@pytest.fixture(params=["memory", "database"])
def store(request, db_store):
    if request.param == "memory":
        return InMemoryEntitlementStore()
    return db_store


def test_unknown_user_is_not_pro(store):
    assert store.get_status("nobody") is False


def test_set_pro_creates_record(store):
    store.set_pro("u1")
    assert store.get_status("u1") is True
    assert store.get_status("u2") is False


def test_set_pro_is_idempotent(store):
    store.set_pro("u1")
    store.set_pro("u1")
    store.set_pro("u1")
    assert store.get_status("u1") is True


def test_concurrent_set_pro_converges(store):
    ids = ["same"] * 20 + [f"other_{i}" for i in range(10)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(store.set_pro, ids))
    assert store.get_status("same") is True
    assert all(store.get_status(f"other_{i}") for i in range(10))
    assert store.get_status("untouched") is False


def test_database_store_survives_restart(db_path):
    engine = build_engine(f"sqlite:///{db_path}")
    init_db(engine)
    DatabaseEntitlementStore(engine).set_pro("u1")
    engine.dispose()

    restarted = build_engine(f"sqlite:///{db_path}")
    store = DatabaseEntitlementStore(restarted)
    assert store.get_status("u1") is True
    assert store.get_status("u2") is False
    restarted.dispose()


def test_memory_store_is_volatile():
    InMemoryEntitlementStore().set_pro("u1")
    assert InMemoryEntitlementStore().get_status("u1") is False


def test_database_errors_become_store_error(tmp_path):
    # No init_db: the users table is missing
    engine = build_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    store = DatabaseEntitlementStore(engine)
    with pytest.raises(StoreError) as exc_info:
        store.get_status("u1")
    assert isinstance(exc_info.value.__cause__, OperationalError)
    with pytest.raises(StoreError):
        store.set_pro("u1")
    engine.dispose()


@pytest.mark.parametrize(
    "backend, expected",
    [("memory", InMemoryEntitlementStore), ("database", DatabaseEntitlementStore)],
)
def test_build_entitlement_store_selects_backend(db_path, backend, expected):
    engine = build_engine(f"sqlite:///{db_path}")
    store = build_entitlement_store(Settings(_env_file=None, entitlement_backend=backend), engine)
    assert isinstance(store, expected)
    engine.dispose()
