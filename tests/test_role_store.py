from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from soar_socket.db.models import Role
from soar_socket.db.repositories.users import UserRepo
from soar_socket.services import role_store as role_store_module
from soar_socket.services.role_store import RoleStore, RoleStoreError


@pytest.mark.asyncio
async def test_fresh_store_is_empty(store: RoleStore) -> None:
    assert store.all_records() == {}
    assert store.get("nobody") is None


@pytest.mark.asyncio
async def test_put_then_reload_round_trips(store: RoleStore, sessionmaker) -> None:
    await store.put("u-1", display_name="Alice", role=Role.staff)

    reloaded = RoleStore(sessionmaker)
    records = await reloaded.load()

    assert set(records) == {"u-1"}
    record = reloaded.get("u-1")
    assert record is not None
    assert record.role is Role.staff
    assert record.display_name == "Alice"


@pytest.mark.asyncio
async def test_put_overwrites_existing(store: RoleStore) -> None:
    await store.put("u-1", display_name="Alice", role=Role.premium)
    await store.put("u-1", display_name="Alice2", role=Role.owner)

    record = store.get("u-1")
    assert record is not None
    assert (record.display_name, record.role) == ("Alice2", Role.owner)


@pytest.mark.asyncio
async def test_remove_deletes_durably(store: RoleStore, sessionmaker) -> None:
    await store.put("u-1", display_name="Alice", role=Role.premium)

    removed = await store.remove("u-1")
    assert removed is not None and removed.identity == "u-1"
    assert store.get("u-1") is None
    assert await store.remove("u-1") is None

    reloaded = RoleStore(sessionmaker)
    assert await reloaded.load() == {}


@pytest.mark.asyncio
async def test_record_without_role_defaults_to_normal(sessionmaker) -> None:
    async with sessionmaker() as session:
        await UserRepo(session).upsert(identity="legacy", display_name=None, role=None)
        await UserRepo(session).upsert(identity="weird", display_name="W", role="Wizard")
        await session.commit()

    store = RoleStore(sessionmaker)
    await store.load()

    legacy = store.get("legacy")
    assert legacy is not None
    assert legacy.role is None
    assert legacy.effective_role is Role.normal
    weird = store.get("weird")
    assert weird is not None and weird.role is None


@pytest.mark.asyncio
async def test_failed_write_leaves_store_unchanged(store: RoleStore, monkeypatch) -> None:
    await store.put("u-1", display_name="Alice", role=Role.premium)

    async def broken_upsert(self, **kwargs):
        raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(role_store_module.UserRepo, "upsert", broken_upsert)

    with pytest.raises(RoleStoreError):
        await store.put("u-1", display_name="Alice", role=Role.owner)

    record = store.get("u-1")
    assert record is not None and record.role is Role.premium
