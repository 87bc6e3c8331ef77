import asyncio

import pytest

from shared.catalog.IdentifierAuthority import (
    CounterIdentifierAuthority,
    StoreIdentifierAuthority,
    create_identifier_authority,
)
from shared.catalog.models.CatalogRecord import CatalogRecord


def test_factory_defaults_to_store_strategy(helper_config, store):
    assert isinstance(create_identifier_authority(helper_config, store), StoreIdentifierAuthority)


def test_factory_reads_strategy_from_env(helper_config, store, catalog_env):
    catalog_env.setenv("SYNC_ID_STRATEGY", "Counter")
    assert isinstance(create_identifier_authority(helper_config, store), CounterIdentifierAuthority)


def test_factory_rejects_unknown_strategy(helper_config, store, catalog_env):
    catalog_env.setenv("SYNC_ID_STRATEGY", "uuid")
    with pytest.raises(ValueError):
        create_identifier_authority(helper_config, store)


def test_store_strategy_returns_store_generated_ids(helper_config, store):
    authority = StoreIdentifierAuthority(helper_config=helper_config, store_client=store)

    async def run():
        await authority.boot()
        return [await authority.do_persist(CatalogRecord(description=f"item {i}")) for i in range(3)]

    persisted = asyncio.run(run())

    assert [r.id for r in persisted] == [1, 2, 3]
    assert all(r.created_at is not None for r in persisted)


def test_counter_is_seeded_above_existing_rows(helper_config, store):
    async def run():
        await store.do_insert_with_id(7, CatalogRecord(description="old"))
        await store.do_insert_with_id(2, CatalogRecord(description="older"))
        authority = CounterIdentifierAuthority(helper_config=helper_config, store_client=store)
        await authority.boot()
        return [await authority.do_persist(CatalogRecord(description=f"new {i}")) for i in range(2)]

    persisted = asyncio.run(run())

    assert [r.id for r in persisted] == [8, 9]
    assert sorted(store.rows) == [2, 7, 8, 9]


def test_counter_requires_boot(helper_config, store):
    authority = CounterIdentifierAuthority(helper_config=helper_config, store_client=store)
    with pytest.raises(RuntimeError):
        authority.next_id()


def test_counter_never_repeats(helper_config, store):
    authority = CounterIdentifierAuthority(helper_config=helper_config, store_client=store)
    asyncio.run(authority.boot())

    ids = [authority.next_id() for _ in range(500)]

    assert len(set(ids)) == len(ids)
    assert ids == sorted(ids)


def test_counter_does_not_reuse_ids_after_store_is_emptied(helper_config, store):
    async def run():
        authority = CounterIdentifierAuthority(helper_config=helper_config, store_client=store)
        await authority.boot()
        first = [(await authority.do_persist(CatalogRecord(description=f"a {i}"))).id for i in range(3)]
        await store.do_delete_all()

        fresh = CounterIdentifierAuthority(helper_config=helper_config, store_client=store)
        await fresh.boot()
        second = [(await fresh.do_persist(CatalogRecord(description=f"b {i}"))).id for i in range(3)]
        return first, second

    first, second = asyncio.run(run())

    assert first == [1, 2, 3]
    assert second == [4, 5, 6]


def test_counter_reboot_never_moves_backwards(helper_config, store):
    authority = CounterIdentifierAuthority(helper_config=helper_config, store_client=store)
    asyncio.run(authority.boot())
    issued = [authority.next_id() for _ in range(5)]

    asyncio.run(authority.boot())

    assert authority.next_id() > max(issued)
