import asyncio
from datetime import datetime, timezone

import pytest

from shared.catalog.errors import PersistenceError
from shared.catalog.models.CatalogRecord import CatalogRecord
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.clients.store.postgres.StoreClientPostgres import StoreClientPostgres


def test_manager_builds_postgres_client(helper_config):
    client = StoreClientManager(helper_config=helper_config).get_client()
    assert isinstance(client, StoreClientPostgres)
    assert client.get_client_type() == "store"
    assert client.get_engine_name() == "postgres"


def test_missing_dsn_fails_validation(helper_config, catalog_env):
    catalog_env.delenv("STORE_POSTGRES_DSN")
    with pytest.raises(ValueError):
        StoreClientPostgres(helper_config=helper_config)


def test_values_follow_column_order(helper_config):
    record = CatalogRecord(
        category="Tools",
        description="Widget",
        picture_ref="http://x/w.png",
        hs_code="123456",
        country="DE",
        tariff_code="12345678",
        explanation_sheet="sheet",
        vote="5",
    )
    assert StoreClientPostgres._values(record) == (
        "Tools", "Widget", "http://x/w.png", "123456", "DE", "12345678", "sheet", "5",
    )


def test_row_maps_nulls_to_empty_strings(helper_config):
    created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    row = {
        "id": 42,
        "date": created,
        "category": "Electronics",
        "productdescription": "Phone Case",
        "picture": "http://x/img.png",
        "wcohscode": None,
        "country": None,
        "nationaltariffcode": None,
        "explanationsheet": None,
        "vote": None,
    }

    record = StoreClientPostgres._row_to_record(row)

    assert record.id == 42
    assert record.created_at == created
    assert record.description == "Phone Case"
    assert record.picture_ref == "http://x/img.png"
    assert record.hs_code == ""
    assert record.vote == ""


def test_requests_before_boot_raise_persistence_error(helper_config):
    client = StoreClientPostgres(helper_config=helper_config)
    with pytest.raises(PersistenceError):
        asyncio.run(client.do_get_by_id(1))
