import asyncio

import pytest

from server.core.QueryService import QueryService
from shared.catalog.errors import BadRequestError, SearchUnavailableError
from shared.catalog.models.CatalogRecord import CatalogRecord, IndexDocument


def _seed(store, index_client, *records: CatalogRecord) -> list[CatalogRecord]:
    async def run():
        persisted = [await store.do_insert(record) for record in records]
        await index_client.do_index_batch([(r.document_id(), IndexDocument.from_record(r)) for r in persisted])
        return persisted

    return asyncio.run(run())


@pytest.fixture
def query_service(helper_config, store, index_client) -> QueryService:
    return QueryService(helper_config=helper_config, store_client=store, index_client=index_client)


@pytest.mark.parametrize("query", ["", "   "])
def test_blank_query_is_rejected(query_service, query):
    with pytest.raises(BadRequestError):
        asyncio.run(query_service.search(query))


def test_hits_resolve_to_store_records(query_service, store, index_client):
    widget, _ = _seed(
        store,
        index_client,
        CatalogRecord(category="Tools", description="Widget", hs_code="123456", tariff_code="123456"),
        CatalogRecord(category="Garden", description="Rake"),
    )

    results = asyncio.run(query_service.search("  widget "))

    assert results == [widget]


def test_phrase_matches_any_searchable_field(query_service, store, index_client):
    record, = _seed(store, index_client, CatalogRecord(category="Tools", description="Widget", tariff_code="8471300000"))
    assert [r.id for r in asyncio.run(query_service.search("8471300000"))] == [record.id]


def test_hits_deleted_from_store_are_skipped(query_service, store, index_client):
    first, second = _seed(
        store,
        index_client,
        CatalogRecord(description="Blue Widget"),
        CatalogRecord(description="Red Widget"),
    )
    del store.rows[first.id]

    assert asyncio.run(query_service.search("Widget")) == [second]


def test_failed_lookup_drops_only_that_hit(query_service, store, index_client):
    first, second = _seed(
        store,
        index_client,
        CatalogRecord(description="Blue Widget"),
        CatalogRecord(description="Red Widget"),
    )
    store.fail_lookup_ids = {second.id}

    assert asyncio.run(query_service.search("Widget")) == [first]


def test_results_are_capped_at_limit(helper_config, store, index_client):
    _seed(store, index_client, *[CatalogRecord(description=f"Widget {i}") for i in range(5)])
    service = QueryService(helper_config=helper_config, store_client=store, index_client=index_client, result_limit=3)

    assert len(asyncio.run(service.search("Widget"))) == 3


def test_limit_from_env(helper_config, store, index_client, catalog_env):
    catalog_env.setenv("SEARCH_RESULT_LIMIT", "7")
    service = QueryService(helper_config=helper_config, store_client=store, index_client=index_client)
    assert service.result_limit == 7
    assert service.result_source == "store"


def test_index_failure_is_unavailable(query_service, fake_opensearch):
    fake_opensearch.fail_search = True
    with pytest.raises(SearchUnavailableError):
        asyncio.run(query_service.search("Widget"))


def test_index_sourced_results_skip_the_store(helper_config, store, index_client, fake_opensearch):
    record, = _seed(store, index_client, CatalogRecord(category="Tools", description="Widget", picture_ref="http://x/w.png"))
    store.rows.clear()
    service = QueryService(helper_config=helper_config, store_client=store, index_client=index_client, result_source="index")

    results = asyncio.run(service.search("Widget"))

    assert len(results) == 1
    assert results[0].id == record.id
    assert results[0].description == "Widget"
    assert results[0].picture_ref == "http://x/w.png"
    assert results[0].created_at == record.created_at
    assert fake_opensearch.requests[-1].url.path == "/catalog/_search"
