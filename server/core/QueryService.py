"""Query service: phrase search against the index, joined back to the store.

The index only answers which documents match; the authoritative record for
each hit is re-fetched from the store by id. Hits the store no longer knows
are dropped. While ingestion is running the index may lag behind the store,
so a query can miss records that are already stored.
"""

import asyncio

from shared.catalog.errors import BadRequestError, CatalogError, NotFoundError
from shared.catalog.models.CatalogRecord import CatalogRecord, IndexDocument
from shared.clients.index.IndexClientInterface import IndexClientInterface
from shared.clients.index.models.SearchHit import SearchHit
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig

RESULT_SOURCES = ["store", "index"]


class QueryService:
    """Handles catalog search queries: phrase search -> resolve hits -> records."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        index_client: IndexClientInterface,
        result_limit: int | None = None,
        result_source: str | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._index = index_client
        self.result_limit = int(result_limit or helper_config.get_number_val("SEARCH_RESULT_LIMIT", default=100))
        self.result_source = result_source or helper_config.get_choice_val("SEARCH_RESULT_SOURCE", RESULT_SOURCES, default="store")

    ##########################################
    ############### CORE #####################
    ##########################################

    async def search(self, query: str) -> list[CatalogRecord]:
        """Return the catalog records matching a phrase, in relevance order.

        At most result_limit records are returned; there is no pagination.
        Ties in relevance are not broken deterministically.

        Args:
            query (str): The phrase to search for.

        Returns:
            list[CatalogRecord]: The matching records.

        Raises:
            BadRequestError: If the query is empty.
            SearchUnavailableError: If the index cannot answer.
        """
        if not isinstance(query, str) or not query.strip():
            raise BadRequestError("Query must be a non-empty string.")
        query = query.strip()
        self.logging.info("QueryService.search: query='%s', limit=%d", query[:80], self.result_limit)

        hits = await self._index.do_search(query, self.result_limit, with_source=self.result_source == "index")
        if self.result_source == "index":
            records = [record for record in (self._decode_hit(hit) for hit in hits) if record is not None]
        else:
            resolved = await asyncio.gather(*[self._resolve_hit(hit) for hit in hits])
            records = [record for record in resolved if record is not None]

        self.logging.info("QueryService.search: %d hit(s), returning %d record(s).", len(hits), len(records))
        return records

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _resolve_hit(self, hit: SearchHit) -> CatalogRecord | None:
        """Fetch the stored record behind a hit, or None if it cannot be resolved."""
        try:
            record_id = int(hit.id)
        except ValueError:
            self.logging.warning("Skipping hit with non-numeric id '%s'.", hit.id)
            return None
        try:
            return await self._store.do_get_by_id(record_id)
        except NotFoundError:
            self.logging.debug("Skipping hit %d: no longer in the store.", record_id)
        except CatalogError as exc:
            self.logging.error("Error fetching record %d for hit, dropping it: %s", record_id, exc)
        return None

    def _decode_hit(self, hit: SearchHit) -> CatalogRecord | None:
        """Build a record from the fields stored with a hit."""
        if not hit.source:
            self.logging.warning("Skipping hit '%s': index returned no stored fields.", hit.id)
            return None
        try:
            return IndexDocument.model_validate(hit.source).to_record()
        except ValueError as exc:
            self.logging.warning("Skipping hit '%s': stored fields are invalid: %s", hit.id, exc)
            return None
