from abc import abstractmethod

import httpx

from shared.catalog.errors import IndexWriteError, SearchUnavailableError
from shared.catalog.models.CatalogRecord import IndexDocument
from shared.clients.HttpClientInterface import HttpClientInterface
from shared.clients.index.models.SearchHit import SearchHit
from shared.helper.HelperConfig import HelperConfig


class IndexClientInterface(HttpClientInterface):
    """
    The full-text index engine kept in sync with the durable store.

    Write failures surface as IndexWriteError, query failures as
    SearchUnavailableError. Document ids are the store ids rendered as strings.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "index"
        """
        return "index"

    @abstractmethod
    def get_index_name(self) -> str:
        """
        Returns the name of the index holding the catalog documents.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_index(self) -> str:
        """
        Returns the endpoint path addressing the index itself (existence check, create, delete).

        Returns:
            str: The endpoint path (e.g. "/catalog")
        """
        pass

    @abstractmethod
    def _get_endpoint_document(self, doc_id: str) -> str:
        """
        Returns the endpoint path for writing a single document.

        Args:
            doc_id (str): The document identifier.

        Returns:
            str: The endpoint path (e.g. "/catalog/_doc/42")
        """
        pass

    @abstractmethod
    def _get_endpoint_bulk(self) -> str:
        """
        Returns the endpoint path for batched writes.

        Returns:
            str: The endpoint path (e.g. "/_bulk")
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for search requests.

        Returns:
            str: The endpoint path (e.g. "/catalog/_search")
        """
        pass

    @abstractmethod
    def _get_endpoint_refresh(self) -> str:
        """
        Returns the endpoint path that makes recent writes visible to searches.

        Returns:
            str: The endpoint path (e.g. "/catalog/_refresh")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_create_index_payload(self) -> dict:
        """
        Returns the settings and field mapping used when the index is created.
        """
        pass

    @abstractmethod
    def get_bulk_payload(self, documents: list[tuple[str, IndexDocument]]) -> str:
        """
        Builds the backend-specific body for a batched write.

        Args:
            documents (list[tuple[str, IndexDocument]]): Pairs of document id and document.

        Returns:
            str: The serialised request body.
        """
        pass

    @abstractmethod
    def get_search_payload(self, query: str, limit: int, with_source: bool) -> dict:
        """
        Builds the backend-specific body for a phrase query.

        Args:
            query (str): The phrase to match.
            limit (int): Maximum number of hits.
            with_source (bool): Whether the stored document fields are returned with each hit.

        Returns:
            dict: The payload for the search request.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        """
        Extracts the ranked hits from a raw search response.
        """
        pass

    @abstractmethod
    def extract_bulk_failures(self, raw_response: dict) -> list[str]:
        """
        Extracts the ids of documents a batched write rejected.

        Returns:
            list[str]: Rejected document ids, empty when the whole batch succeeded.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check if the index exists.

        Returns:
            bool: True if the index exists, False otherwise.

        Raises:
            IndexWriteError: If the backend cannot be reached or answers unexpectedly.
        """
        try:
            resp = await self.do_request(method="HEAD", endpoint=self._get_endpoint_index())
        except httpx.HTTPError as exc:
            raise IndexWriteError(f"Index existence check failed: {exc}") from exc
        if resp.status_code == 404:
            return False
        if not resp.is_success:
            raise IndexWriteError(f"Index existence check failed with status {resp.status_code}")
        return True

    async def do_create_index(self) -> None:
        """Create the index with its field mapping."""
        await self._write(method="PUT", endpoint=self._get_endpoint_index(), json=self.get_create_index_payload())

    async def do_open_or_create(self) -> bool:
        """Open the index, creating it if it does not exist yet.

        Returns:
            bool: True if the index had to be created.
        """
        if await self.do_existence_check():
            self.logging.info("Opening existing index '%s'...", self.get_index_name())
            return False
        self.logging.info("Creating new index '%s'...", self.get_index_name())
        await self.do_create_index()
        return True

    async def do_delete_index(self) -> None:
        """Delete the index and all its documents. A missing index is not an error."""
        try:
            resp = await self.do_request(method="DELETE", endpoint=self._get_endpoint_index())
        except httpx.HTTPError as exc:
            raise IndexWriteError(f"Deleting index failed: {exc}") from exc
        if resp.status_code != 404 and not resp.is_success:
            raise IndexWriteError(f"Deleting index failed with status {resp.status_code}: {resp.text}")

    async def do_wipe(self) -> None:
        """Drop every document by recreating the index from scratch."""
        await self.do_delete_index()
        await self.do_create_index()
        self.logging.info("Index '%s' wiped.", self.get_index_name())

    async def do_index_one(self, doc_id: str, document: IndexDocument) -> None:
        """Write a single document, replacing any document with the same id.

        Args:
            doc_id (str): The document identifier.
            document (IndexDocument): The document body.
        """
        await self._write(method="PUT", endpoint=self._get_endpoint_document(doc_id), json=document.to_source())

    async def do_index_batch(self, documents: list[tuple[str, IndexDocument]]) -> None:
        """Write a batch of documents in a single request.

        Args:
            documents (list[tuple[str, IndexDocument]]): Pairs of document id and document.

        Raises:
            IndexWriteError: If the request fails or the backend rejects any document of the batch.
        """
        if not documents:
            return
        resp = await self._write(
            method="POST",
            endpoint=self._get_endpoint_bulk(),
            content=self.get_bulk_payload(documents),
            additional_headers={"Content-Type": "application/x-ndjson"},
        )
        try:
            failed = self.extract_bulk_failures(resp.json())
        except ValueError as exc:
            raise IndexWriteError(f"Index answered a batch write with an unreadable body: {exc}") from exc
        if failed:
            raise IndexWriteError(f"Index rejected {len(failed)} of {len(documents)} document(s): {failed[:10]}")

    async def do_refresh(self) -> None:
        """Make all writes so far visible to searches."""
        await self._write(method="POST", endpoint=self._get_endpoint_refresh())

    async def do_search(self, query: str, limit: int, with_source: bool = False) -> list[SearchHit]:
        """Run a phrase query and return the ranked hits.

        Args:
            query (str): The phrase to match.
            limit (int): Maximum number of hits.
            with_source (bool): Whether the stored document fields are returned with each hit.

        Returns:
            list[SearchHit]: Hits in relevance order.

        Raises:
            SearchUnavailableError: If the index cannot answer.
        """
        try:
            resp = await self.do_request(
                method="POST",
                endpoint=self._get_endpoint_search(),
                json=self.get_search_payload(query, limit, with_source),
                raise_on_error=True,
            )
            return self.extract_search_hits(resp.json())
        except (httpx.HTTPError, RuntimeError, ValueError) as exc:
            self.logging.error("Error full text search: %s", exc)
            raise SearchUnavailableError(f"Search is unavailable: {exc}") from exc

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _write(self, **kwargs) -> httpx.Response:
        try:
            return await self.do_request(raise_on_error=True, **kwargs)
        except (httpx.HTTPError, RuntimeError) as exc:
            raise IndexWriteError(f"Index write to '{kwargs.get('endpoint')}' failed: {exc}") from exc
