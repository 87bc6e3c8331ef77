"""Identifier authority: the single place a catalog record gets its id.

The id handed back here is used verbatim for the store row and, as a string,
for the index document. Two strategies exist:

- "store": the store generates the id on insert and returns it. Nothing can
  drift between the two.
- "counter": a process-wide counter seeded at boot from the store's id
  high-water mark. Ids stay unique across rebuilds because that mark is never
  lowered by deletes.
"""

from abc import ABC, abstractmethod

from shared.catalog.models.CatalogRecord import CatalogRecord
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig

ID_STRATEGIES = ["store", "counter"]


class IdentifierAuthority(ABC):
    def __init__(self, helper_config: HelperConfig, store_client: StoreClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client

    async def boot(self) -> None:
        """Prepare the authority before the first record is persisted."""
        return None

    @abstractmethod
    async def do_persist(self, record: CatalogRecord) -> CatalogRecord:
        """Assign the record its id and write it to the store.

        Args:
            record (CatalogRecord): A normalized record without id.

        Returns:
            CatalogRecord: The persisted record carrying id and created_at.

        Raises:
            PersistenceError: If the store write fails.
        """
        pass


class StoreIdentifierAuthority(IdentifierAuthority):
    """Delegates id assignment to the store's auto-increment."""

    async def do_persist(self, record: CatalogRecord) -> CatalogRecord:
        return await self._store.do_insert(record)


class CounterIdentifierAuthority(IdentifierAuthority):
    """Hands out ids from a monotonic in-process counter."""

    def __init__(self, helper_config: HelperConfig, store_client: StoreClientInterface) -> None:
        super().__init__(helper_config=helper_config, store_client=store_client)
        self._next_id: int | None = None

    async def boot(self) -> None:
        # the high-water mark survives deletes, so a rebuild never hands out an old id again
        high_water = await self._store.do_get_id_high_water()
        self._next_id = max(self._next_id or 1, high_water + 1)
        self.logging.info("Identifier counter seeded at %d (store high-water mark %d).", self._next_id, high_water)

    def next_id(self) -> int:
        """Return a fresh identifier. Never returns the same value twice in one process.

        Raises:
            RuntimeError: If boot() has not been awaited yet.
        """
        if self._next_id is None:
            raise RuntimeError("Identifier counter not seeded. Call boot() first.")
        record_id = self._next_id
        self._next_id += 1
        return record_id

    async def do_persist(self, record: CatalogRecord) -> CatalogRecord:
        return await self._store.do_insert_with_id(self.next_id(), record)


def create_identifier_authority(
    helper_config: HelperConfig,
    store_client: StoreClientInterface,
    strategy: str | None = None,
) -> IdentifierAuthority:
    """Build the identifier authority selected by SYNC_ID_STRATEGY.

    Raises:
        ValueError: If the strategy is unknown.
    """
    strategy = strategy or helper_config.get_choice_val("SYNC_ID_STRATEGY", ID_STRATEGIES, default="store")
    if strategy == "store":
        return StoreIdentifierAuthority(helper_config=helper_config, store_client=store_client)
    if strategy == "counter":
        return CounterIdentifierAuthority(helper_config=helper_config, store_client=store_client)
    raise ValueError(f"Unsupported identifier strategy '{strategy}'. Expected one of {ID_STRATEGIES}.")
