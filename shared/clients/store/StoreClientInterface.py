from abc import abstractmethod
from collections.abc import AsyncIterator

from shared.catalog.models.CatalogRecord import CatalogRecord
from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class StoreClientInterface(ClientInterface):
    """
    The durable store holding the authoritative catalog records.

    Implementations raise PersistenceError for backend failures and
    NotFoundError for lookups of unknown identifiers.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "store"
        """
        return "store"

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_ensure_schema(self) -> None:
        """Create the catalog table if it does not exist yet.

        Raises:
            PersistenceError: If the schema cannot be created.
        """
        pass

    @abstractmethod
    async def do_insert(self, record: CatalogRecord) -> CatalogRecord:
        """Insert a record and let the store generate its identifier.

        Args:
            record (CatalogRecord): The record to insert; its id is ignored.

        Returns:
            CatalogRecord: The persisted record carrying the generated id and creation timestamp.

        Raises:
            PersistenceError: If the insert fails.
        """
        pass

    @abstractmethod
    async def do_insert_with_id(self, record_id: int, record: CatalogRecord) -> CatalogRecord:
        """Insert a record under an identifier assigned by the caller.

        Args:
            record_id (int): The identifier to store the record under.
            record (CatalogRecord): The record to insert.

        Returns:
            CatalogRecord: The persisted record.

        Raises:
            PersistenceError: If the insert fails, including identifier collisions.
        """
        pass

    @abstractmethod
    async def do_get_by_id(self, record_id: int) -> CatalogRecord:
        """Fetch a single record by identifier.

        Raises:
            NotFoundError: If no record has that identifier.
            PersistenceError: If the lookup fails.
        """
        pass

    @abstractmethod
    def do_scan_all(self) -> AsyncIterator[CatalogRecord]:
        """Stream every stored record in identifier order.

        Raises:
            PersistenceError: If the scan fails.
        """
        pass

    @abstractmethod
    async def do_delete_all(self) -> None:
        """Remove every record.

        Raises:
            PersistenceError: If the delete fails.
        """
        pass

    @abstractmethod
    async def do_count(self) -> int:
        """Return the number of stored records."""
        pass

    @abstractmethod
    async def do_get_id_high_water(self) -> int:
        """Return the highest identifier the store has ever assigned or accepted, or 0 if none.

        Deleting rows never lowers it, so ids above it were never used.
        """
        pass
