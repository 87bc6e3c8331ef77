from shared.helper.HelperConfig import HelperConfig
from shared.clients.store.StoreClientInterface import StoreClientInterface


class StoreClientManager:
    """
    Manager class to handle the Store client based on configuration.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the Store engine from ENV configuration.

        Returns:
            str: The name of the Store engine, capitalized (e.g. "Postgres").
        """
        engine = self.helper_config.get_string_val("STORE_ENGINE", default="postgres")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> StoreClientInterface:
        """
        Initializes the Store client based on the engine specified in the configuration.

        Returns:
            StoreClientInterface: An instance of the Store client.

        Raises:
            ValueError: If the specified engine has no client implementation.
        """
        engine = self._get_engine_from_env()
        className = f"StoreClient{engine}"
        # import the class from shared.clients.store.{engine}
        try:
            module = __import__(
                f"shared.clients.store.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported Store engine specified: '{engine}'. Error: {e}")
        self.logging.debug("Instantiated Store client for engine: %s", engine)
        return client_class(helper_config=self.helper_config)

    def get_client(self) -> StoreClientInterface:
        """
        Returns the instantiated Store client.

        Returns:
            StoreClientInterface: The Store client instance.
        """
        return self.client
