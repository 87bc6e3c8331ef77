from shared.helper.HelperConfig import HelperConfig
from shared.clients.index.IndexClientInterface import IndexClientInterface


class IndexClientManager:
    """
    Manager class to handle the Index client based on configuration.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the Index engine from ENV configuration.

        Returns:
            str: The name of the Index engine, capitalized (e.g. "Opensearch").
        """
        engine = self.helper_config.get_string_val("INDEX_ENGINE", default="opensearch")
        #lowercase all and uppercase first letter to match the class name
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> IndexClientInterface:
        """
        Initializes the Index client based on the engine specified in the configuration.

        Returns:
            IndexClientInterface: An instance of the Index client.

        Raises:
            ValueError: If the specified engine has no client implementation.
        """
        engine = self._get_engine_from_env()
        className = f"IndexClient{engine}"
        # import the class from shared.clients.index.{engine}
        try:
            module = __import__(
                f"shared.clients.index.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported Index engine specified: '{engine}'. Error: {e}")
        self.logging.debug("Instantiated Index client for engine: %s", engine)
        return client_class(helper_config=self.helper_config)

    def get_client(self) -> IndexClientInterface:
        """
        Returns the instantiated Index client.

        Returns:
            IndexClientInterface: The Index client instance.
        """
        return self.client
