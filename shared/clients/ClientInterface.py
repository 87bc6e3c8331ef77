from abc import ABC, abstractmethod
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """
    Base of every backend client (store, index).

    A client is configured from "{TYPE}_{ENGINE}_{KEY}" environment variables,
    e.g. STORE_POSTGRES_DSN or INDEX_OPENSEARCH_BASE_URL, plus a per-type
    "{TYPE}_TIMEOUT" in seconds. All settings are validated on construction,
    so a misconfigured client fails before boot().
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Raises:
            ValueError: If a setting without default is unset or a value has the wrong type.
        """
        for setting in self._get_required_config():
            self.get_config_val(raw_key=setting.env_key, default=setting.default, val_type=setting.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the kind of backend, used as the config key prefix. E.g. "store"
        """
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the display name of the backend engine. E.g. "Postgres"
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns:
            list[EnvConfig]: Every setting the client reads, with its type and default.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads one of the client's settings.

        Args:
            raw_key (str): Key suffix, e.g. "BASE_URL"
            default (Any): Value used when the variable is unset; None makes it required
            val_type (str): "string", "number", "bool" or "list"
        """
        getters = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in getters:
            raise ValueError(f"Unsupported value type '{val_type}' for setting '{raw_key}' of {self.get_client_type()} client '{self.get_engine_name()}'.")
        return getters[val_type](self._get_config_key_name(raw_key), default=default)

    ##########################################
    ############# LIFECYCLE ##################
    ##########################################

    @abstractmethod
    async def boot(self) -> None:
        """Open connections and any other resources needed by the client."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release all resources opened by boot()."""
        pass

    @abstractmethod
    async def do_healthcheck(self) -> bool:
        """
        Returns:
            bool: True if the backend answered successfully.
        """
        pass
