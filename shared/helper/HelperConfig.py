"""Environment-backed settings for the catalog search service."""

import logging
import os


class HelperConfig:
    """Reads typed settings from environment variables and hands out the application logger.

    Keys are case-insensitive (upper-cased before lookup). An empty value is
    treated like an unset one. A missing key without default raises ValueError.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _raw(self, key: str, has_default: bool) -> str | None:
        raw = (os.getenv(key.upper()) or "").strip()
        if raw:
            return raw
        if not has_default:
            raise ValueError(f"Environment variable '{key.upper()}' is not set.")
        return None

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string setting, stripped of surrounding whitespace.

        Raises:
            ValueError: If the variable is unset and no default is given.
        """
        raw = self._raw(key, default is not None)
        return default if raw is None else raw

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric setting. Values with a decimal point become floats.

        Raises:
            ValueError: If the variable is unset without default, or not a number.
        """
        raw = self._raw(key, default is not None)
        if raw is None:
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean setting; "true", "1" and "yes" are truthy, anything else is not."""
        raw = self._raw(key, default is not None)
        if raw is None:
            return default
        return raw.lower() in ("true", "1", "yes")

    def get_choice_val(self, key: str, choices: list[str], default: str | None = None) -> str:
        """Read a lower-cased setting restricted to a fixed set of values.

        Args:
            key (str): Environment variable name.
            choices (list[str]): Allowed lower-case values.
            default (str | None): Value used when the variable is unset.

        Raises:
            ValueError: If the variable is unset without default, or not one of the choices.
        """
        val = self.get_string_val(key, default=default).lower()
        if val not in choices:
            raise ValueError(f"Environment variable '{key.upper()}' must be one of {choices}. Got: '{val}'.")
        return val

    def get_list_val(self, key: str, default: list[str] | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a bracketed list setting such as "[a,b,c]".

        Args:
            key (str): Environment variable name.
            default (list[str] | None): Value used when the variable is unset.
            separator (str): Delimiter between elements.
            element_type (type): Callable applied to each element.

        Raises:
            ValueError: If the variable is unset without default, not bracketed, or an element cannot be converted.
        """
        raw = self._raw(key, default is not None)
        if raw is None:
            return default
        if not (raw.startswith("[") and raw.endswith("]")):
            raise ValueError(f"Environment variable '{key.upper()}' must look like '[elem1{separator}elem2]'. Got: '{raw}'")
        elements = [elem.strip() for elem in raw[1:-1].split(separator) if elem.strip()]
        try:
            return [element_type(elem) for elem in elements]
        except ValueError as e:
            raise ValueError(f"Environment variable '{key.upper()}' holds an element that is not {element_type.__name__}: {e}")

    def get_logger(self) -> logging.Logger:
        return self._logger
