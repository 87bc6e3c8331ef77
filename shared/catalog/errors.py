"""Exception hierarchy for the catalog sync pipeline and the query path.

Ingestion-side errors (parse, code, picture, persistence, index write) are
contained to the source file that raised them. Query-side errors carry the
HTTP status the API layer answers with.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""


class ParseError(CatalogError):
    """A source file is unreadable or not well-formed catalog XML."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not parse '{path}': {reason}")
        self.path = path
        self.reason = reason


class InvalidCodeError(CatalogError):
    """A trade item carries an HS code shorter than the six-digit short code."""

    def __init__(self, code: str, group: str = "") -> None:
        super().__init__(f"HS code '{code}' in group '{group}' is shorter than 6 characters.")
        self.code = code
        self.group = group


class PictureFetchError(CatalogError):
    """An image could not be downloaded for inlining."""


class PersistenceError(CatalogError):
    """The durable store rejected a read or write."""


class IndexWriteError(CatalogError):
    """The index engine rejected a single or batched write.

    Attributes:
        sources (set[str]): Source files that had documents in the failed write.
    """

    def __init__(self, message: str, sources: set[str] | None = None) -> None:
        super().__init__(message)
        self.sources: set[str] = set(sources or ())


class NotFoundError(CatalogError):
    """No record exists for the requested identifier."""

    def __init__(self, record_id: int) -> None:
        super().__init__(f"Record {record_id} not found.")
        self.record_id = record_id


class BadRequestError(CatalogError):
    """The caller sent an unusable query."""

    status_code = 400


class SearchUnavailableError(CatalogError):
    """The index engine could not answer a query."""

    status_code = 503
