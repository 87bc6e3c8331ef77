from pydantic import BaseModel


class SearchHit(BaseModel):
    """A single match returned by the index engine.

    Attributes:
        id:     Document identifier, the decimal string of the store record id.
        score:  Relevance score assigned by the engine.
        source: Stored document fields, when the engine returned them.
    """

    id: str
    score: float = 0.0
    source: dict | None = None
