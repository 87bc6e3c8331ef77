from pydantic import BaseModel

from shared.catalog.models.IngestionStatus import IngestionReport


class RebuildResponse(BaseModel):
    source: str
    documents_indexed: int
    report: IngestionReport | None = None


class AcceptedResponse(BaseModel):
    status: str
    detail: str
