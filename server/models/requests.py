from enum import Enum

from pydantic import BaseModel


class SearchRequest(BaseModel):
    query: str


class RebuildSource(str, Enum):
    store = "store"
    files = "files"
