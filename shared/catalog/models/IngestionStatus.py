from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class IngestionReport(BaseModel):
    """Outcome of one ingestion pass or rebuild.

    Attributes:
        files_discovered:  Unconsumed files found by the discovery walk.
        files_consumed:    Files fully persisted, indexed and marked consumed.
        files_failed:      Files left unconsumed for the next pass.
        records_persisted: Records written to the store.
        records_indexed:   Documents written to the index.
        failed_files:      Paths of the failed files.
        unmarked_files:    Files stored and indexed in full whose rename to the consumed name failed;
                           the next pass ingests them again.
    """

    files_discovered: int = 0
    files_consumed: int = 0
    files_failed: int = 0
    records_persisted: int = 0
    records_indexed: int = 0
    failed_files: list[str] = []
    unmarked_files: list[str] = []


class IngestionStatus(BaseModel):
    """Observable state of the ingestion task.

    Queries are served in every state; while "running", search results may
    miss records that are persisted but not yet indexed.
    """

    state: Literal["idle", "running", "completed", "failed"] = "idle"
    started_at: datetime | None = None
    finished_at: datetime | None = None
    last_error: str | None = None
    last_report: IngestionReport | None = None
