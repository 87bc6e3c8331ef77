"""Batch indexer: buffers index documents and writes them in bounded bulk calls.

Every buffered document remembers the source file it came from, so the
ingestion coordinator can tell when all documents of a file have reached the
index and which files a failed batch touched.
"""

import time

from shared.catalog.errors import IndexWriteError
from shared.catalog.models.CatalogRecord import IndexDocument
from shared.clients.index.IndexClientInterface import IndexClientInterface
from shared.helper.HelperConfig import HelperConfig

PROGRESS_EVERY = 1000  # documents between progress log lines


class BatchIndexer:
    """Accumulates documents up to a fixed batch size and flushes them to the index."""

    def __init__(
        self,
        helper_config: HelperConfig,
        index_client: IndexClientInterface,
        batch_size: int | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._index = index_client
        self.batch_size = int(batch_size or helper_config.get_number_val("SYNC_BATCH_SIZE", default=100))
        if self.batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {self.batch_size}.")

        self._buffer: list[tuple[str, IndexDocument, str | None]] = []
        self.indexed_count = 0
        self._start_time: float | None = None

    ##########################################
    ################ BUFFER ##################
    ##########################################

    def add(self, document: IndexDocument, source: str | None = None) -> None:
        """Queue a document for the next flush.

        Args:
            document (IndexDocument): The document to index.
            source (str | None): The source file the document belongs to.
        """
        if self._start_time is None:
            self._start_time = time.monotonic()
        self._buffer.append((str(document.id), document, source))

    def is_full(self) -> bool:
        return len(self._buffer) >= self.batch_size

    def pending_count(self) -> int:
        return len(self._buffer)

    def has_pending(self, source: str) -> bool:
        """Check whether documents of a source file are still waiting for a flush."""
        return any(s == source for _, _, s in self._buffer)

    ##########################################
    ################ FLUSH ###################
    ##########################################

    async def flush_if_full(self) -> set[str]:
        """Flush the buffer if it reached the batch size.

        Returns:
            set[str]: Source files with documents in the flushed batch; empty if nothing was flushed.

        Raises:
            IndexWriteError: If the bulk write fails. Its sources name the files of the failed batch.
        """
        if not self.is_full():
            return set()
        return await self._flush()

    async def flush_remainder(self) -> set[str]:
        """Flush whatever is left in the buffer, however small.

        Returns:
            set[str]: Source files with documents in the flushed batch.

        Raises:
            IndexWriteError: If the bulk write fails.
        """
        if not self._buffer:
            return set()
        return await self._flush()

    async def _flush(self) -> set[str]:
        batch, self._buffer = self._buffer, []
        sources = {source for _, _, source in batch if source is not None}
        try:
            await self._index.do_index_batch([(doc_id, document) for doc_id, document, _ in batch])
        except IndexWriteError as exc:
            self.logging.error("Batch of %d document(s) failed: %s", len(batch), exc)
            raise IndexWriteError(str(exc), sources) from exc

        previous = self.indexed_count
        self.indexed_count += len(batch)
        if self.indexed_count // PROGRESS_EVERY > previous // PROGRESS_EVERY:
            self.log_progress()
        return sources

    ##########################################
    ############### LOGGING ##################
    ##########################################

    def log_progress(self) -> None:
        """Log how many documents were indexed so far and the average time per document."""
        if not self.indexed_count or self._start_time is None:
            return
        elapsed = time.monotonic() - self._start_time
        self.logging.info(
            "Indexed %d documents, in %.2fs (average %.2fms/doc)",
            self.indexed_count, elapsed, elapsed * 1000 / self.indexed_count,
        )
