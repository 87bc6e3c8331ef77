"""Synchronisation service.

Reads unconsumed catalog XML files, normalizes their items into catalog
records, persists each record in the durable store and feeds the matching
document to the index in bounded batches. A file is marked consumed only once
every one of its records is both stored and indexed; any failure leaves the
file in place for the next pass. Records a failed file already stored still
reach the index, so store and index keep agreeing.

Store and index share no transaction. A crash between the two writes leaves a
stored record without index document; do_rebuild_index() is the recovery path.
"""

import asyncio
from datetime import datetime, timezone
from pathlib import Path

from services.catalog_sync.BatchIndexer import BatchIndexer
from shared.catalog.IdentifierAuthority import IdentifierAuthority, create_identifier_authority
from shared.catalog.PictureInliner import PictureInliner
from shared.catalog.RecordNormalizer import normalize
from shared.catalog.SourceReader import SourceReader
from shared.catalog.errors import CatalogError, IndexWriteError
from shared.catalog.models.CatalogRecord import IndexDocument
from shared.catalog.models.IngestionStatus import IngestionReport, IngestionStatus
from shared.clients.index.IndexClientInterface import IndexClientInterface
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig


class SyncService:
    """Orchestrates ingestion from source files into the store and the index."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        index_client: IndexClientInterface,
        source_reader: SourceReader | None = None,
        identifier_authority: IdentifierAuthority | None = None,
        picture_inliner: PictureInliner | None = None,
        batch_size: int | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self._store = store_client
        self._index = index_client
        self._reader = source_reader or SourceReader(helper_config=helper_config)
        self._authority = identifier_authority or create_identifier_authority(helper_config, store_client)
        self._pictures = picture_inliner or PictureInliner(helper_config=helper_config)
        self._batch_size = batch_size

        # one pass or rebuild at a time; queries never take this lock
        self._lock = asyncio.Lock()
        self._status = IngestionStatus()
        self._stop_requested = False

    ##########################################
    ################ STATUS ##################
    ##########################################

    def get_status(self) -> IngestionStatus:
        return self._status.model_copy(deep=True)

    def is_busy(self) -> bool:
        return self._lock.locked()

    def request_stop(self) -> None:
        """Ask a running pass to stop before its next file. The file in progress is finished."""
        self._stop_requested = True

    def _new_indexer(self) -> BatchIndexer:
        return BatchIndexer(helper_config=self._helper_config, index_client=self._index, batch_size=self._batch_size)

    ##########################################
    ############### CORE SYNC ################
    ##########################################

    async def do_startup_sync(self) -> None:
        """Background task started with the process: bootstrap the index, then drain the file backlog.

        A freshly created index is first filled from the store, so records
        ingested before the index was lost are searchable again. The outcome is
        recorded in the status; nothing is raised to the event loop.
        """
        try:
            created = await self._index.do_open_or_create()
            if created and await self._store.do_count() > 0:
                self.logging.info("Index is new but the store holds records. Re-indexing store contents...")
                await self.do_rebuild_index()
            if self._stop_requested:
                return
            await self.do_full_sync()
        except Exception as exc:
            self._finish_status("failed", error=exc)
            self.logging.exception("Startup ingestion failed: %s", exc)

    async def do_full_sync(self) -> IngestionReport:
        """Run one ingestion pass over all unconsumed files.

        Re-running with no new files changes neither store nor index.

        Returns:
            IngestionReport: What the pass did.

        Raises:
            Exception: If the pass fails outside the per-file error handling (e.g. discovery).
        """
        async with self._lock:
            self._start_status()
            try:
                report = await self._run_ingest_pass()
            except Exception as exc:
                self._finish_status("failed", error=exc)
                raise
            self._finish_status("completed", report=report)
            return report

    async def do_rebuild_index(self) -> int:
        """Wipe the index and re-stream every stored record through a batch indexer.

        Returns:
            int: Number of documents written to the index.

        Raises:
            IndexWriteError: If wiping or writing the index fails.
            PersistenceError: If scanning the store fails.
        """
        async with self._lock:
            self.logging.info("Rebuilding index from store...")
            await self._index.do_wipe()
            indexer = self._new_indexer()
            async for record in self._store.do_scan_all():
                indexer.add(IndexDocument.from_record(record))
                await indexer.flush_if_full()
            await indexer.flush_remainder()
            await self._index.do_refresh()
            indexer.log_progress()
            self.logging.info("Index rebuild complete: %d document(s).", indexer.indexed_count, color="green")
            return indexer.indexed_count

    async def do_rebuild_from_sources(self) -> IngestionReport:
        """Recreate the corpus from the source files.

        Deletes every stored record, wipes the index, restores consumed files to
        their unconsumed names and runs a full ingestion pass over them.

        Returns:
            IngestionReport: The outcome of the ingestion pass.
        """
        async with self._lock:
            self._start_status()
            try:
                self.logging.info("Rebuilding store and index from source files...")
                await self._store.do_delete_all()
                await self._index.do_wipe()
                consumed = await asyncio.to_thread(self._reader.discover_consumed)
                for path in consumed:
                    await asyncio.to_thread(self._reader.unmark_consumed, path)
                self.logging.info("Restored %d consumed file(s) for re-ingestion.", len(consumed))
                report = await self._run_ingest_pass()
            except Exception as exc:
                self._finish_status("failed", error=exc)
                raise
            self._finish_status("completed", report=report)
            return report

    ##########################################
    ############# INGEST PASS ################
    ##########################################

    async def _run_ingest_pass(self) -> IngestionReport:
        report = IngestionReport()
        files = await asyncio.to_thread(self._reader.discover_unprocessed)
        report.files_discovered = len(files)
        if not files:
            self.logging.info("No new catalog files in '%s'.", self._reader.get_source_dir())
            return report

        self.logging.info("Ingesting %d catalog file(s)...", len(files))
        await self._authority.boot()
        indexer = self._new_indexer()
        # files whose records are all stored but whose documents may still sit in the buffer
        sealed: list[str] = []

        for position, path in enumerate(files):
            if self._stop_requested:
                self.logging.info("Stop requested, leaving %d file(s) for the next pass.", len(files) - position)
                break
            source = str(path)
            try:
                await self._ingest_file(path, indexer, report)
            except IndexWriteError as exc:
                self._fail_sources(exc.sources | {source}, exc, sealed, report)
                continue
            except CatalogError as exc:
                self._fail_sources({source}, exc, sealed, report)
                continue
            sealed.append(source)
            await self._consume_flushed(sealed, indexer, report)

        try:
            await indexer.flush_remainder()
        except IndexWriteError as exc:
            self._fail_sources(exc.sources, exc, sealed, report)
        await self._consume_flushed(sealed, indexer, report)

        report.records_indexed = indexer.indexed_count
        if indexer.indexed_count:
            try:
                await self._index.do_refresh()
            except IndexWriteError as exc:
                self.logging.warning("Index refresh failed, new documents become searchable later: %s", exc)
        indexer.log_progress()

        self.logging.info(
            "Ingestion pass complete: %d file(s) consumed, %d failed, %d record(s) stored, %d indexed.",
            report.files_consumed, report.files_failed, report.records_persisted, report.records_indexed,
            color="green" if not (report.files_failed or report.unmarked_files) else "yellow",
        )
        if report.unmarked_files:
            self.logging.warning("%d file(s) could not be marked consumed: %s", len(report.unmarked_files), report.unmarked_files)
        return report

    async def _ingest_file(self, path: Path, indexer: BatchIndexer, report: IngestionReport) -> None:
        """Parse, normalize, persist and enqueue every record of one file.

        Raises:
            CatalogError: On the first failing step. Records persisted before the failure stay stored.
        """
        source = str(path)
        document = await asyncio.to_thread(self._reader.parse, path)
        records = normalize(document)
        self.logging.debug("File '%s' yielded %d record(s).", source, len(records))

        for item_index, record in enumerate(records):
            try:
                record = await self._pictures.do_apply(record)
                persisted = await self._authority.do_persist(record)
            except CatalogError as exc:
                self.logging.error("Error persisting item %d of '%s': %s", item_index, source, exc)
                raise
            report.records_persisted += 1
            indexer.add(IndexDocument.from_record(persisted), source=source)
            try:
                await indexer.flush_if_full()
            except IndexWriteError as exc:
                self.logging.error("Error indexing batch ending at item %d of '%s': %s", item_index, source, exc)
                raise

    def _fail_sources(
        self,
        sources: set[str],
        exc: Exception,
        sealed: list[str],
        report: IngestionReport,
    ) -> None:
        # buffered documents of these files stay queued: their records are stored already
        for source in sorted(sources):
            if source in sealed:
                sealed.remove(source)
            if source in report.failed_files:
                continue
            report.failed_files.append(source)
            report.files_failed += 1
            self.logging.error("File '%s' not consumed, it will be retried on the next pass: %s", source, exc)

    async def _consume_flushed(self, sealed: list[str], indexer: BatchIndexer, report: IngestionReport) -> None:
        for source in list(sealed):
            if indexer.has_pending(source):
                continue
            sealed.remove(source)
            try:
                await asyncio.to_thread(self._reader.mark_consumed, source)
            except OSError as exc:
                self.logging.error(
                    "'%s' is stored and indexed but could not be marked consumed, the next pass ingests it again: %s",
                    source, exc,
                )
                report.unmarked_files.append(source)
                continue
            report.files_consumed += 1
            self.logging.info("Consumed '%s'.", source)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _start_status(self) -> None:
        self._status = IngestionStatus(
            state="running",
            started_at=datetime.now(timezone.utc),
            last_report=self._status.last_report,
        )

    def _finish_status(self, state: str, report: IngestionReport | None = None, error: Exception | None = None) -> None:
        self._status.state = state
        self._status.finished_at = datetime.now(timezone.utc)
        if report is not None:
            self._status.last_report = report
        if error is not None:
            self._status.last_error = str(error)
