"""Sync runner entry point.

Ingests catalog XML files into the store and the index.
Run directly for a one-shot ingestion pass; the API server starts the same
pass as a background task on startup.

Usage:
    python -m services.catalog_sync.catalog_sync
    python -m services.catalog_sync.catalog_sync --rebuild
    python -m services.catalog_sync.catalog_sync --rebuild-from-sources
"""

import argparse
import asyncio

from shared.catalog.PictureInliner import PictureInliner
from shared.clients.index.IndexClientManager import IndexClientManager
from shared.clients.store.StoreClientManager import StoreClientManager
from services.catalog_sync.SyncService import SyncService
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest catalog XML files into the store and the search index.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--rebuild", action="store_true", help="wipe the index and re-index every stored record")
    mode.add_argument(
        "--rebuild-from-sources",
        action="store_true",
        help="delete all stored records, wipe the index and re-ingest every source file",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """Run the requested synchronisation and return the process exit code."""
    args = parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    store_client = StoreClientManager(helper_config=config).get_client()
    index_client = IndexClientManager(helper_config=config).get_client()
    picture_inliner = PictureInliner(helper_config=config)

    try:
        # store and index are both required, there is nothing to sync into without either
        try:
            await store_client.boot()
            await store_client.do_ensure_schema()
            await index_client.boot()
            if not await index_client.do_healthcheck():
                raise RuntimeError("index health check failed")
            await picture_inliner.boot()
        except Exception as e:
            logger.error(f"Error booting clients: {e}. Aborting.")
            return 1

        sync_service = SyncService(
            helper_config=config,
            store_client=store_client,
            index_client=index_client,
            picture_inliner=picture_inliner,
        )

        if args.rebuild:
            await index_client.do_open_or_create()
            await sync_service.do_rebuild_index()
            return 0
        if args.rebuild_from_sources:
            await index_client.do_open_or_create()
            report = await sync_service.do_rebuild_from_sources()
        else:
            await sync_service.do_startup_sync()
            report = sync_service.get_status().last_report
            if sync_service.get_status().state == "failed":
                return 1
        return 1 if report is not None and (report.files_failed or report.unmarked_files) else 0
    finally:
        await picture_inliner.close()
        await index_client.close()
        await store_client.close()


def run() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
