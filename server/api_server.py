"""FastAPI application entry point for catalog_search."""

import asyncio
import os
from contextlib import asynccontextmanager, suppress
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.catalog.errors import CatalogError
from shared.catalog.PictureInliner import PictureInliner
from shared.clients.index.IndexClientInterface import IndexClientInterface
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.clients.index.IndexClientManager import IndexClientManager
from shared.clients.store.StoreClientManager import StoreClientManager
from services.catalog_sync.SyncService import SyncService
from server.core.QueryService import QueryService
from server.routers.SearchRouter import router as search_router
from server.routers.IngestionRouter import router as ingestion_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    store_client = StoreClientManager(helper_config=app.state.helper_config).get_client()
    index_client = IndexClientManager(helper_config=app.state.helper_config).get_client()
    picture_inliner = PictureInliner(helper_config=app.state.helper_config)

    logging.info("Booting all clients...")
    await store_client.boot()
    await store_client.do_ensure_schema()
    await index_client.boot()
    await picture_inliner.boot()
    logging.info("All clients booted successfully.")

    app.state.store_client = store_client
    app.state.index_client = index_client
    app.state.picture_inliner = picture_inliner

    await check_connections(store_client, index_client)

    app.state.sync_service = SyncService(
        helper_config=app.state.helper_config,
        store_client=store_client,
        index_client=index_client,
        picture_inliner=picture_inliner,
    )
    app.state.query_service = QueryService(
        helper_config=app.state.helper_config,
        store_client=store_client,
        index_client=index_client,
    )

    # ingestion runs next to the server; queries are served from the first moment
    app.state.ingestion_task = None
    if app.state.helper_config.get_bool_val("SYNC_RUN_ON_STARTUP", default=True):
        app.state.ingestion_task = asyncio.create_task(app.state.sync_service.do_startup_sync())
    else:
        await index_client.do_open_or_create()

    # while the app is running...
    yield

    # when the app shuts down, stop ingestion at a file boundary and close all client connections
    await stop_ingestion_task(
        app.state.ingestion_task,
        app.state.sync_service,
        timeout=app.state.helper_config.get_number_val("SYNC_SHUTDOWN_TIMEOUT", default=60),
    )
    logging.info("Shutting down, closing all clients...")
    await picture_inliner.close()
    await index_client.close()
    await store_client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="catalog_search",
    description=(
        "Ingests product catalog XML files into a durable store and a full-text index. "
        "Catalog records are searched by phrase via POST /search. "
        "Ingestion runs on startup and can be triggered via POST /ingest and POST /rebuild."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(search_router)
app.include_router(ingestion_router)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    status_code = getattr(exc, "status_code", 500)
    if status_code >= 500:
        logging.error("Request %s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": "Malformed request body", "errors": jsonable_encoder(exc.errors())})


async def stop_ingestion_task(task: asyncio.Task | None, sync_service: SyncService, timeout: float) -> None:
    """Let a running ingestion task finish its current file, then wait for it to end.

    The task is cancelled only if it is still running after timeout seconds.
    """
    if task is None or task.done():
        return
    logging.info("Stopping ingestion after the file in progress...")
    sync_service.request_stop()
    try:
        await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
    except asyncio.TimeoutError:
        logging.warning("Ingestion task still running after %ss, cancelling it.", timeout)
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


async def check_connections(
    store_client: StoreClientInterface,
    index_client: IndexClientInterface,
) -> None:
    """Check connectivity to the store and the index on startup.

    Both are fatal: records can be neither persisted nor searched without them.

    Raises:
        Exception: If a backend is not reachable.
    """
    for client in [store_client, index_client]:
        if not await client.do_healthcheck():
            raise Exception(
                f"{client.get_client_type()} client '{client.get_engine_name()}' is not reachable. "
                "Cannot ingest or serve queries."
            )


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    logging.info(
        "Starting catalog_search API Server v%s from root dir: %s on port %d...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
        port,
    )
    uvicorn.run(app, host="0.0.0.0", port=port)
