from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import RebuildSource
from server.models.responses import AcceptedResponse, RebuildResponse
from shared.catalog.models.IngestionStatus import IngestionStatus

router = APIRouter(tags=["ingestion"])


@router.post("/ingest", status_code=202)
async def trigger_ingest(
    request: Request,
    background_tasks: BackgroundTasks,
    _: None = Depends(verify_api_key),
) -> AcceptedResponse:
    """Start an ingestion pass over unconsumed files in the background.

    Raises:
        HTTPException: 409 if a pass or rebuild is already running.
    """
    sync_service = request.app.state.sync_service
    if sync_service.is_busy():
        raise HTTPException(status_code=409, detail="Ingestion is already running")
    background_tasks.add_task(sync_service.do_full_sync)
    return AcceptedResponse(status="accepted", detail="Ingestion pass scheduled")


@router.post("/rebuild")
async def rebuild(
    request: Request,
    source: RebuildSource = RebuildSource.store,
    _: None = Depends(verify_api_key),
) -> RebuildResponse:
    """Rebuild the index from the store, or store and index from the source files.

    Args:
        request (Request): FastAPI request (provides app.state.sync_service).
        source (RebuildSource): "store" re-indexes stored records; "files" re-ingests every source file.
        _ (None): Auth dependency result (unused).

    Raises:
        HTTPException: 409 if a pass or rebuild is already running.
    """
    sync_service = request.app.state.sync_service
    if sync_service.is_busy():
        raise HTTPException(status_code=409, detail="Ingestion is already running")
    if source == RebuildSource.files:
        report = await sync_service.do_rebuild_from_sources()
        return RebuildResponse(source=source.value, documents_indexed=report.records_indexed, report=report)
    indexed = await sync_service.do_rebuild_index()
    return RebuildResponse(source=source.value, documents_indexed=indexed)


@router.get("/status")
async def ingestion_status(request: Request) -> IngestionStatus:
    return request.app.state.sync_service.get_status()
