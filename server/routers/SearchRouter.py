from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import SearchRequest
from shared.catalog.models.CatalogRecord import CatalogRecord

router = APIRouter(prefix="/search", tags=["search"])


@router.post("", response_model=list[CatalogRecord], response_model_by_alias=True)
async def search_catalog(
    request: Request,
    body: SearchRequest,
    _: None = Depends(verify_api_key),
) -> list[CatalogRecord]:
    """Execute a phrase search over the catalog.

    Args:
        request (Request): FastAPI request (provides app.state.query_service).
        body (SearchRequest): JSON body with the query phrase.
        _ (None): Auth dependency result (unused).

    Returns:
        list[CatalogRecord]: Matching records in relevance order, possibly empty.
    """
    query_service = request.app.state.query_service
    return await query_service.search(body.query)
