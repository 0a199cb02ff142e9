"""Admin API endpoints.

Routes:
- POST /admin/ingest - Ingest a text document
- GET /admin/documents - List documents with chunk counts
- POST /admin/documents/bulk-delete - Delete several documents
- GET /admin/documents/{document_id} - Get document with full text
- PATCH /admin/documents/{document_id} - Update title/tags
- DELETE /admin/documents/{document_id} - Delete document and chunks
- GET /admin/documents/{document_id}/preview - Show stored chunks
- POST /admin/rag-test - Run retrieval without generating an answer
- GET /admin/cache - Similarity cache counters
- DELETE /admin/cache - Clear similarity cache
- GET /admin/settings - Effective chat settings
- PUT /admin/settings - Update chat settings
- GET /admin/analytics - Operation timing summaries

Dependencies: buddy.application.services
System role: Knowledge base and configuration admin HTTP API
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from buddy.api.deps import (
    get_analytics_service,
    get_document_service,
    get_retrieval_service,
    get_settings_service,
)
from buddy.api.routers.router_utils.error_handling import handle_api_errors
from buddy.application.services.analytics_service import AnalyticsService
from buddy.application.services.document_service import DocumentService
from buddy.application.services.retrieval_service import RetrievalService
from buddy.application.services.settings_service import SettingsService
from buddy.models.analytics import AnalyticsResponse
from buddy.models.document import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    DocumentDetailResponse,
    DocumentIngestRequest,
    DocumentListResponse,
    DocumentPreviewResponse,
    DocumentResponse,
    DocumentUpdateRequest,
    IngestResponse,
)
from buddy.models.retrieval import CacheStatsResponse, RagTestRequest, RagTestResponse
from buddy.models.settings import SettingsResponse, SettingsUpdate

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/ingest", response_model=IngestResponse, status_code=status.HTTP_201_CREATED)
@handle_api_errors
async def ingest_document(
    request: DocumentIngestRequest,
    service: DocumentService = Depends(get_document_service),
) -> IngestResponse:
    """Chunk, embed and store a text document."""
    return await service.ingest_document(
        title=request.title,
        text=request.text,
        tags=request.tags,
    )


@router.get("/documents", response_model=DocumentListResponse)
@handle_api_errors
async def list_documents(
    limit: int | None = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: DocumentService = Depends(get_document_service),
) -> DocumentListResponse:
    """List documents newest first."""
    return await service.list_documents(limit=limit, offset=offset)


@router.post("/documents/bulk-delete", response_model=BulkDeleteResponse)
@handle_api_errors
async def bulk_delete_documents(
    request: BulkDeleteRequest,
    service: DocumentService = Depends(get_document_service),
) -> BulkDeleteResponse:
    """Delete several documents and their chunks."""
    deleted = await service.bulk_delete_documents(request.ids)
    return BulkDeleteResponse(deleted=deleted)


@router.get("/documents/{document_id}", response_model=DocumentDetailResponse)
@handle_api_errors
async def get_document(
    document_id: UUID,
    service: DocumentService = Depends(get_document_service),
) -> DocumentDetailResponse:
    """Get a document with its full text."""
    return await service.get_document(document_id)


@router.patch("/documents/{document_id}", response_model=DocumentResponse)
@handle_api_errors
async def update_document(
    document_id: UUID,
    request: DocumentUpdateRequest,
    service: DocumentService = Depends(get_document_service),
) -> DocumentResponse:
    """Update a document's title and/or tags."""
    return await service.update_document(document_id, title=request.title, tags=request.tags)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_api_errors
async def delete_document(
    document_id: UUID,
    service: DocumentService = Depends(get_document_service),
) -> None:
    """Delete a document and its chunks."""
    await service.delete_document(document_id)


@router.get("/documents/{document_id}/preview", response_model=DocumentPreviewResponse)
@handle_api_errors
async def preview_document(
    document_id: UUID,
    limit: int | None = Query(None, ge=1, le=1000),
    service: DocumentService = Depends(get_document_service),
) -> DocumentPreviewResponse:
    """Show how a document was chunked."""
    return await service.get_document_chunks(document_id, limit=limit)


@router.post("/rag-test", response_model=RagTestResponse)
@handle_api_errors
async def rag_test(
    request: RagTestRequest,
    service: RetrievalService = Depends(get_retrieval_service),
) -> RagTestResponse:
    """Run retrieval for a query and report results with timings."""
    return await service.test_retrieval(request)


@router.get("/cache", response_model=CacheStatsResponse)
@handle_api_errors
async def cache_stats(
    service: RetrievalService = Depends(get_retrieval_service),
) -> CacheStatsResponse:
    """Similarity cache counters."""
    return service.cache_stats()


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
@handle_api_errors
async def clear_cache(
    service: RetrievalService = Depends(get_retrieval_service),
) -> None:
    """Drop every cached search result."""
    service.clear_cache()


@router.get("/settings", response_model=SettingsResponse)
@handle_api_errors
async def get_chat_settings(
    service: SettingsService = Depends(get_settings_service),
) -> SettingsResponse:
    """Effective chat settings, defaults applied."""
    return await service.get_settings()


@router.put("/settings", response_model=SettingsResponse)
@handle_api_errors
async def update_chat_settings(
    request: SettingsUpdate,
    service: SettingsService = Depends(get_settings_service),
) -> SettingsResponse:
    """Update chat settings; omitted fields keep their value."""
    return await service.update_settings(request)


@router.get("/analytics", response_model=AnalyticsResponse)
@handle_api_errors
async def get_analytics(
    since: datetime | None = Query(
        None, description="Window start (ISO 8601); last 24 hours when omitted"
    ),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse:
    """Latency summaries per operation."""
    return service.get_analytics(since)
