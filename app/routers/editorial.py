# app/routers/editorial.py
"""
Editorial endpoints.

POST /api/process-stream        - Run tasks, stream events as SSE
POST /api/regenerate-headlines  - Regenerate headline suggestions
POST /api/regenerate-social     - Regenerate posts for one platform
GET  /api/style-guides          - Load style guides
POST /api/fetch-doc             - Import article text from a URL
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from app.auth import require_app_password
from app.schemas.editorial import (
    FetchDocRequest,
    FetchDocResponse,
    HeadlinesResponse,
    ProcessRequest,
    RegenerateHeadlinesRequest,
    RegenerateSocialRequest,
    SocialResponse,
    StyleGuidesResponse,
)
from app.services.document_fetcher import DocumentFetcher, DocumentFetchError
from app.services.editorial_service import EditorialRequest, EditorialService, build_editorial_service
from app.services.errors import InvalidRequestError
from app.services.events import EventSink
from app.services.style_guides import load_all_style_guides

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["editorial"], dependencies=[Depends(require_app_password)])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


@lru_cache(maxsize=1)
def get_editorial_service() -> EditorialService:
    return build_editorial_service()


@lru_cache(maxsize=1)
def get_document_fetcher() -> DocumentFetcher:
    return DocumentFetcher()


def format_sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def _event_stream(service: EditorialService, request: EditorialRequest) -> AsyncIterator[str]:
    """Drain the sink while the service runs; ends after the done event."""
    sink = EventSink()
    run = asyncio.create_task(service.run(request, sink))
    try:
        async for event in sink:
            yield format_sse(event.to_dict())
        await run
    finally:
        # Client went away mid-stream
        if not run.done():
            run.cancel()


@router.post("/process-stream")
async def process_stream(
    body: ProcessRequest,
    service: EditorialService = Depends(get_editorial_service),
) -> StreamingResponse:
    """
    Run the selected tasks and stream progress as Server-Sent Events.

    Each frame is ``data: {json}``. Event types: progress, result, error,
    confirm_required, done. Invalid requests are rejected with 400 before
    the stream opens.
    """
    request = EditorialRequest(
        text=body.text,
        tasks=body.tasks,
        style_guides=body.style_guides,
        confirmed=body.confirmed,
    )
    try:
        service.validate(request)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return StreamingResponse(
        _event_stream(service, request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/regenerate-headlines", response_model=HeadlinesResponse)
async def regenerate_headlines(
    body: RegenerateHeadlinesRequest,
    service: EditorialService = Depends(get_editorial_service),
) -> HeadlinesResponse:
    try:
        suggestions = await service.regenerate_headlines(body.text, body.style_guide)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Regenerate headlines failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return HeadlinesResponse(suggestions=suggestions)


@router.post("/regenerate-social", response_model=SocialResponse)
async def regenerate_social(
    body: RegenerateSocialRequest,
    service: EditorialService = Depends(get_editorial_service),
) -> SocialResponse:
    try:
        suggestions = await service.regenerate_social(body.text, body.platform, body.style_guide)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Regenerate {body.platform} failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return SocialResponse(platform=body.platform, suggestions=suggestions)


@router.get("/style-guides", response_model=StyleGuidesResponse)
def get_style_guides() -> StyleGuidesResponse:
    return StyleGuidesResponse(**load_all_style_guides())


@router.post("/fetch-doc", response_model=FetchDocResponse)
async def fetch_doc(
    body: FetchDocRequest,
    fetcher: DocumentFetcher = Depends(get_document_fetcher),
) -> FetchDocResponse:
    """
    Import article text from a Substack post or a link-shared Google Doc.

    400 for unrecognized URLs, 502 when the page can't be fetched, 422 when
    too little text could be extracted.
    """
    try:
        document = await fetcher.fetch(body.url)
    except DocumentFetchError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return FetchDocResponse(content=document.content)
