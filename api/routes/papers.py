import logging
from typing import Literal, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_current_user_id, get_paper_repo, get_paper_service, get_report_repo
from api.schemas.paper import (
    FetchedPaperResponse,
    FetchRequest,
    FetchResponse,
    PaginationMeta,
    PaperCardResponse,
    PaperDetailResponse,
    PaperListResponse,
    UploadRequest,
    UploadResponse,
)
from paperinsight.database.analysis_repository import AnalysisReportRepository
from paperinsight.database.paper_repository import PaperRepository
from paperinsight.service.paper_service import PaperService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/papers", tags=["papers"])


@router.get("", response_model=PaperListResponse)
def list_papers(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    category: Optional[str] = Query(default=None),
    q: Optional[str] = Query(default=None, description="Search in title / abstract"),
    sort: Literal["newest", "oldest"] = Query(default="newest"),
    repo: PaperRepository = Depends(get_paper_repo),
):
    """List papers with pagination."""
    papers = repo.list_papers(
        limit=limit,
        offset=offset,
        category=category,
        search=q,
        sort_by=sort,
    )
    cards = [PaperCardResponse.from_paper(p) for p in papers]
    return PaperListResponse(
        data=cards,
        pagination=PaginationMeta(limit=limit, offset=offset, count=len(cards)),
    )


@router.get("/{paper_id}", response_model=PaperDetailResponse)
def get_paper(
    paper_id: int,
    repo: PaperRepository = Depends(get_paper_repo),
    reports: AnalysisReportRepository = Depends(get_report_repo),
):
    """Get a single paper with its analysis report (if any)."""
    paper = repo.get_paper_by_id(paper_id)
    if not paper:
        raise HTTPException(status_code=404, detail="Paper not found")
    return PaperDetailResponse.from_paper(paper, reports.get_by_paper(paper_id))


@router.post("/fetch", response_model=FetchResponse)
async def fetch_from_arxiv(
    body: FetchRequest,
    service: PaperService = Depends(get_paper_service),
):
    """Fetch papers from arXiv and store the new ones."""
    try:
        result = await service.fetch_and_store(
            query=body.search_query,
            max_results=body.max_results,
            start_date=body.start_date,
            end_date=body.end_date,
        )
    except httpx.HTTPError as e:
        logger.error(f"❌ [Papers] arXiv fetch failed: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to fetch papers from arXiv: {e}")

    return FetchResponse(
        count=len(result.fetched),
        inserted_ids=[p.id for p in result.inserted],
        skipped=result.skipped,
        papers=[FetchedPaperResponse.from_fetched(p) for p in result.fetched],
        message=None if result.fetched else "No papers found for the given query and date range",
    )


@router.post("/upload", response_model=UploadResponse)
def upload_local(
    body: UploadRequest,
    user_id: int = Depends(get_current_user_id),
    service: PaperService = Depends(get_paper_service),
):
    """Upload a local paper (text already extracted by the client)."""
    paper_id = service.upload_local(
        title=body.title,
        abstract=body.abstract,
        file_name=body.file_name,
        authors=body.authors,
        introduction=body.introduction,
        full_text=body.full_text,
    )
    logger.info(f"📤 [Papers] user={user_id} uploaded paper {paper_id}")
    return UploadResponse(paper_id=paper_id)
