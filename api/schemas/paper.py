from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from paperinsight.model.analysis import AnalysisReport
from paperinsight.model.paper import FetchedPaper, Paper


# --- Card (list view) ---

class PaperCardResponse(BaseModel):
    id: int
    external_id: str
    title: str
    authors: List[str]
    abstract: Optional[str] = None
    published_at: datetime
    source: str
    source_url: str
    category: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)

    @classmethod
    def from_paper(cls, paper: Paper) -> PaperCardResponse:
        return cls(**paper.model_dump(exclude={"full_text", "created_at", "updated_at"}))


# --- Detail (single paper + report) ---

class ReportResponse(BaseModel):
    background: str
    what: str
    why: str
    how: str
    how_why: str
    summary: str
    status: str
    generated_at: Optional[datetime] = None

    @classmethod
    def from_report(cls, report: AnalysisReport) -> ReportResponse:
        return cls(
            background=report.background,
            what=report.what,
            why=report.why,
            how=report.how,
            how_why=report.how_why,
            summary=report.summary,
            status=report.status.value,
            generated_at=report.generated_at,
        )


class PaperDetailResponse(PaperCardResponse):
    full_text: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    report: Optional[ReportResponse] = None

    @classmethod
    def from_paper(cls, paper: Paper, report: Optional[AnalysisReport] = None) -> PaperDetailResponse:
        return cls(
            **paper.model_dump(),
            report=ReportResponse.from_report(report) if report else None,
        )


# --- List response ---

class PaginationMeta(BaseModel):
    limit: int
    offset: int
    count: int


class PaperListResponse(BaseModel):
    data: List[PaperCardResponse]
    pagination: PaginationMeta


# --- Fetch ---

class FetchRequest(BaseModel):
    search_query: str = "time series"
    max_results: int = Field(default=20, ge=1, le=50)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class FetchedPaperResponse(BaseModel):
    arxiv_id: str
    title: str
    authors: List[str]
    abstract: str
    published_at: datetime
    source_url: str
    category: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)

    @classmethod
    def from_fetched(cls, paper: FetchedPaper) -> FetchedPaperResponse:
        return cls(**paper.model_dump())


class FetchResponse(BaseModel):
    count: int
    inserted_ids: List[int]
    skipped: int
    papers: List[FetchedPaperResponse]
    message: Optional[str] = None


# --- Local upload ---

class UploadRequest(BaseModel):
    title: str = Field(min_length=1)
    authors: str = "Unknown"
    abstract: str = Field(min_length=10)
    introduction: Optional[str] = None
    full_text: Optional[str] = None
    file_name: str = Field(min_length=1)


class UploadResponse(BaseModel):
    success: bool = True
    paper_id: int
    message: str = "Paper uploaded successfully"
