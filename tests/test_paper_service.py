from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from paperinsight.crawler.arxiv_client import ArxivClient
from paperinsight.model.paper import FetchedPaper
from paperinsight.service.paper_service import PaperService, compose_full_text

from conftest import make_paper


def fetched(arxiv_id: str) -> FetchedPaper:
    return FetchedPaper(
        arxiv_id=arxiv_id,
        title=f"Paper {arxiv_id}",
        authors=["A"],
        abstract="An abstract long enough.",
        published_at=datetime(2024, 3, 1),
        source_url=f"https://arxiv.org/abs/{arxiv_id}",
        category="cs.LG",
        keywords=["abstract"],
    )


@pytest.fixture
def crawler():
    return AsyncMock(spec=ArxivClient)


@pytest.fixture
def paper_service(paper_repo, crawler) -> PaperService:
    return PaperService(repo=paper_repo, crawler=crawler)


@pytest.mark.asyncio
async def test_fetch_and_store_skips_existing(paper_service, paper_repo, crawler):
    paper_repo.create(make_paper(external_id="2403.00001"))
    crawler.fetch_papers.return_value = [fetched("2403.00001"), fetched("2403.00002")]

    result = await paper_service.fetch_and_store("forecasting", max_results=2)

    assert [p.external_id for p in result.inserted] == ["2403.00002"]
    assert result.skipped == 1
    assert paper_repo.get_by_external_id("2403.00002").source == "arxiv"
    crawler.fetch_papers.assert_awaited_once_with(
        "forecasting", max_results=2, start_date=None, end_date=None
    )


@pytest.mark.asyncio
async def test_fetch_and_store_empty(paper_service, crawler):
    crawler.fetch_papers.return_value = []

    result = await paper_service.fetch_and_store("nothing")

    assert result.fetched == []
    assert result.inserted == []


def test_compose_full_text_sections():
    assert compose_full_text("Abstract here") == "# 摘要\n\nAbstract here\n\n"
    assert compose_full_text("A", introduction="I", full_text="F") == (
        "# 摘要\n\nA\n\n# 引言\n\nI\n\n# 正文\n\nF\n\n"
    )
    assert compose_full_text("A", introduction="  ", full_text=None) == "# 摘要\n\nA\n\n"


def test_upload_local(paper_service, paper_repo):
    paper_id = paper_service.upload_local(
        title="  My Paper ",
        abstract="A local abstract text.",
        file_name="mine.pdf",
        authors="Ann, Ben ,,",
        introduction="Intro text.",
    )

    paper = paper_repo.get_paper_by_id(paper_id)
    assert paper.title == "My Paper"
    assert paper.source == "local"
    assert paper.source_url == "local://mine.pdf"
    assert paper.external_id.startswith("local-")
    assert paper.category == "local-upload"
    assert paper.authors == ["Ann", "Ben"]
    assert paper.full_text == compose_full_text("A local abstract text.", "Intro text.")
    assert paper.full_text.endswith("Intro text.\n\n")
