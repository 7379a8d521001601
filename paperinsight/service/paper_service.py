"""
Paper Service

- fetch_and_store: arXiv 抓取 -> 按 external_id 去重入库
- upload_local: 本地论文（摘要 / 引言 / 正文拼成 full_text）直接入库
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from paperinsight.crawler.arxiv_client import ArxivClient
from paperinsight.database.paper_repository import PaperRepository
from paperinsight.model.paper import FetchedPaper, Paper

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    fetched: List[FetchedPaper] = field(default_factory=list)
    inserted: List[Paper] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.fetched) - len(self.inserted)


def compose_full_text(
    abstract: str,
    introduction: Optional[str] = None,
    full_text: Optional[str] = None,
) -> str:
    text = f"# 摘要\n\n{abstract}\n\n"
    if introduction and introduction.strip():
        text += f"# 引言\n\n{introduction}\n\n"
    if full_text and full_text.strip():
        text += f"# 正文\n\n{full_text}\n\n"
    return text


class PaperService:

    def __init__(self, repo: PaperRepository, crawler: ArxivClient):
        self.repo = repo
        self.crawler = crawler

    async def fetch_and_store(
        self,
        query: str = "time series",
        max_results: int = 20,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> FetchResult:
        fetched = await self.crawler.fetch_papers(
            query,
            max_results=max_results,
            start_date=start_date,
            end_date=end_date,
        )
        logger.info(f"📥 [Papers] Fetched {len(fetched)} papers from arXiv for query '{query}'")

        if not fetched:
            return FetchResult()

        inserted = await asyncio.to_thread(self.repo.insert_new_papers, [p.to_paper() for p in fetched])
        result = FetchResult(fetched=fetched, inserted=inserted)
        logger.info(f"📌 [Papers] inserted={len(result.inserted)} skipped={result.skipped}")
        return result

    def upload_local(
        self,
        title: str,
        abstract: str,
        file_name: str,
        authors: str = "Unknown",
        introduction: Optional[str] = None,
        full_text: Optional[str] = None,
    ) -> int:
        """
        Returns:
            新论文的 id
        """
        author_list = [a.strip() for a in authors.split(",") if a.strip()]

        paper = Paper(
            external_id=f"local-{int(time.time() * 1000)}",
            title=title.strip(),
            authors=author_list,
            abstract=abstract.strip(),
            full_text=compose_full_text(abstract, introduction, full_text),
            published_at=datetime.utcnow(),
            source="local",
            source_url=f"local://{file_name}",
            category="local-upload",
            keywords=[],
        )
        paper_id = self.repo.create(paper)
        logger.info(f"📤 [Papers] Local paper uploaded: id={paper_id} file={file_name}")
        return paper_id
