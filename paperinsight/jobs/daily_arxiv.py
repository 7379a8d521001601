# paperinsight/jobs/daily_arxiv.py

"""
Daily ArXiv fetch job.

This module contains PURE job logic.
It is safe to be called by:
- APScheduler
- CLI (run_fetch.py)
"""

import asyncio
import logging
from typing import Optional

from tqdm import tqdm

from paperinsight.config import Config
from paperinsight.crawler.arxiv_client import ArxivClient
from paperinsight.database.paper_repository import PaperRepository
from paperinsight.logging_config import setup_logging
from paperinsight.service.paper_service import FetchResult, PaperService

logger = logging.getLogger(__name__)


def run_daily_arxiv_job(query: Optional[str] = None, max_results: Optional[int] = None) -> None:
    """
    Entry point for scheduler.

    NOTE:
    - APScheduler expects a normal sync function
    - Internally we can still use asyncio
    """
    asyncio.run(_run(query, max_results))


async def _run(query: Optional[str] = None, max_results: Optional[int] = None) -> FetchResult:
    setup_logging()
    logger.info("🌿 PaperInsight — Daily ArXiv Job started")

    query = query or Config.scheduler.daily_fetch_query
    max_results = max_results or Config.scheduler.daily_fetch_max_results

    service = PaperService(repo=PaperRepository(), crawler=ArxivClient())

    logger.info(f"🔎 Fetching new papers from arXiv: query='{query}' max_results={max_results}")
    result = await service.fetch_and_store(query=query, max_results=max_results)

    for paper in tqdm(result.inserted, desc="New papers"):
        logger.info(f"📄 [{paper.id}] {paper.external_id} {paper.title}")

    logger.info(
        f"📚 fetched={len(result.fetched)} inserted={len(result.inserted)} skipped={result.skipped}"
    )
    logger.info("🎉 Daily ArXiv job finished")
    return result


if __name__ == "__main__":
    run_daily_arxiv_job()
