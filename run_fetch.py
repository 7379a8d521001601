"""
手动抓取 arXiv 论文并入库

    python run_fetch.py
    python run_fetch.py --query "anomaly detection" --max-results 30
    python run_fetch.py --query "forecasting" --start 2024-01-01 --end 2024-06-30
"""

import argparse
import asyncio
from datetime import date

from paperinsight.crawler.arxiv_client import ArxivClient
from paperinsight.database.paper_repository import PaperRepository
from paperinsight.logging_config import setup_logging
from paperinsight.service.paper_service import PaperService
from paperinsight.config import Config


async def main(args):
    print("🌿 PaperInsight — ArXiv Fetch Running...")

    service = PaperService(repo=PaperRepository(), crawler=ArxivClient())
    result = await service.fetch_and_store(
        query=args.query,
        max_results=args.max_results,
        start_date=args.start,
        end_date=args.end,
    )

    for paper in result.inserted:
        print(f"📌 [{paper.id}] {paper.external_id} {paper.title}")

    print(f"\n📚 Found={len(result.fetched)} New={len(result.inserted)} Skipped={result.skipped}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fetch papers from arXiv into the database")
    parser.add_argument("--query", default=Config.scheduler.daily_fetch_query, help="Search query")
    parser.add_argument("--max-results", type=int, default=20, help="1-50 (default: 20)")
    parser.add_argument("--start", type=date.fromisoformat, default=None, help="Start date YYYY-MM-DD")
    parser.add_argument("--end", type=date.fromisoformat, default=None, help="End date YYYY-MM-DD")

    setup_logging()
    asyncio.run(main(parser.parse_args()))
