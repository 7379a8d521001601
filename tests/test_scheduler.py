from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from paperinsight.config.config import SchedulerConfig
from paperinsight.crawler.arxiv_client import ArxivClient
from paperinsight.jobs import daily_arxiv
from paperinsight.model.paper import FetchedPaper
from paperinsight.scheduler.scheduler_service import SchedulerService


def test_disabled_scheduler_does_not_start():
    service = SchedulerService(SchedulerConfig(enabled=False))
    service.start()

    assert service.running is False
    assert service.scheduler.get_jobs() == []


def test_daily_job_registered_from_config():
    service = SchedulerService(
        SchedulerConfig(enabled=True, daily_fetch_job="30 3 * * *", daily_fetch_query="anomaly")
    )
    service.start()
    try:
        (job,) = service.scheduler.get_jobs()
        assert job.id == SchedulerService.JOB_DAILY_ARXIV
        assert job.kwargs == {"query": "anomaly", "max_results": 10}
        assert job.next_run_time.hour == 3
        assert job.next_run_time.minute == 30
    finally:
        service.shutdown()

    assert service.running is False


@pytest.mark.asyncio
async def test_daily_job_stores_new_papers(mocker, paper_repo):
    crawler = AsyncMock(spec=ArxivClient)
    crawler.fetch_papers.return_value = [
        FetchedPaper(
            arxiv_id="2403.00009",
            title="Daily",
            abstract="Fetched by the daily job.",
            published_at=datetime(2024, 3, 9),
            source_url="https://arxiv.org/abs/2403.00009",
        )
    ]
    mocker.patch.object(daily_arxiv, "setup_logging")
    mocker.patch.object(daily_arxiv, "ArxivClient", return_value=crawler)
    mocker.patch.object(daily_arxiv, "PaperRepository", return_value=paper_repo)

    result = await daily_arxiv._run(query="anomaly", max_results=3)

    assert [p.external_id for p in result.inserted] == ["2403.00009"]
    crawler.fetch_papers.assert_awaited_once_with(
        "anomaly", max_results=3, start_date=None, end_date=None
    )
    assert paper_repo.get_by_external_id("2403.00009") is not None
