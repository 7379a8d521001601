import asyncio
import json
import threading

import httpx
import pytest

from paperinsight.errors import (
    NoApiKeyConfigured,
    PaperNotFound,
    TaskNotFound,
    UnsupportedProviderError,
)
from paperinsight.llm import create_llm_adapter
from paperinsight.model.analysis import TaskStatus
from paperinsight.service.analysis_service import AnalysisService
from paperinsight.service.report_service import ReportSynthesizer

from conftest import deepseek_reply, mock_client

pytestmark = pytest.mark.asyncio

ANSWER = (
    "## Background\n背景\n## What\n方案\n## Why\n价值\n"
    "## How\n方法\n## How-why\n论证\n## Summary\n总结"
)


def build_service(paper_repo, api_key_service, task_repo, report_repo, handler) -> AnalysisService:
    client = mock_client(handler)
    return AnalysisService(
        papers=paper_repo,
        api_keys=api_key_service,
        tasks=task_repo,
        reports=report_repo,
        synthesizer=ReportSynthesizer(system_prompt="You are a reviewer."),
        adapter_factory=lambda provider, config: create_llm_adapter(provider, config, http_client=client),
        temperature=0.7,
        max_tokens=4000,
        timeout=10,
    )


def reply_with(content: str, total_tokens: int = 2000):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=deepseek_reply(content, total_tokens))
    return handler


@pytest.fixture
def service(paper_repo, api_key_service, task_repo, report_repo):
    return build_service(paper_repo, api_key_service, task_repo, report_repo, reply_with(ANSWER))


# --- Preconditions ---

async def test_no_credential_raises_and_creates_no_task(service, stored_paper, task_repo):
    with pytest.raises(NoApiKeyConfigured):
        await service.start_analysis(user_id=1, paper_id=stored_paper.id, provider="deepseek")

    assert task_repo.list_by_user(1) == []


async def test_no_default_credential_raises(service, stored_paper, api_key_service):
    api_key_service.add_key(1, "openai", "sk", "gpt-4", is_default=False)

    with pytest.raises(NoApiKeyConfigured):
        await service.start_analysis(user_id=1, paper_id=stored_paper.id)


async def test_inactive_credential_is_ignored(service, stored_paper, api_key_service):
    key = api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)
    api_key_service.delete_key(1, key.id)

    with pytest.raises(NoApiKeyConfigured):
        await service.start_analysis(user_id=1, paper_id=stored_paper.id, provider="deepseek")


async def test_unknown_paper_raises(service, api_key_service, task_repo):
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)

    with pytest.raises(PaperNotFound):
        await service.start_analysis(user_id=1, paper_id=404)
    assert task_repo.list_by_user(1) == []


async def test_unknown_provider_raises(service, stored_paper):
    with pytest.raises(UnsupportedProviderError):
        await service.start_analysis(user_id=1, paper_id=stored_paper.id, provider="mistral")


async def test_unknown_task_raises(service):
    with pytest.raises(TaskNotFound):
        service.get_task_status("missing")


# --- Execution ---

async def test_successful_job_persists_report(service, stored_paper, api_key_service, report_repo, api_key_repo):
    key = api_key_service.add_key(1, "deepseek", "sk-live", "deepseek-chat", is_default=True)

    task_id = await service.start_analysis(user_id=1, paper_id=stored_paper.id)

    task = service.get_task_status(task_id)
    assert task.status == TaskStatus.PENDING
    assert task.provider == "deepseek"
    assert task.model_name == "deepseek-chat"
    assert api_key_repo.get_by_id(key.id).last_used_at is not None

    await service.drain()

    task = service.get_task_status(task_id)
    assert task.status == TaskStatus.COMPLETED
    assert task.progress == 100
    assert task.tokens_used == 2000
    assert task.cost_estimate == pytest.approx(2000 * 0.5 * (0.14 + 0.28) / 1_000_000)
    assert task.completed_at is not None
    assert task.error_message is None

    report = report_repo.get_by_paper(stored_paper.id)
    assert report.background == "背景"
    assert report.how == "方法"
    assert report.how_why == "论证"
    assert report.summary == "总结"


async def test_model_name_override(service, stored_paper, api_key_service):
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)

    task_id = await service.start_analysis(user_id=1, paper_id=stored_paper.id, model_name="deepseek-reasoner")
    await service.drain()

    assert service.get_task_status(task_id).model_name == "deepseek-reasoner"


async def test_request_carries_one_system_and_one_user_message(
    paper_repo, api_key_service, task_repo, report_repo, stored_paper
):
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=deepseek_reply(ANSWER))

    service = build_service(paper_repo, api_key_service, task_repo, report_repo, handler)
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)

    await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    await service.drain()

    roles = [m["role"] for m in bodies[0]["messages"]]
    assert roles == ["system", "user"]


async def test_progress_sequence(service, stored_paper, api_key_service, task_repo, mocker):
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)
    spy = mocker.spy(task_repo, "update_task")

    task_id = await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    await service.drain()

    progress = [c.kwargs["progress"] for c in spy.call_args_list if "progress" in c.kwargs]
    statuses = [c.kwargs["status"] for c in spy.call_args_list if "status" in c.kwargs]
    assert progress == [10, 30, 80, 100]
    assert statuses == [TaskStatus.PROCESSING, TaskStatus.COMPLETED]
    assert service.get_task_status(task_id).status.is_terminal


async def test_provider_error_marks_task_failed(
    paper_repo, api_key_service, task_repo, report_repo, stored_paper
):
    def handler(request):
        return httpx.Response(401, text="invalid api key")

    service = build_service(paper_repo, api_key_service, task_repo, report_repo, handler)
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)

    task_id = await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    await service.drain()

    task = service.get_task_status(task_id)
    assert task.status == TaskStatus.FAILED
    assert "401" in task.error_message
    assert task.progress == 30
    assert report_repo.get_by_paper(stored_paper.id) is None


async def test_missing_token_usage_costs_zero(
    paper_repo, api_key_service, task_repo, report_repo, stored_paper
):
    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": ANSWER}}]})

    service = build_service(paper_repo, api_key_service, task_repo, report_repo, handler)
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)

    task_id = await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    await service.drain()

    task = service.get_task_status(task_id)
    assert task.tokens_used == 0
    assert task.cost_estimate == 0


async def test_terminal_snapshot_is_stable(service, stored_paper, api_key_service):
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)

    task_id = await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    await service.drain()

    assert service.get_task_status(task_id) == service.get_task_status(task_id)


async def test_concurrent_jobs_last_writer_wins(
    paper_repo, api_key_service, task_repo, report_repo, stored_paper
):
    release_first = asyncio.Event()
    calls = []

    async def slow_then_fast(request):
        calls.append(request)
        if len(calls) == 1:
            await release_first.wait()
            return httpx.Response(200, json=deepseek_reply("## Background\nfirst\n## Summary\nfirst"))
        return httpx.Response(200, json=deepseek_reply("## Background\nsecond\n## Summary\nsecond"))

    service = build_service(paper_repo, api_key_service, task_repo, report_repo, slow_then_fast)
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)

    first = await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    second = await service.start_analysis(user_id=1, paper_id=stored_paper.id)

    # 第二个任务先完成，第一个任务最后写入
    while service.get_task_status(second).status != TaskStatus.COMPLETED:
        await asyncio.sleep(0.01)
    assert report_repo.get_by_paper(stored_paper.id).background == "second"

    release_first.set()
    await service.drain()

    assert service.get_task_status(first).status == TaskStatus.COMPLETED
    assert report_repo.get_by_paper(stored_paper.id).background == "first"


async def test_list_tasks_newest_first(service, stored_paper, api_key_service):
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)

    first = await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    await asyncio.sleep(0.01)
    second = await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    await service.drain()

    assert [t.id for t in service.list_tasks(1)] == [second, first]
    assert service.list_tasks(2) == []


async def test_concurrent_jobs_save_off_the_event_loop(
    paper_repo, api_key_service, task_repo, report_repo, stored_paper, mocker
):
    both_waiting = asyncio.Event()
    calls = []

    async def wait_for_both(request):
        calls.append(request)
        if len(calls) == 2:
            both_waiting.set()
        await both_waiting.wait()
        return httpx.Response(200, json=deepseek_reply(ANSWER))

    save_threads = []
    save_for_paper = report_repo.save_for_paper

    def record_thread(*args, **kwargs):
        save_threads.append(threading.get_ident())
        return save_for_paper(*args, **kwargs)

    mocker.patch.object(report_repo, "save_for_paper", side_effect=record_thread)

    service = build_service(paper_repo, api_key_service, task_repo, report_repo, wait_for_both)
    api_key_service.add_key(1, "deepseek", "sk", "deepseek-chat", is_default=True)

    first = await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    second = await service.start_analysis(user_id=1, paper_id=stored_paper.id)
    await service.drain()

    assert service.get_task_status(first).status == TaskStatus.COMPLETED
    assert service.get_task_status(second).status == TaskStatus.COMPLETED
    assert len(save_threads) == 2
    assert threading.get_ident() not in save_threads
    assert report_repo.get_by_paper(stored_paper.id).how_why == "论证"
