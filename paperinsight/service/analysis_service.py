"""
Analysis Service

管理论文分析任务：
- start_analysis: 校验前置条件 -> 建任务 -> 后台 asyncio.Task 执行 -> 立即返回 task_id
- _execute: processing(10) -> 建适配器(30) -> 调 LLM(80) -> 解析入库 -> completed(100)
- 任何异常都记为 failed，不会逃出后台任务
- 仓储是同步 SQLAlchemy，一律经 asyncio.to_thread 调用，不占事件循环
"""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Set

from paperinsight.database.analysis_repository import (
    AnalysisReportRepository,
    AnalysisTaskRepository,
)
from paperinsight.database.paper_repository import PaperRepository
from paperinsight.errors import NoApiKeyConfigured, PaperNotFound, TaskNotFound
from paperinsight.llm import BaseLLMAdapter, LLMConfig, create_llm_adapter, parse_provider
from paperinsight.model.analysis import AnalysisTask, TaskStatus
from paperinsight.model.paper import Paper

from .api_key_service import ApiKeyService
from .report_service import ReportSynthesizer

logger = logging.getLogger(__name__)

AdapterFactory = Callable[..., BaseLLMAdapter]


class AnalysisService:

    def __init__(
        self,
        papers: PaperRepository,
        api_keys: ApiKeyService,
        tasks: AnalysisTaskRepository,
        reports: AnalysisReportRepository,
        synthesizer: Optional[ReportSynthesizer] = None,
        adapter_factory: AdapterFactory = create_llm_adapter,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        from paperinsight.config import Config

        self.papers = papers
        self.api_keys = api_keys
        self.tasks = tasks
        self.reports = reports
        self.synthesizer = synthesizer or ReportSynthesizer()
        self.adapter_factory = adapter_factory

        self.temperature = temperature if temperature is not None else Config.llm.temperature
        self.max_tokens = max_tokens if max_tokens is not None else Config.llm.max_tokens
        self.timeout = timeout if timeout is not None else Config.llm.timeout

        # 持有后台任务的引用，避免被 GC；drain() 时等待它们结束
        self._running: Set[asyncio.Task] = set()

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------

    async def start_analysis(
        self,
        user_id: int,
        paper_id: int,
        provider: Optional[str] = None,
        model_name: Optional[str] = None,
    ) -> str:
        if provider:
            provider = parse_provider(provider).value

        paper = await asyncio.to_thread(self.papers.get_paper_by_id, paper_id)
        if paper is None:
            raise PaperNotFound(paper_id)

        key = await asyncio.to_thread(self.api_keys.resolve_key, user_id, provider)
        if key is None:
            raise NoApiKeyConfigured(provider)

        api_key = self.api_keys.decrypt(key)
        await asyncio.to_thread(self.api_keys.repo.touch_last_used, key.id)

        model = model_name or key.model_name
        task_id = uuid.uuid4().hex
        await asyncio.to_thread(
            self.tasks.create_task,
            task_id=task_id,
            user_id=user_id,
            paper_id=paper_id,
            provider=key.provider,
            model_name=model,
        )
        logger.info(
            f"📝 [Analysis] Task {task_id} created: paper={paper_id} provider={key.provider} model={model}"
        )

        job = asyncio.create_task(self._execute(task_id, paper, key.provider, api_key, model))
        self._running.add(job)
        job.add_done_callback(self._running.discard)

        return task_id

    def get_task_status(self, task_id: str) -> AnalysisTask:
        task = self.tasks.get_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def list_tasks(self, user_id: int, limit: int = 20) -> List[AnalysisTask]:
        return self.tasks.list_by_user(user_id, limit=limit)

    async def drain(self) -> None:
        """等待所有进行中的分析任务结束"""
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    # --------------------------------------------------
    # Background execution
    # --------------------------------------------------

    async def _execute(
        self,
        task_id: str,
        paper: Paper,
        provider: str,
        api_key: str,
        model_name: str,
    ) -> None:
        try:
            await asyncio.to_thread(self.tasks.update_task, task_id, status=TaskStatus.PROCESSING, progress=10)

            adapter = self.adapter_factory(
                provider,
                LLMConfig(
                    api_key=api_key,
                    model=model_name,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout,
                ),
            )
            messages = self.synthesizer.build_messages(paper)

            await asyncio.to_thread(self.tasks.update_task, task_id, progress=30)

            response = await adapter.chat(messages)

            await asyncio.to_thread(self.tasks.update_task, task_id, progress=80)

            sections = self.synthesizer.parse_response(response.content)
            await asyncio.to_thread(self.reports.save_for_paper, paper.id, sections)

            tokens_used = response.tokens_used or 0
            cost = adapter.estimate_cost(tokens_used)

            await asyncio.to_thread(
                self.tasks.update_task,
                task_id,
                status=TaskStatus.COMPLETED,
                progress=100,
                tokens_used=tokens_used,
                cost_estimate=cost,
                completed_at=datetime.utcnow(),
            )
            logger.info(
                f"✅ [Analysis] Task {task_id} completed: tokens={tokens_used} cost=${cost:.6f}"
            )

        except Exception as e:
            logger.error(f"❌ [Analysis] Task {task_id} failed: {e}")
            try:
                await asyncio.to_thread(
                    self.tasks.update_task,
                    task_id,
                    status=TaskStatus.FAILED,
                    error_message=str(e) or e.__class__.__name__,
                )
            except Exception:
                logger.exception(f"❌ [Analysis] Could not mark task {task_id} as failed")
