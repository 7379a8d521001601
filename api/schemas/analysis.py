from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from paperinsight.llm import LLMProvider
from paperinsight.model.analysis import AnalysisTask


class AnalysisRequest(BaseModel):
    paper_id: int
    provider: Optional[LLMProvider] = None
    model_name: Optional[str] = None


class AnalysisStartedResponse(BaseModel):
    task_id: str


class TaskResponse(BaseModel):
    """前端每 2 秒轮询一次"""
    id: str
    paper_id: int
    provider: str
    model_name: str
    status: str
    progress: int
    tokens_used: Optional[int] = None
    cost_estimate: Optional[float] = None
    error_message: Optional[str] = None
    started_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_task(cls, task: AnalysisTask) -> TaskResponse:
        return cls(**task.model_dump(exclude={"user_id", "status"}), status=task.status.value)
