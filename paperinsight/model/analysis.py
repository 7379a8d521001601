"""
分析任务 / 分析报告 数据模型
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class TaskStatus(str, Enum):
    """任务状态：pending -> processing -> completed | failed（终态不可再变）"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class AnalysisTask(BaseModel):
    """一次分析尝试（一篇论文 + 一个提供商/模型/密钥）"""
    id: str
    user_id: int
    paper_id: int
    provider: str
    model_name: str

    status: TaskStatus = TaskStatus.PENDING
    progress: int = 0  # 0-100

    tokens_used: Optional[int] = None
    cost_estimate: Optional[float] = None  # USD
    error_message: Optional[str] = None

    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None


class ReportSections(BaseModel):
    """五维度 + Summary"""
    background: str
    what: str
    why: str
    how: str
    how_why: str
    summary: str


class AnalysisReport(ReportSections):
    """每篇论文至多一份，后完成的任务覆盖先前的报告"""
    id: Optional[int] = None
    paper_id: int
    status: TaskStatus = TaskStatus.COMPLETED
    generated_at: datetime = Field(default_factory=datetime.utcnow)
