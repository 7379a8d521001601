# paperinsight/database/analysis_repository.py

"""
Analysis Repository - 分析任务 & 分析报告

- 任务：创建 / 部分更新 / 查询（轮询接口直接读这里）
- 报告：每篇论文一份，save_for_paper 单条 upsert 覆盖写（后写者胜）
"""

from __future__ import annotations

from typing import Any, List, Optional
from datetime import datetime

from sqlalchemy import select, desc
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import sessionmaker

from paperinsight.model.analysis import (
    AnalysisReport,
    AnalysisTask,
    ReportSections,
    TaskStatus,
)
from paperinsight.database.db.session import get_session_factory
from paperinsight.database.db.models import AnalysisReportRow, AnalysisTaskRow

# 方言自带的 insert 才有 on_conflict_do_update
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AnalysisTaskRepository:

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or get_session_factory()

    def create_task(
        self,
        task_id: str,
        user_id: int,
        paper_id: int,
        provider: str,
        model_name: str,
    ) -> AnalysisTask:
        with self._session_factory() as db:
            row = AnalysisTaskRow(
                id=task_id,
                user_id=user_id,
                paper_id=paper_id,
                provider=provider,
                model_name=model_name,
                status=TaskStatus.PENDING.value,
                progress=0,
                started_at=datetime.utcnow(),
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return self._row_to_task(row)

    def update_task(self, task_id: str, **fields: Any) -> Optional[AnalysisTask]:
        with self._session_factory() as db:
            row = db.get(AnalysisTaskRow, task_id)
            if not row:
                return None

            for name, value in fields.items():
                if not hasattr(AnalysisTaskRow, name):
                    raise ValueError(f"Field '{name}' is not a valid AnalysisTask field")
                if isinstance(value, TaskStatus):
                    value = value.value
                setattr(row, name, value)

            db.commit()
            db.refresh(row)
            return self._row_to_task(row)

    def get_task(self, task_id: str) -> Optional[AnalysisTask]:
        with self._session_factory() as db:
            row = db.get(AnalysisTaskRow, task_id)
            if not row:
                return None
            return self._row_to_task(row)

    def list_by_user(self, user_id: int, limit: int = 20) -> List[AnalysisTask]:
        """最近的任务在前"""
        with self._session_factory() as db:
            rows = db.execute(
                select(AnalysisTaskRow)
                .where(AnalysisTaskRow.user_id == user_id)
                .order_by(desc(AnalysisTaskRow.started_at))
                .limit(limit)
            ).scalars().all()
            return [self._row_to_task(r) for r in rows]

    def _row_to_task(self, row: AnalysisTaskRow) -> AnalysisTask:
        return AnalysisTask(
            id=row.id,
            user_id=row.user_id,
            paper_id=row.paper_id,
            provider=row.provider,
            model_name=row.model_name,
            status=TaskStatus(row.status),
            progress=row.progress,
            tokens_used=row.tokens_used,
            cost_estimate=row.cost_estimate,
            error_message=row.error_message,
            started_at=row.started_at,
            completed_at=row.completed_at,
        )


class AnalysisReportRepository:

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or get_session_factory()

    def get_by_paper(self, paper_id: int) -> Optional[AnalysisReport]:
        with self._session_factory() as db:
            row = db.execute(
                select(AnalysisReportRow).where(AnalysisReportRow.paper_id == paper_id)
            ).scalar_one_or_none()
            if not row:
                return None
            return self._row_to_report(row)

    def create(self, report: AnalysisReport) -> AnalysisReport:
        with self._session_factory() as db:
            row = AnalysisReportRow(
                paper_id=report.paper_id,
                background=report.background,
                what=report.what,
                why=report.why,
                how=report.how,
                how_why=report.how_why,
                summary=report.summary,
                status=report.status.value,
                generated_at=report.generated_at,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return self._row_to_report(row)

    def update(self, report_id: int, **fields: Any) -> Optional[AnalysisReport]:
        with self._session_factory() as db:
            row = db.get(AnalysisReportRow, report_id)
            if not row:
                return None

            for name, value in fields.items():
                if not hasattr(AnalysisReportRow, name):
                    raise ValueError(f"Field '{name}' is not a valid AnalysisReport field")
                if isinstance(value, TaskStatus):
                    value = value.value
                setattr(row, name, value)
            row.updated_at = datetime.utcnow()

            db.commit()
            db.refresh(row)
            return self._row_to_report(row)

    def save_for_paper(self, paper_id: int, sections: ReportSections) -> AnalysisReport:
        """
        写入论文的分析报告：已有则整体覆盖，没有则新建

        单条 INSERT ... ON CONFLICT (paper_id) DO UPDATE，
        并发任务同时写同一篇论文时不会撞 unique 约束
        """
        now = datetime.utcnow()
        values = dict(
            **sections.model_dump(),
            status=TaskStatus.COMPLETED.value,
            generated_at=now,
            updated_at=now,
        )

        with self._session_factory() as db:
            insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
            if insert is None:
                raise NotImplementedError(
                    f"save_for_paper needs ON CONFLICT support, got dialect '{db.get_bind().dialect.name}'"
                )

            stmt = insert(AnalysisReportRow).values(paper_id=paper_id, created_at=now, **values)
            stmt = stmt.on_conflict_do_update(index_elements=["paper_id"], set_=values)
            db.execute(stmt)
            db.commit()

            row = db.execute(
                select(AnalysisReportRow).where(AnalysisReportRow.paper_id == paper_id)
            ).scalar_one()
            return self._row_to_report(row)

    def _row_to_report(self, row: AnalysisReportRow) -> AnalysisReport:
        return AnalysisReport(
            id=row.id,
            paper_id=row.paper_id,
            background=row.background or "",
            what=row.what or "",
            why=row.why or "",
            how=row.how or "",
            how_why=row.how_why or "",
            summary=row.summary or "",
            status=TaskStatus(row.status),
            generated_at=row.generated_at,
        )
