from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select, or_
from sqlalchemy.orm import sessionmaker

from paperinsight.model.paper import Paper
from paperinsight.database.db.session import get_session_factory
from paperinsight.database.db.models import PaperRow


class PaperRepository:
    """
    Paper 存储。

    论文一旦入库即视为不可变（本地上传回填 full_text 除外），核心逻辑从不删除论文。
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or get_session_factory()

    # =====================================================
    # Basic CRUD
    # =====================================================

    def create(self, paper: Paper) -> int:
        """
        Insert a Paper and return its new id.
        """
        with self._session_factory() as db:
            row = self._paper_to_row(paper)
            db.add(row)
            db.commit()
            return row.id

    def get_paper_by_id(self, paper_id: int) -> Optional[Paper]:
        with self._session_factory() as db:
            row = db.get(PaperRow, paper_id)
            if not row:
                return None
            return self._row_to_paper(row)

    def get_by_external_id(self, external_id: str) -> Optional[Paper]:
        with self._session_factory() as db:
            row = db.execute(
                select(PaperRow).where(PaperRow.external_id == external_id)
            ).scalar_one_or_none()
            if not row:
                return None
            return self._row_to_paper(row)

    # =====================================================
    # Insert-only logic (crawl / ingest)
    # =====================================================

    def insert_new_papers(self, new_papers: List[Paper]) -> List[Paper]:
        """
        Insert only new papers (by Paper.external_id).

        Returns the inserted papers with their ids filled in.
        """
        if not new_papers:
            return []

        external_ids = [p.external_id for p in new_papers]

        with self._session_factory() as db:
            existing_ids = set(
                ext_id
                for (ext_id,) in db.execute(
                    select(PaperRow.external_id).where(PaperRow.external_id.in_(external_ids))
                )
            )

            rows: List[PaperRow] = []
            for p in new_papers:
                if p.external_id in existing_ids:
                    continue
                # 同一批次里也可能重复
                existing_ids.add(p.external_id)

                row = self._paper_to_row(p)
                db.add(row)
                rows.append(row)

            db.commit()
            return [self._row_to_paper(r) for r in rows]

    # =====================================================
    # Pagination & filtering (UI / API)
    # =====================================================

    def list_papers(
        self,
        limit: int = 20,
        offset: int = 0,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "newest",
    ) -> List[Paper]:
        """
        List papers, newest published first by default.
        """
        with self._session_factory() as db:
            query = select(PaperRow)

            if category:
                query = query.where(PaperRow.category == category)

            if search:
                pattern = f"%{search}%"
                query = query.where(
                    or_(
                        PaperRow.title.ilike(pattern),
                        PaperRow.abstract.ilike(pattern),
                    )
                )

            query = query.order_by(
                PaperRow.published_at.asc()
                if sort_by == "oldest"
                else PaperRow.published_at.desc()
            )

            rows = db.execute(query.offset(offset).limit(limit)).scalars().all()
            return [self._row_to_paper(r) for r in rows]

    # =====================================================
    # Helper Methods
    # =====================================================

    def _paper_to_row(self, paper: Paper) -> PaperRow:
        return PaperRow(
            external_id=paper.external_id,
            title=paper.title,
            authors=list(paper.authors),
            abstract=paper.abstract,
            full_text=paper.full_text,
            published_at=paper.published_at,
            source=paper.source,
            source_url=paper.source_url,
            category=paper.category,
            keywords=list(paper.keywords),
            created_at=paper.created_at,
            updated_at=paper.updated_at,
        )

    def _row_to_paper(self, row: PaperRow) -> Paper:
        return Paper(
            id=row.id,
            external_id=row.external_id,
            title=row.title,
            authors=row.authors or [],
            abstract=row.abstract,
            full_text=row.full_text,
            published_at=row.published_at,
            source=row.source,
            source_url=row.source_url,
            category=row.category,
            keywords=row.keywords or [],
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
