# paperinsight/database/api_key_repository.py

"""
API Key Repository - 用户 LLM 密钥存储

只存密文；加解密在 CryptoService 中完成。
所有查询都按 user_id 限定，调用方不会读到其他用户的密钥。
"""

from __future__ import annotations

from typing import Any, List, Optional
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import sessionmaker

from paperinsight.model.api_key import ApiKey
from paperinsight.database.db.session import get_session_factory
from paperinsight.database.db.models import ApiKeyRow


class ApiKeyRepository:

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or get_session_factory()

    def create(
        self,
        user_id: int,
        provider: str,
        api_key_encrypted: str,
        model_name: str,
        is_default: bool = False,
    ) -> ApiKey:
        now = datetime.utcnow()
        with self._session_factory() as db:
            row = ApiKeyRow(
                user_id=user_id,
                provider=provider,
                api_key_encrypted=api_key_encrypted,
                model_name=model_name,
                is_default=is_default,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return self._row_to_key(row)

    def list_by_user(self, user_id: int, include_inactive: bool = False) -> List[ApiKey]:
        """获取用户的密钥（默认只返回未删除的）"""
        with self._session_factory() as db:
            query = select(ApiKeyRow).where(ApiKeyRow.user_id == user_id)
            if not include_inactive:
                query = query.where(ApiKeyRow.is_active.is_(True))
            rows = db.execute(query.order_by(ApiKeyRow.id)).scalars().all()
            return [self._row_to_key(r) for r in rows]

    def get_by_id(self, key_id: int) -> Optional[ApiKey]:
        with self._session_factory() as db:
            row = db.get(ApiKeyRow, key_id)
            if not row:
                return None
            return self._row_to_key(row)

    def update(self, key_id: int, **fields: Any) -> Optional[ApiKey]:
        """
        部分更新

        Args:
            key_id: 密钥 ID
            fields: api_key_encrypted / model_name / is_default / is_active / last_used_at
        """
        with self._session_factory() as db:
            row = db.get(ApiKeyRow, key_id)
            if not row:
                return None

            for name, value in fields.items():
                if not hasattr(ApiKeyRow, name):
                    raise ValueError(f"Field '{name}' is not a valid ApiKey field")
                setattr(row, name, value)
            row.updated_at = datetime.utcnow()

            db.commit()
            db.refresh(row)
            return self._row_to_key(row)

    def clear_default(self, user_id: int, provider: str, exclude_id: Optional[int] = None) -> int:
        """
        取消该用户同一提供商下其他密钥的默认标记

        Returns:
            被修改的行数
        """
        with self._session_factory() as db:
            stmt = (
                update(ApiKeyRow)
                .where(ApiKeyRow.user_id == user_id)
                .where(ApiKeyRow.provider == provider)
                .where(ApiKeyRow.is_default.is_(True))
                .values(is_default=False, updated_at=datetime.utcnow())
            )
            if exclude_id is not None:
                stmt = stmt.where(ApiKeyRow.id != exclude_id)

            result = db.execute(stmt)
            db.commit()
            return result.rowcount or 0

    def soft_delete(self, key_id: int) -> None:
        self.update(key_id, is_active=False)

    def touch_last_used(self, key_id: int) -> None:
        self.update(key_id, last_used_at=datetime.utcnow())

    def _row_to_key(self, row: ApiKeyRow) -> ApiKey:
        return ApiKey(
            id=row.id,
            user_id=row.user_id,
            provider=row.provider,
            api_key_encrypted=row.api_key_encrypted,
            model_name=row.model_name,
            is_default=row.is_default,
            is_active=row.is_active,
            last_used_at=row.last_used_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
