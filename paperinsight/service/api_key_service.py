"""
API Key Service

用户 LLM 密钥的增删改查：
- 入库前加密，取默认密钥 / 验证时解密
- 同一 (user, provider) 只保留一个默认密钥
- 不属于当前用户的密钥一律视为不存在
"""

import asyncio
import logging
from typing import Callable, List, Optional

from paperinsight.database.api_key_repository import ApiKeyRepository
from paperinsight.errors import ApiKeyNotFound
from paperinsight.llm import BaseLLMAdapter, LLMConfig, create_llm_adapter, parse_provider
from paperinsight.model.api_key import ApiKey, DecryptedApiKey

from .crypto_service import CryptoService

logger = logging.getLogger(__name__)

KEY_PREVIEW = "••••••••"

AdapterFactory = Callable[..., BaseLLMAdapter]


class ApiKeyService:

    def __init__(
        self,
        repo: ApiKeyRepository,
        crypto: CryptoService,
        adapter_factory: AdapterFactory = create_llm_adapter,
    ):
        self.repo = repo
        self.crypto = crypto
        self.adapter_factory = adapter_factory

    # --------------------------------------------------
    # CRUD
    # --------------------------------------------------

    def add_key(
        self,
        user_id: int,
        provider: str,
        api_key: str,
        model_name: str,
        is_default: bool = False,
    ) -> ApiKey:
        provider = parse_provider(provider).value
        encrypted = self.crypto.encrypt(api_key)

        if is_default:
            self.repo.clear_default(user_id, provider)

        key = self.repo.create(
            user_id=user_id,
            provider=provider,
            api_key_encrypted=encrypted,
            model_name=model_name,
            is_default=is_default,
        )
        logger.info(f"🔑 API key added: user={user_id} provider={provider} id={key.id}")
        return key

    def list_keys(self, user_id: int) -> List[dict]:
        """返回时隐藏密钥本身"""
        return [
            {
                "id": k.id,
                "provider": k.provider,
                "model_name": k.model_name,
                "is_default": k.is_default,
                "is_active": k.is_active,
                "last_used_at": k.last_used_at,
                "created_at": k.created_at,
                "api_key_preview": KEY_PREVIEW if k.api_key_encrypted else "",
            }
            for k in self.repo.list_by_user(user_id)
        ]

    def update_key(
        self,
        user_id: int,
        key_id: int,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        is_default: Optional[bool] = None,
    ) -> ApiKey:
        existing = self._get_owned(user_id, key_id)

        updates = {}
        if api_key:
            updates["api_key_encrypted"] = self.crypto.encrypt(api_key)
        if model_name:
            updates["model_name"] = model_name
        if is_default is not None:
            if is_default:
                self.repo.clear_default(user_id, existing.provider, exclude_id=key_id)
            updates["is_default"] = is_default

        if not updates:
            return existing
        return self.repo.update(key_id, **updates)

    def delete_key(self, user_id: int, key_id: int) -> None:
        self._get_owned(user_id, key_id)
        self.repo.soft_delete(key_id)
        logger.info(f"🗑 API key deleted: user={user_id} id={key_id}")

    # --------------------------------------------------
    # Lookup
    # --------------------------------------------------

    def get_default_key(self, user_id: int, provider: Optional[str] = None) -> Optional[DecryptedApiKey]:
        """
        指定 provider 时取该提供商的默认密钥，否则取任意一个默认密钥
        """
        keys = self.repo.list_by_user(user_id)
        if provider:
            provider = parse_provider(provider).value
            key = next((k for k in keys if k.provider == provider and k.is_default), None)
        else:
            key = next((k for k in keys if k.is_default), None)

        if key is None:
            return None
        return self._decrypted(key)

    def resolve_key(self, user_id: int, provider: Optional[str] = None) -> Optional[ApiKey]:
        """
        分析任务选密钥：
        - 指定 provider：该提供商下任意一个可用密钥
        - 未指定：用户的默认密钥
        """
        keys = self.repo.list_by_user(user_id)
        if provider:
            return next((k for k in keys if k.provider == provider and k.is_active), None)
        return next((k for k in keys if k.is_default and k.is_active), None)

    def decrypt(self, key: ApiKey) -> str:
        return self.crypto.decrypt(key.api_key_encrypted)

    async def validate_key(self, user_id: int, key_id: int) -> bool:
        key = await asyncio.to_thread(self._get_owned, user_id, key_id)
        adapter = self.adapter_factory(
            key.provider,
            LLMConfig(api_key=self.decrypt(key), model=key.model_name),
        )
        valid = await adapter.validate_api_key()
        logger.info(f"🔍 API key validated: id={key_id} provider={key.provider} valid={valid}")
        return valid

    # --------------------------------------------------
    # helpers
    # --------------------------------------------------

    def _get_owned(self, user_id: int, key_id: int) -> ApiKey:
        key = self.repo.get_by_id(key_id)
        if key is None or key.user_id != user_id or not key.is_active:
            raise ApiKeyNotFound(key_id)
        return key

    def _decrypted(self, key: ApiKey) -> DecryptedApiKey:
        return DecryptedApiKey(
            id=key.id,
            provider=key.provider,
            model_name=key.model_name,
            api_key=self.decrypt(key),
        )
