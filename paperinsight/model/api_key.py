from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class ApiKey(BaseModel):
    """
    用户的 LLM API 密钥（密文存储）

    - 同一 (user_id, provider) 最多一个 is_default=True
    - 删除为软删除：is_active=False
    """
    id: Optional[int] = None
    user_id: int
    provider: str  # deepseek | openai | claude | gemini
    api_key_encrypted: str
    model_name: str
    is_default: bool = False
    is_active: bool = True
    last_used_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class DecryptedApiKey(BaseModel):
    id: int
    provider: str
    model_name: str
    api_key: str
