from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from paperinsight.llm import LLMProvider


class ApiKeyCreateRequest(BaseModel):
    provider: LLMProvider
    api_key: str = Field(min_length=1)
    model_name: str = Field(min_length=1)
    is_default: bool = False


class ApiKeyUpdateRequest(BaseModel):
    api_key: Optional[str] = None
    model_name: Optional[str] = None
    is_default: Optional[bool] = None


class ApiKeyResponse(BaseModel):
    """列表展示用，密钥本身只给预览"""
    id: int
    provider: str
    model_name: str
    is_default: bool
    is_active: bool
    last_used_at: Optional[datetime] = None
    created_at: datetime
    api_key_preview: str


class ApiKeyCreatedResponse(BaseModel):
    success: bool = True
    key_id: int


class DefaultApiKeyResponse(BaseModel):
    id: int
    provider: str
    model_name: str
    api_key: str


class ValidateResponse(BaseModel):
    key_id: int
    valid: bool
