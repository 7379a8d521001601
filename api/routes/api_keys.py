from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_api_key_service, get_current_user_id
from api.schemas.api_key import (
    ApiKeyCreatedResponse,
    ApiKeyCreateRequest,
    ApiKeyResponse,
    ApiKeyUpdateRequest,
    DefaultApiKeyResponse,
    ValidateResponse,
)
from paperinsight.llm import LLMProvider
from paperinsight.service.api_key_service import ApiKeyService

router = APIRouter(prefix="/api/api-keys", tags=["api-keys"])


@router.post("", response_model=ApiKeyCreatedResponse)
def add_key(
    body: ApiKeyCreateRequest,
    user_id: int = Depends(get_current_user_id),
    service: ApiKeyService = Depends(get_api_key_service),
):
    key = service.add_key(
        user_id=user_id,
        provider=body.provider.value,
        api_key=body.api_key,
        model_name=body.model_name,
        is_default=body.is_default,
    )
    return ApiKeyCreatedResponse(key_id=key.id)


@router.get("", response_model=List[ApiKeyResponse])
def list_keys(
    user_id: int = Depends(get_current_user_id),
    service: ApiKeyService = Depends(get_api_key_service),
):
    return service.list_keys(user_id)


@router.get("/default", response_model=Optional[DefaultApiKeyResponse])
def get_default_key(
    provider: Optional[LLMProvider] = Query(default=None),
    user_id: int = Depends(get_current_user_id),
    service: ApiKeyService = Depends(get_api_key_service),
):
    key = service.get_default_key(user_id, provider.value if provider else None)
    if key is None:
        return None
    return DefaultApiKeyResponse(**key.model_dump())


@router.patch("/{key_id}")
def update_key(
    key_id: int,
    body: ApiKeyUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    service: ApiKeyService = Depends(get_api_key_service),
):
    service.update_key(
        user_id=user_id,
        key_id=key_id,
        api_key=body.api_key,
        model_name=body.model_name,
        is_default=body.is_default,
    )
    return {"success": True}


@router.delete("/{key_id}")
def delete_key(
    key_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ApiKeyService = Depends(get_api_key_service),
):
    service.delete_key(user_id, key_id)
    return {"success": True}


@router.post("/{key_id}/validate", response_model=ValidateResponse)
async def validate_key(
    key_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ApiKeyService = Depends(get_api_key_service),
):
    valid = await service.validate_key(user_id, key_id)
    return ValidateResponse(key_id=key_id, valid=valid)
