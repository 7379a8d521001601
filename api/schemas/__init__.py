from .paper import (
    FetchRequest,
    FetchResponse,
    PaginationMeta,
    PaperCardResponse,
    PaperDetailResponse,
    PaperListResponse,
    UploadRequest,
    UploadResponse,
)
from .api_key import (
    ApiKeyCreateRequest,
    ApiKeyCreatedResponse,
    ApiKeyResponse,
    ApiKeyUpdateRequest,
    DefaultApiKeyResponse,
    ValidateResponse,
)
from .analysis import AnalysisRequest, AnalysisStartedResponse, TaskResponse

__all__ = [
    "FetchRequest",
    "FetchResponse",
    "PaginationMeta",
    "PaperCardResponse",
    "PaperDetailResponse",
    "PaperListResponse",
    "UploadRequest",
    "UploadResponse",
    "ApiKeyCreateRequest",
    "ApiKeyCreatedResponse",
    "ApiKeyResponse",
    "ApiKeyUpdateRequest",
    "DefaultApiKeyResponse",
    "ValidateResponse",
    "AnalysisRequest",
    "AnalysisStartedResponse",
    "TaskResponse",
]
