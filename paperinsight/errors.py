"""
异常定义

分两类：
- 创建任务前同步抛给调用方的前置条件错误（PaperNotFound / NoApiKeyConfigured / UnsupportedProviderError ...）
- 外部服务错误（ProviderError / RateLimitExceeded），在分析任务内部会被捕获并写入任务的 error_message
"""

from typing import Optional


class PaperInsightError(Exception):
    """所有业务异常的基类"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PaperNotFound(PaperInsightError):
    def __init__(self, paper_id: int):
        super().__init__(f"Paper not found: {paper_id}")
        self.paper_id = paper_id


class NoApiKeyConfigured(PaperInsightError):
    """用户没有可用的 API 密钥（用户可自行修复）"""

    def __init__(self, provider: Optional[str] = None):
        if provider:
            message = f"No active API key found for provider '{provider}'. Please add an API key in settings."
        else:
            message = "No default API key found. Please add an API key in settings."
        super().__init__(message)
        self.provider = provider


class UnsupportedProviderError(PaperInsightError):
    def __init__(self, provider: str):
        super().__init__(f"Unsupported LLM provider: {provider}")
        self.provider = provider


class ProviderError(PaperInsightError):
    """LLM 提供商返回非 2xx 响应"""

    def __init__(self, provider: str, status_code: int, body: str):
        super().__init__(f"{provider} API error: {status_code} - {body}")
        self.provider = provider
        self.status_code = status_code
        self.body = body


class RateLimitExceeded(PaperInsightError):
    def __init__(self, message: str = "arXiv API rate limit exceeded. Please try again later."):
        super().__init__(message)


class DecryptionFailure(PaperInsightError):
    def __init__(self, message: str = "Failed to decrypt data"):
        super().__init__(message)


class TaskNotFound(PaperInsightError):
    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class ApiKeyNotFound(PaperInsightError):
    def __init__(self, key_id: int):
        super().__init__(f"API key not found: {key_id}")
        self.key_id = key_id
