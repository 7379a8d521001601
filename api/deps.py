"""
FastAPI 依赖

服务实例在 lifespan 中创建并挂到 app.state 上（每进程一份），
这里只负责取出来；测试里直接替换 app.state 上的对象即可。
"""

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from paperinsight.database.analysis_repository import AnalysisReportRepository
from paperinsight.database.paper_repository import PaperRepository
from paperinsight.service.analysis_service import AnalysisService
from paperinsight.service.api_key_service import ApiKeyService
from paperinsight.service.paper_service import PaperService


def get_current_user_id(x_user_id: Optional[int] = Header(default=None)) -> int:
    """调用方身份：X-User-Id 请求头"""
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id


def get_paper_repo(request: Request) -> PaperRepository:
    return request.app.state.paper_repo


def get_report_repo(request: Request) -> AnalysisReportRepository:
    return request.app.state.report_repo


def get_paper_service(request: Request) -> PaperService:
    return request.app.state.paper_service


def get_api_key_service(request: Request) -> ApiKeyService:
    return request.app.state.api_key_service


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis_service
