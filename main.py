import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes.analysis import router as analysis_router
from api.routes.api_keys import router as api_keys_router
from api.routes.papers import router as papers_router
from paperinsight.crawler.arxiv_client import ArxivClient
from paperinsight.database.analysis_repository import (
    AnalysisReportRepository,
    AnalysisTaskRepository,
)
from paperinsight.database.api_key_repository import ApiKeyRepository
from paperinsight.database.db.models import Base
from paperinsight.database.db.session import get_engine
from paperinsight.database.paper_repository import PaperRepository
from paperinsight.errors import (
    ApiKeyNotFound,
    DecryptionFailure,
    NoApiKeyConfigured,
    PaperInsightError,
    PaperNotFound,
    RateLimitExceeded,
    TaskNotFound,
    UnsupportedProviderError,
)
from paperinsight.logging_config import setup_logging
from paperinsight.scheduler.scheduler_service import SchedulerService
from paperinsight.service.analysis_service import AnalysisService
from paperinsight.service.api_key_service import ApiKeyService
from paperinsight.service.crypto_service import CryptoService
from paperinsight.service.paper_service import PaperService
from paperinsight.service.report_service import ReportSynthesizer

logger = logging.getLogger(__name__)


def init_services(app: FastAPI) -> None:
    """每个进程一份服务实例，挂到 app.state 上"""
    paper_repo = PaperRepository()
    report_repo = AnalysisReportRepository()
    api_key_service = ApiKeyService(repo=ApiKeyRepository(), crypto=CryptoService())

    app.state.paper_repo = paper_repo
    app.state.report_repo = report_repo
    app.state.api_key_service = api_key_service
    app.state.paper_service = PaperService(repo=paper_repo, crawler=ArxivClient())
    app.state.analysis_service = AnalysisService(
        papers=paper_repo,
        api_keys=api_key_service,
        tasks=AnalysisTaskRepository(),
        reports=report_repo,
        synthesizer=ReportSynthesizer(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    # Create any missing tables on startup
    Base.metadata.create_all(bind=get_engine())
    init_services(app)

    scheduler = SchedulerService()
    scheduler.start()
    logger.info("🚀 PaperInsight API started")

    yield

    scheduler.shutdown()
    await app.state.analysis_service.drain()
    logger.info("👋 PaperInsight API stopped")


app = FastAPI(title="PaperInsight API", lifespan=lifespan)

# CORS 配置：开发环境允许所有来源，生产环境限制为指定来源
is_dev = os.getenv("ENV", "development") == "development"
cors_origins = (
    ["*"]  # 开发环境允许所有来源
    if is_dev
    else [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True if not is_dev else False,  # 使用 "*" 时不能设置 credentials=True
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(papers_router)
app.include_router(api_keys_router)
app.include_router(analysis_router)


# 业务异常 -> HTTP 状态码
ERROR_STATUS = {
    PaperNotFound: 404,
    TaskNotFound: 404,
    ApiKeyNotFound: 404,
    NoApiKeyConfigured: 400,
    UnsupportedProviderError: 400,
    RateLimitExceeded: 429,
    DecryptionFailure: 500,
}


@app.exception_handler(PaperInsightError)
async def paper_insight_error_handler(request: Request, exc: PaperInsightError) -> JSONResponse:
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}
