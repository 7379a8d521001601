from datetime import datetime
from typing import Callable, Dict, Iterator

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from paperinsight.database.analysis_repository import (
    AnalysisReportRepository,
    AnalysisTaskRepository,
)
from paperinsight.database.api_key_repository import ApiKeyRepository
from paperinsight.database.db.models import Base
from paperinsight.database.paper_repository import PaperRepository
from paperinsight.model.paper import Paper
from paperinsight.service.api_key_service import ApiKeyService
from paperinsight.service.crypto_service import CryptoService

TEST_ENCRYPTION_KEY = "0123456789abcdef" * 4


# --- Storage ---

@pytest.fixture
def session_factory(tmp_path) -> Iterator[sessionmaker]:
    """临时文件 SQLite，每个测试一份全新的 schema；分析任务会在线程池里并发读写。"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'paper_insight.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def paper_repo(session_factory) -> PaperRepository:
    return PaperRepository(session_factory)


@pytest.fixture
def api_key_repo(session_factory) -> ApiKeyRepository:
    return ApiKeyRepository(session_factory)


@pytest.fixture
def task_repo(session_factory) -> AnalysisTaskRepository:
    return AnalysisTaskRepository(session_factory)


@pytest.fixture
def report_repo(session_factory) -> AnalysisReportRepository:
    return AnalysisReportRepository(session_factory)


# --- Services ---

@pytest.fixture
def crypto() -> CryptoService:
    return CryptoService(TEST_ENCRYPTION_KEY)


@pytest.fixture
def api_key_service(api_key_repo, crypto) -> ApiKeyService:
    return ApiKeyService(repo=api_key_repo, crypto=crypto)


# --- Data ---

def make_paper(**overrides) -> Paper:
    fields = dict(
        external_id="2401.00001",
        title="Temporal Fusion for Long-Horizon Forecasting",
        authors=["Alice Zhang", "Bob Li"],
        abstract="We propose a transformer variant for long-horizon forecasting.",
        published_at=datetime(2024, 1, 2, 12, 0, 0),
        source="arxiv",
        source_url="https://arxiv.org/abs/2401.00001",
        category="cs.LG",
        keywords=["transformer", "forecasting"],
    )
    fields.update(overrides)
    return Paper(**fields)


@pytest.fixture
def stored_paper(paper_repo) -> Paper:
    paper_id = paper_repo.create(make_paper())
    return paper_repo.get_paper_by_id(paper_id)


# --- HTTP ---

def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def deepseek_reply(content: str, total_tokens: int = 1000) -> Dict:
    return {
        "model": "deepseek-chat",
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"total_tokens": total_tokens},
    }
