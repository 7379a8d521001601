from sqlalchemy import (
    JSON,
    Column,
    Text,
    DateTime,
    Boolean,
    Float,
    ForeignKey,
    Integer,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base
from datetime import datetime


Base = declarative_base()

# Postgres 上用 JSONB，其它方言（测试用 SQLite）退化为 JSON
JsonType = JSON().with_variant(JSONB(), "postgresql")


class PaperRow(Base):
    __tablename__ = "papers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(Text, nullable=False, unique=True, index=True)

    title = Column(Text, nullable=False)
    authors = Column(JsonType, nullable=False, default=list)
    abstract = Column(Text)
    full_text = Column(Text)

    published_at = Column(DateTime, nullable=False)
    source = Column(Text, nullable=False)  # arxiv | local
    source_url = Column(Text, nullable=False)
    category = Column(Text)
    keywords = Column(JsonType, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ApiKeyRow(Base):
    """用户 LLM 密钥（密文）"""
    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    provider = Column(Text, nullable=False)  # deepseek | openai | claude | gemini
    api_key_encrypted = Column(Text, nullable=False)
    model_name = Column(Text, nullable=False)

    is_default = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_used_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AnalysisTaskRow(Base):
    """异步分析任务"""
    __tablename__ = "analysis_tasks"

    id = Column(Text, primary_key=True)  # UUID
    user_id = Column(Integer, nullable=False, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id"), nullable=False, index=True)
    provider = Column(Text, nullable=False)
    model_name = Column(Text, nullable=False)

    status = Column(Text, nullable=False, default="pending")
    progress = Column(Integer, nullable=False, default=0)
    tokens_used = Column(Integer, nullable=True)
    cost_estimate = Column(Float, nullable=True)
    error_message = Column(Text, nullable=True)

    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)


class AnalysisReportRow(Base):
    """五维度分析报告，每篇论文一份"""
    __tablename__ = "analysis_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    paper_id = Column(Integer, ForeignKey("papers.id"), nullable=False, unique=True, index=True)

    background = Column(Text)
    what = Column(Text)
    why = Column(Text)
    how = Column(Text)
    how_why = Column(Text)
    summary = Column(Text)

    status = Column(Text, nullable=False, default="completed")
    generated_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
