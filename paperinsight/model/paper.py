from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime


class Paper(BaseModel):
    """
    Paper 数据模型
    - arXiv 抓取 / 本地上传 -> 数据库 -> API 展示 的统一结构
    - 抓取后不可变；本地上传的 full_text 按原样保存（含结尾空行）
    """

    id: Optional[int] = None
    external_id: str  # arXiv ID（去掉版本号）或 local-<毫秒时间戳>

    title: str
    authors: List[str] = Field(default_factory=list)
    abstract: Optional[str] = None
    full_text: Optional[str] = None

    published_at: datetime
    source: str = "arxiv"  # arxiv | local
    source_url: str
    category: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }


class FetchedPaper(BaseModel):
    """arXiv 返回的单条论文（尚未入库）"""

    arxiv_id: str
    title: str
    authors: List[str] = Field(default_factory=list)
    abstract: str
    published_at: datetime
    source_url: str
    category: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)

    def to_paper(self) -> Paper:
        return Paper(
            external_id=self.arxiv_id,
            title=self.title,
            authors=self.authors,
            abstract=self.abstract,
            published_at=self.published_at,
            source="arxiv",
            source_url=self.source_url,
            category=self.category,
            keywords=self.keywords,
        )
