import asyncio
import logging
import re
from datetime import date, datetime, timedelta
from typing import List, Optional

import feedparser
import httpx

from ..errors import RateLimitExceeded
from ..model.paper import FetchedPaper

logger = logging.getLogger(__name__)

ARXIV_ABS_URL = "https://arxiv.org/abs/"
MAX_RESULTS_LIMIT = 50
MAX_KEYWORDS = 5

# 常见词 + 领域高频词，不作为关键词
STOP_WORDS = frozenset({
    "this", "that", "with", "from", "have", "been", "paper", "study",
    "method", "model", "data", "using", "based", "result", "show",
    "time", "series", "analysis", "learning", "neural", "network",
})

_KEYWORD_RE = re.compile(r"\b[a-z]{4,}\b")
_ABS_ID_RE = re.compile(r"arxiv\.org/abs/(.+)")
_VERSION_RE = re.compile(r"v\d+$")


def _format_date(d: date) -> str:
    return d.strftime("%Y%m%d")


def build_search_query(
    query: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> str:
    """
    标题或摘要命中 query；任一日期给出时追加 submittedDate 区间
    （缺省起点为一年前，缺省终点为今天）
    """
    search = f'(ti:"{query}" OR abs:"{query}")'

    if start_date or end_date:
        today = date.today()
        start = _format_date(start_date) if start_date else _format_date(today - timedelta(days=365))
        end = _format_date(end_date) if end_date else _format_date(today)
        search += f" AND submittedDate:[{start}000000 TO {end}235959]"

    return search


def extract_keywords(text: str, query: str = "") -> List[str]:
    """
    从摘要中取至多 5 个关键词：小写、>=4 个字母、按出现顺序去重，
    排除停用词和查询词本身
    """
    excluded = STOP_WORDS | set(query.lower().split())
    keywords: List[str] = []
    for word in _KEYWORD_RE.findall(text.lower()):
        if word in excluded or word in keywords:
            continue
        keywords.append(word)
        if len(keywords) == MAX_KEYWORDS:
            break
    return keywords


def _normalize_arxiv_id(entry_id: str) -> str:
    """
    http://arxiv.org/abs/2401.01234v2 -> 2401.01234
    """
    match = _ABS_ID_RE.search(entry_id)
    arxiv_id = match.group(1) if match else entry_id
    return _VERSION_RE.sub("", arxiv_id.strip())


class ArxivClient:
    """
    arXiv Atom API 客户端

    重试策略：
    - 429：等待 delay * attempt 后重试，用尽后抛 RateLimitExceeded
    - 其他非 2xx：等待 delay 后重试，用尽后返回 []
    - 网络异常：等待 delay * attempt 后重试，最后一次直接抛出
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        from ..config import Config

        self.base_url = base_url or Config.arxiv.base_url
        self.max_retries = max_retries if max_retries is not None else Config.arxiv.max_retries
        self.retry_delay = retry_delay if retry_delay is not None else Config.arxiv.retry_delay_seconds
        self.timeout = timeout if timeout is not None else Config.arxiv.timeout
        self._http_client = http_client

    async def fetch_papers(
        self,
        query: str,
        max_results: int = 20,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[FetchedPaper]:
        if not 1 <= max_results <= MAX_RESULTS_LIMIT:
            raise ValueError(f"max_results must be between 1 and {MAX_RESULTS_LIMIT}, got {max_results}")

        search_query = build_search_query(query, start_date, end_date)
        params = {
            "search_query": search_query,
            "start": 0,
            "max_results": max_results,
            "sortBy": "submittedDate",
            "sortOrder": "descending",
        }
        logger.info(f"🔎 [arXiv] Search query: {search_query}")

        for attempt in range(1, self.max_retries + 1):
            logger.info(f"⬇ [arXiv] Attempt {attempt}/{self.max_retries}")

            try:
                response = await self._get(params)
            except httpx.HTTPError as e:
                logger.warning(f"⚠ [arXiv] Attempt {attempt} failed: {e}")
                if attempt == self.max_retries:
                    logger.error("❌ [arXiv] All retry attempts failed")
                    raise
                await asyncio.sleep(self.retry_delay * attempt)
                continue

            if response.status_code == 429:
                if attempt == self.max_retries:
                    logger.error("❌ [arXiv] Rate limited, max retries reached. Giving up.")
                    raise RateLimitExceeded()
                delay = self.retry_delay * attempt
                logger.warning(f"⏳ [arXiv] Rate limited (429). Waiting {delay}s before retry...")
                await asyncio.sleep(delay)
                continue

            if not response.is_success:
                logger.error(f"❌ [arXiv] API error: {response.status_code} {response.reason_phrase}")
                if attempt == self.max_retries:
                    return []
                await asyncio.sleep(self.retry_delay)
                continue

            papers = self.parse_feed(response.content, query=query)
            logger.info(f"✅ [arXiv] Successfully parsed {len(papers)} papers")
            return papers

        return []

    async def _get(self, params: dict) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(self.base_url, params=params, timeout=self.timeout)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.base_url, params=params)

    def parse_feed(self, content: bytes, query: str = "") -> List[FetchedPaper]:
        feed = feedparser.parse(content)

        papers: List[FetchedPaper] = []
        for entry in feed.entries:
            paper = self._entry_to_paper(entry, query)
            if paper is not None:
                papers.append(paper)
        return papers

    def _entry_to_paper(self, entry, query: str) -> Optional[FetchedPaper]:
        title = entry.get("title")
        summary = entry.get("summary")
        published = entry.get("published_parsed")
        entry_id = entry.get("id")

        # 缺字段的条目直接跳过
        if not (title and summary and published and entry_id):
            return None

        arxiv_id = _normalize_arxiv_id(entry_id)
        abstract = summary.strip()

        return FetchedPaper(
            arxiv_id=arxiv_id,
            title=" ".join(title.split()),
            authors=[a.get("name", "").strip() for a in entry.get("authors", []) if a.get("name")],
            abstract=abstract,
            published_at=datetime(*published[:6]),
            source_url=f"{ARXIV_ABS_URL}{arxiv_id}",
            category=self._primary_category(entry),
            keywords=extract_keywords(abstract, query),
        )

    def _primary_category(self, entry) -> Optional[str]:
        primary = entry.get("arxiv_primary_category")
        if primary and primary.get("term"):
            return primary["term"]

        tags = entry.get("tags") or []
        return tags[0].get("term") if tags else None
