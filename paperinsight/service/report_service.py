"""
Report Synthesizer

- build_prompt / build_messages: 论文 -> 五维度分析提示词
- parse_response: 模型的自由格式回答 -> 六个字段（Background / What / Why / How / How-why / Summary）

解析规则：
每个章节先找 Markdown 标题（## How（实现方法）），找不到再找行首标签（How: / How：），
章节名精确匹配（How 不会命中 How-why），大小写不敏感。
命中的标题按位置排序，每段正文截到下一个命中的标题为止。
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from paperinsight.llm import LLMMessage
from paperinsight.model.analysis import ReportSections
from paperinsight.model.paper import Paper

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK_CHARS = 500


@dataclass(frozen=True)
class Section:
    field: str
    name: str
    placeholder: Optional[str]


SECTIONS: List[Section] = [
    Section("background", "Background", "暂无背景分析"),
    Section("what", "What", "暂无解决方案分析"),
    Section("why", "Why", "暂无价值分析"),
    Section("how", "How", "暂无实现方法分析"),
    Section("how_why", "How-why", "暂无方法论证"),
    # Summary 缺失时退回原文前 500 字
    Section("summary", "Summary", None),
]


PROMPT_TEMPLATE = """请对以下研究论文进行深度分析：

{content}

请按照以下五个维度进行分析，每个维度都要详细且深入：

## Background（问题背景）
为什么会有这个问题存在？包括：
- 场景描述：这个问题出现在什么场景下
- 面临瓶颈：当前方法遇到了什么困难
- 发展现状：该领域的研究现状如何

## What（解决方案）
做什么？包括：
- Goal（目标）：论文要解决什么问题
- Results（成果）：取得了什么成果，用数据说话

## Why（价值与挑战）
为什么要做这件事？包括：
- Values（价值）：解决这个问题有什么意义
- Challenges（挑战）：面临哪些技术挑战

## How（实现方法）
怎么做这件事？包括：
- 框架：整体架构是什么
- 模块：包含哪些关键模块
- 关键步骤：核心算法或方法的步骤
- 交互逻辑：各部分如何协同工作

## How-why（方法论证）
为什么采用这种方法？包括：
- Insights（洞察）：作者的关键洞察是什么
- Advantages（优势）：这种方法相比其他方法的优势

## Summary（核心要点）
用3-5句话总结论文的核心贡献和价值

请用中文回答，每个维度都要详细展开，使用 Markdown 格式。"""


def _heading_pattern(name: str) -> re.Pattern:
    """
    ## Name  /  ### Name（说明）  /  # Name:  /  ## **Name**
    """
    return re.compile(
        rf"^[ \t]*#{{1,6}}[ \t]*(?:\*\*)?{re.escape(name)}(?![\w-])(?:\*\*)?"
        r"[ \t]*(?:[（(][^）)\n]*[）)])?[ \t]*[:：]?(?:\*\*)?[ \t]*(?P<rest>.*)$",
        re.IGNORECASE | re.MULTILINE,
    )


def _label_pattern(name: str) -> re.Pattern:
    """
    Name: ...  /  **Name**：...  （行首）
    """
    return re.compile(
        rf"^[ \t]*(?:\*\*)?{re.escape(name)}(?:\*\*)?[ \t]*[:：](?:\*\*)?[ \t]*(?P<rest>.*)$",
        re.IGNORECASE | re.MULTILINE,
    )


_PATTERNS: Dict[str, List[re.Pattern]] = {
    s.field: [_heading_pattern(s.name), _label_pattern(s.name)] for s in SECTIONS
}


class ReportSynthesizer:

    def __init__(self, system_prompt: Optional[str] = None):
        if system_prompt is None:
            from paperinsight.config import Config
            system_prompt = Config.llm.system_prompt
        self.system_prompt = system_prompt

    # --------------------------------------------------
    # Prompt
    # --------------------------------------------------

    def build_prompt(self, paper: Paper) -> str:
        content = f"标题: {paper.title}\n\n作者: {', '.join(paper.authors)}\n\n"

        if paper.full_text and paper.full_text.strip():
            logger.info(f"📄 [Analysis] Using full text for paper {paper.id}")
            content += f"论文内容:\n\n{paper.full_text}"
        else:
            logger.info(f"📄 [Analysis] Using abstract only for paper {paper.id}")
            content += (
                f"摘要: {paper.abstract or ''}\n\n"
                "注意：当前只有摘要信息，请基于摘要进行深入推理和分析。"
            )

        return PROMPT_TEMPLATE.format(content=content)

    def build_messages(self, paper: Paper) -> List[LLMMessage]:
        return [
            LLMMessage(role="system", content=self.system_prompt),
            LLMMessage(role="user", content=self.build_prompt(paper)),
        ]

    # --------------------------------------------------
    # Parse
    # --------------------------------------------------

    def parse_response(self, text: str) -> ReportSections:
        text = text or ""

        # field -> (标题起点, 正文起点, 标题行内容)
        found: Dict[str, tuple] = {}
        for section in SECTIONS:
            for pattern in _PATTERNS[section.field]:
                match = pattern.search(text)
                if match:
                    found[section.field] = (match.start(), match.end(), match.group("rest"))
                    break

        ordered = sorted(found.items(), key=lambda item: item[1][0])

        bodies: Dict[str, str] = {}
        for i, (field, (_, body_start, rest)) in enumerate(ordered):
            body_end = ordered[i + 1][1][0] if i + 1 < len(ordered) else len(text)
            body = text[body_start:body_end].strip()
            if rest.strip():
                body = f"{rest.strip()}\n{body}".strip()
            bodies[field] = body

        values = {}
        for section in SECTIONS:
            body = bodies.get(section.field, "")
            if body:
                values[section.field] = body
            elif section.placeholder is not None:
                values[section.field] = section.placeholder
            else:
                values[section.field] = text[:SUMMARY_FALLBACK_CHARS]

        missing = [s.name for s in SECTIONS if not bodies.get(s.field)]
        if missing:
            logger.warning(f"⚠️ [Analysis] Sections missing from response: {', '.join(missing)}")

        return ReportSections(**values)
