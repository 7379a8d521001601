"""
PaperInsight — arXiv 论文抓取 + 多 LLM 提供商五维度分析
"""

__version__ = "0.1.0"
