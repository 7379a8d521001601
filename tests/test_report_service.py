import pytest

from paperinsight.service.report_service import ReportSynthesizer

from conftest import make_paper

FULL_ANSWER = """# 论文分析

## Background（问题背景）
长序列预测中误差会累积。

## What（解决方案）
- Goal（目标）：降低长期预测误差
- Results（成果）：MSE 下降 12%

## Why（价值与挑战）
电力负荷调度依赖准确的长期预测。

## How（实现方法）
分解 + 注意力的两阶段框架。

## How-why（方法论证）
分解让注意力只处理残差。

## Summary（核心要点）
一个简单有效的长序列预测框架。
"""


@pytest.fixture
def synthesizer() -> ReportSynthesizer:
    return ReportSynthesizer(system_prompt="You are a reviewer.")


# --- Prompt ---

def test_prompt_uses_abstract_when_no_full_text(synthesizer):
    prompt = synthesizer.build_prompt(make_paper())

    assert "标题: Temporal Fusion for Long-Horizon Forecasting" in prompt
    assert "作者: Alice Zhang, Bob Li" in prompt
    assert "摘要: We propose a transformer variant" in prompt
    assert "注意：当前只有摘要信息" in prompt
    assert "论文内容:" not in prompt


def test_prompt_prefers_full_text(synthesizer):
    prompt = synthesizer.build_prompt(make_paper(full_text="# 正文\n\nFull body."))

    assert "论文内容:\n\n# 正文\n\nFull body." in prompt
    assert "摘要:" not in prompt


def test_prompt_lists_sections_in_order(synthesizer):
    prompt = synthesizer.build_prompt(make_paper())
    headings = [
        "## Background（问题背景）",
        "## What（解决方案）",
        "## Why（价值与挑战）",
        "## How（实现方法）",
        "## How-why（方法论证）",
        "## Summary（核心要点）",
    ]
    positions = [prompt.index(h) for h in headings]
    assert positions == sorted(positions)


def test_prompt_is_deterministic(synthesizer):
    paper = make_paper()
    assert synthesizer.build_prompt(paper) == synthesizer.build_prompt(paper)


def test_messages_have_one_system_and_one_user(synthesizer):
    messages = synthesizer.build_messages(make_paper())

    assert [m.role for m in messages] == ["system", "user"]
    assert messages[0].content == "You are a reviewer."


# --- Parse ---

def test_parse_all_six_sections(synthesizer):
    sections = synthesizer.parse_response(FULL_ANSWER)

    assert sections.background == "长序列预测中误差会累积。"
    assert sections.what == "- Goal（目标）：降低长期预测误差\n- Results（成果）：MSE 下降 12%"
    assert sections.why == "电力负荷调度依赖准确的长期预测。"
    assert sections.how == "分解 + 注意力的两阶段框架。"
    assert sections.how_why == "分解让注意力只处理残差。"
    assert sections.summary == "一个简单有效的长序列预测框架。"


def test_parse_partial_answer_uses_placeholders(synthesizer):
    raw = "## Background\nX\n## What\nY"
    sections = synthesizer.parse_response(raw)

    assert sections.background == "X"
    assert sections.what == "Y"
    assert sections.why == "暂无价值分析"
    assert sections.how == "暂无实现方法分析"
    assert sections.how_why == "暂无方法论证"
    assert sections.summary == raw[:500]


def test_missing_one_heading_only_affects_that_section(synthesizer):
    raw = FULL_ANSWER.replace("## Why（价值与挑战）\n电力负荷调度依赖准确的长期预测。\n\n", "")
    sections = synthesizer.parse_response(raw)

    assert sections.why == "暂无价值分析"
    assert sections.what.endswith("MSE 下降 12%")
    assert sections.how == "分解 + 注意力的两阶段框架。"


def test_how_does_not_match_how_why(synthesizer):
    raw = "## How-why\nBecause it works.\n## Summary\nShort."
    sections = synthesizer.parse_response(raw)

    assert sections.how == "暂无实现方法分析"
    assert sections.how_why == "Because it works."


def test_heading_name_inside_sentence_does_not_truncate(synthesizer):
    raw = (
        "## What\nWe explain What matters and Why it matters.\n"
        "## Why\nReal reason.\n"
    )
    sections = synthesizer.parse_response(raw)

    assert sections.what == "We explain What matters and Why it matters."
    assert sections.why == "Real reason."


def test_label_style_sections(synthesizer):
    raw = "Background: 背景内容\nWhat：方案内容\nHow: 方法\nHow-why: 论证\nSummary: 总结"
    sections = synthesizer.parse_response(raw)

    assert sections.background == "背景内容"
    assert sections.what == "方案内容"
    assert sections.why == "暂无价值分析"
    assert sections.how == "方法"
    assert sections.how_why == "论证"
    assert sections.summary == "总结"


def test_headings_are_case_insensitive(synthesizer):
    sections = synthesizer.parse_response("### BACKGROUND:\nlower\n### summary\nend")

    assert sections.background == "lower"
    assert sections.summary == "end"


def test_bold_headings(synthesizer):
    sections = synthesizer.parse_response("## **Background**\nB\n## **What**\nW\n## **How-why:**\nHW")

    assert sections.background == "B"
    assert sections.what == "W"
    assert sections.how == "暂无实现方法分析"
    assert sections.how_why == "HW"


def test_empty_answer_never_raises(synthesizer):
    sections = synthesizer.parse_response("")

    assert sections.background == "暂无背景分析"
    assert sections.summary == ""
