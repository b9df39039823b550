"""Unit tests for the chapter text cleaning pipeline."""

from novelcrawl.processing.text_cleaning import CLEANING_PIPELINE, clean_text


def test_pipeline_step_names_are_unique() -> None:
    names = [step.name for step in CLEANING_PIPELINE]
    assert len(names) == len(set(names))


def test_whitespace_becomes_paragraph_breaks() -> None:
    assert clean_text("  第一段  \n\n  第二段  ") == "第一段\n\n第二段"


def test_ideographic_indent_is_removed() -> None:
    assert clean_text("　　萧炎抬起头。\n　　天色已晚。") == "萧炎抬起头。\n\n天色已晚。"


def test_curly_quotes_are_straightened() -> None:
    assert clean_text("“你好”‘嗯’") == "\"你好\"'嗯'"


def test_site_boilerplate_is_removed() -> None:
    raw = (
        "斗破苍穹最新章节\n"
        "  第一段文字。\n\n"
        "第二段（记住本站网址，方便下次阅读）文字。\n"
        "手机用户请访问m.xs5200.net"
    )
    assert clean_text(raw) == "第一段文字。\n\n第二段文字。"


def test_pagination_prompt_is_removed() -> None:
    assert clean_text("正文本章未完，点击下一页继续") == "正文继续"


def test_latest_chapter_banner_only_on_first_line() -> None:
    raw = "正文开始\n提到最新章节的句子"
    assert clean_text(raw) == "正文开始\n\n提到最新章节的句子"
