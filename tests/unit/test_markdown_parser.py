"""Test slide text parser functionality."""

import pytest

from deck_builder.markdown_parser import (
    BULLET_LINE,
    CodeFence,
    collect_bullets,
    collect_paragraph,
    collect_table,
    classify_line,
    feed_fence,
    parse_slides,
)
from deck_builder.models import Bullets, BulletItem, Code, Image, Paragraph, Table


def test_two_slides_with_paragraph_and_bullets():
    """Headings split the document into slides."""
    slides = parse_slides("# Intro\n\nHello world\n\n# Two\n- a\n- b\n")

    assert len(slides) == 2
    assert slides[0].title == "Intro"
    assert slides[0].blocks == [Paragraph("Hello world")]
    assert slides[1].title == "Two"
    assert slides[1].blocks == [
        Bullets(items=[BulletItem("a", "bullet", 0), BulletItem("b", "bullet", 0)])
    ]


def test_table_without_separator_row():
    slides = parse_slides("# T\n| A | B |\n| 1 | 2 |\n")

    assert len(slides) == 1
    assert slides[0].blocks == [Table(rows=[["A", "B"], ["1", "2"]])]


def test_table_alignment_rows_are_dropped():
    text = "# T\n| Name | Age |\n|------|:---:|\n| John | 25 |\n| Jane | 30 |"
    table = parse_slides(text)[0].blocks[0]

    assert table.rows == [["Name", "Age"], ["John", "25"], ["Jane", "30"]]
    for row in table.rows:
        assert any(cell.strip("-: ") for cell in row)


def test_table_rows_may_be_ragged():
    table = parse_slides("| a | b | c |\n| d |\n")[0].blocks[0]
    assert table.rows == [["a", "b", "c"], ["d"]]
    assert table.column_count == 3


def test_image_with_sizing_tag():
    slides = parse_slides("![logo](img/logo.png#cover)")
    assert slides[0].blocks == [Image(alt_text="logo", path="img/logo.png", sizing_mode="cover")]


@pytest.mark.parametrize(
    "line,path,mode",
    [
        ("![x](a.png)", "a.png", None),
        ("  ![x](a.png#CONTAIN)  ", "a.png", "contain"),
        ("![x]( dir/a b.png #Cover)", "dir/a b.png", "cover"),
        ("![x](a.png#other)", "a.png#other", None),
    ],
)
def test_image_targets(line, path, mode):
    image = parse_slides(line)[0].blocks[0]
    assert image.path == path
    assert image.sizing_mode == mode


def test_image_with_trailing_text_is_a_paragraph():
    block = parse_slides("![x](a.png) and more")[0].blocks[0]
    assert isinstance(block, Paragraph)


def test_bullet_indent_levels_are_clamped():
    text = "- top\n  - one\n\t- tab\n      - three\n          - ten spaces"
    bullets = parse_slides(text)[0].blocks[0]

    levels = [item.indent_level for item in bullets.items]
    assert levels == [0, 1, 1, 3, 3]
    assert all(0 <= level <= 3 for level in levels)


def test_numbered_and_star_bullets():
    bullets = parse_slides("1. first\n* star\n12. twelfth")[0].blocks[0]

    assert [item.kind for item in bullets.items] == ["numbered", "bullet", "numbered"]
    assert [item.text for item in bullets.items] == ["first", "star", "twelfth"]


def test_paragraph_lines_are_trimmed_and_joined():
    slides = parse_slides("# S\n  first line  \nsecond line\n\nnext para")

    assert slides[0].blocks == [Paragraph("first line\nsecond line"), Paragraph("next para")]


def test_paragraph_stops_at_block_boundaries():
    text = "# S\ntext\n- bullet\ntext two\n| a |\ntext three\n![i](p.png)\nfour\n>note: n"
    kinds = [block.kind for block in parse_slides(text)[0].blocks]

    assert kinds == ["paragraph", "bullets", "paragraph", "table", "paragraph", "image", "paragraph"]


def test_code_fence_keeps_raw_lines():
    text = "# Code\n```python\ndef hello():\n\n    print('hi')  \n```\nafter"
    blocks = parse_slides(text)[0].blocks

    assert blocks[0] == Code(text="def hello():\n\n    print('hi')  ", language="python")
    assert blocks[1] == Paragraph("after")


def test_code_fence_swallows_markup():
    blocks = parse_slides("```\n# not a heading\n- not a bullet\n```")[0].blocks
    assert blocks == [Code(text="# not a heading\n- not a bullet", language=None)]


def test_unterminated_code_fence_is_flushed():
    slides = parse_slides("# S\n```sh\necho 1\necho 2")
    assert slides[0].blocks == [Code(text="echo 1\necho 2", language="sh")]


def test_subtitle_notes_and_background():
    text = (
        "# Title\n## Sub one\n## Sub two\n>note: first\n>NOTE:  second \n"
        ">bg: one.png\n>Bg: two.png\n>bg:   \nbody"
    )
    slide = parse_slides(text)[0]

    assert slide.subtitle == "Sub two"
    assert slide.notes == "first\nsecond"
    assert slide.background == "two.png"
    assert slide.blocks == [Paragraph("body")]


def test_implicit_slides_are_numbered():
    slides = parse_slides("loose text\n# Named\n#   \nmore")

    assert [slide.title for slide in slides] == ["Slide 1", "Named", "Slide 3"]
    assert slides[0].blocks == [Paragraph("loose text")]
    assert slides[2].blocks == [Paragraph("more")]


def test_implicit_slide_for_note_before_heading():
    slides = parse_slides(">note: hello\n# Real")
    assert slides[0].title == "Slide 1"
    assert slides[0].notes == "hello"
    assert slides[1].title == "Real"


def test_windows_line_endings():
    slides = parse_slides("# A\r\n- x\r\n- y\r\n\r\n# B\rtext")
    assert [slide.title for slide in slides] == ["A", "B"]
    assert [item.text for item in slides[0].blocks[0].items] == ["x", "y"]


def test_empty_content_handling():
    assert parse_slides("") == []
    assert parse_slides("   \n\n   ") == []


def test_heading_only_slide_has_no_blocks():
    slides = parse_slides("# Only a title")
    assert slides[0].blocks == []


@pytest.mark.parametrize(
    "line,kind",
    [
        ("", "blank"),
        ("```js", "fence"),
        ("# Head", "heading"),
        ("## Sub", "subtitle"),
        (">Note: x", "note"),
        (">bg: x", "background"),
        ("![a](b)", "image"),
        ("| a |", "table"),
        ("|---|---|", "text"),
        ("  - x", BULLET_LINE),
        ("- ![x](y.png)", BULLET_LINE),
        ("#hashtag", "text"),
        ("-no space", "text"),
    ],
)
def test_classify_line(line, kind):
    assert classify_line(line) == kind


def test_collectors_return_next_index():
    lines = ["- a", "- b", "text", "| x |", "|---|", "| y |", "", "p1", "p2"]

    bullets, index = collect_bullets(lines, 0)
    assert len(bullets.items) == 2 and index == 2

    table, index = collect_table(lines, 3)
    assert table.rows == [["x"], ["y"]] and index == 6

    paragraph, index = collect_paragraph(lines, 7)
    assert paragraph.text == "p1\np2" and index == 9


def test_fence_transitions():
    fence = CodeFence(language="py")
    fence, block = feed_fence(fence, "x = 1")
    assert block is None and fence.lines == ("x = 1",)

    fence, block = feed_fence(fence, "```")
    assert fence is None
    assert block == Code(text="x = 1", language="py")
