"""Tests for the slide data model and its JSON form."""

import pytest

from deck_builder.models import (
    BulletItem,
    Bullets,
    Code,
    Image,
    Page,
    Paragraph,
    Placement,
    Rect,
    Slide,
    Table,
    block_from_dict,
    slides_from_json,
    slides_to_json,
)


def test_slide_json_round_trip():
    slides = [
        Slide(
            title="Mixed",
            subtitle="all kinds",
            blocks=[
                Paragraph("hello\nworld"),
                Bullets([BulletItem("a"), BulletItem("b", "numbered", 2)]),
                Image("logo", "img/logo.png", "cover"),
                Code("x = 1", "python"),
                Table([["h1", "h2"], ["v"]]),
            ],
            notes="n1\nn2",
            background="bg.png",
        ),
        Slide(title="Empty"),
    ]

    assert slides_from_json(slides_to_json(slides)) == slides


def test_block_dicts_are_tagged_by_kind():
    assert Paragraph("p").to_dict() == {"kind": "paragraph", "text": "p"}
    assert Code("c").to_dict() == {"kind": "code", "text": "c", "language": None}
    assert block_from_dict({"kind": "table", "rows": [["a"]]}) == Table([["a"]])


def test_unknown_block_kind_is_rejected():
    with pytest.raises(ValueError):
        block_from_dict({"kind": "video"})


def test_add_note_joins_lines():
    slide = Slide(title="S")
    slide.add_note("one")
    slide.add_note("two")
    assert slide.notes == "one\ntwo"


def test_table_column_count_uses_widest_row():
    assert Table([["a"], ["b", "c", "d"], []]).column_count == 3
    assert Table([]).column_count == 0


def test_page_blocks_follow_placements():
    first, second = Paragraph("a"), Paragraph("b")
    page = Page(
        slide_title="T",
        is_first_page_of_slide=True,
        placements=[Placement(first, Rect(0, 1, 2, 3)), Placement(second, Rect(0, 4.2, 2, 1))],
    )
    assert page.blocks == [first, second]
    assert page.placements[0].rect.bottom == 4
