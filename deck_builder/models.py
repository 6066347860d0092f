"""
Data models for the deck builder.

Slides and blocks are what the parser produces; pages and placements are
what the paginator produces for the renderer.
"""
import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

BULLET = "bullet"
NUMBERED = "numbered"

SIZING_COVER = "cover"
SIZING_CONTAIN = "contain"

MAX_INDENT_LEVEL = 3


@dataclass
class BulletItem:
    """One line of a bullet run."""
    text: str
    kind: str = BULLET
    indent_level: int = 0

    def to_dict(self) -> Dict:
        return {"text": self.text, "kind": self.kind, "indent_level": self.indent_level}

    @classmethod
    def from_dict(cls, data: Dict) -> "BulletItem":
        return cls(
            text=data.get("text", ""),
            kind=data.get("kind", BULLET),
            indent_level=int(data.get("indent_level", 0)),
        )


@dataclass
class Paragraph:
    text: str
    kind = "paragraph"

    def to_dict(self) -> Dict:
        return {"kind": self.kind, "text": self.text}


@dataclass
class Bullets:
    items: List[BulletItem] = field(default_factory=list)
    kind = "bullets"

    def to_dict(self) -> Dict:
        return {"kind": self.kind, "items": [item.to_dict() for item in self.items]}


@dataclass
class Image:
    alt_text: str
    path: str
    sizing_mode: Optional[str] = None  # None lets the renderer pick (contain)
    kind = "image"

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind,
            "alt_text": self.alt_text,
            "path": self.path,
            "sizing_mode": self.sizing_mode,
        }


@dataclass
class Code:
    text: str
    language: Optional[str] = None
    kind = "code"

    def to_dict(self) -> Dict:
        return {"kind": self.kind, "text": self.text, "language": self.language}


@dataclass
class Table:
    rows: List[List[str]] = field(default_factory=list)
    kind = "table"

    @property
    def column_count(self) -> int:
        """Widest row; rows are allowed to be ragged."""
        return max((len(row) for row in self.rows), default=0)

    def to_dict(self) -> Dict:
        return {"kind": self.kind, "rows": [list(row) for row in self.rows]}


Block = Union[Paragraph, Bullets, Image, Code, Table]


def block_from_dict(data: Dict) -> Block:
    """
    Rebuild a block from its ``to_dict`` form.

    Raises:
        ValueError: If the ``kind`` tag is unknown
    """
    kind = data.get("kind")
    if kind == "paragraph":
        return Paragraph(text=data.get("text", ""))
    if kind == "bullets":
        return Bullets(items=[BulletItem.from_dict(item) for item in data.get("items", [])])
    if kind == "image":
        return Image(
            alt_text=data.get("alt_text", ""),
            path=data.get("path", ""),
            sizing_mode=data.get("sizing_mode"),
        )
    if kind == "code":
        return Code(text=data.get("text", ""), language=data.get("language"))
    if kind == "table":
        return Table(rows=[list(row) for row in data.get("rows", [])])
    raise ValueError(f"Unknown block kind: {kind!r}")


@dataclass
class Slide:
    """
    One heading section of the source document.

    A slide may end up spread over several pages by the paginator.
    """
    title: str
    subtitle: Optional[str] = None
    blocks: List[Block] = field(default_factory=list)
    notes: Optional[str] = None
    background: Optional[str] = None

    def add_note(self, text: str):
        """Append a note line; multiple notes are joined with newlines."""
        if self.notes is None:
            self.notes = text
        else:
            self.notes += "\n" + text

    def to_dict(self) -> Dict:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "blocks": [block.to_dict() for block in self.blocks],
            "notes": self.notes,
            "background": self.background,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Slide":
        return cls(
            title=data.get("title", ""),
            subtitle=data.get("subtitle"),
            blocks=[block_from_dict(b) for b in data.get("blocks", [])],
            notes=data.get("notes"),
            background=data.get("background"),
        )


def slides_to_json(slides: List[Slide], indent: Optional[int] = 2) -> str:
    """Serialize a slide sequence as a plain JSON document."""
    return json.dumps([slide.to_dict() for slide in slides], indent=indent, ensure_ascii=False)


def slides_from_json(text: str) -> List[Slide]:
    return [Slide.from_dict(item) for item in json.loads(text)]


@dataclass(frozen=True)
class Rect:
    """Rectangle in inches, origin at the top-left corner of the page."""
    x: float
    y: float
    w: float
    h: float

    @property
    def bottom(self) -> float:
        return self.y + self.h


@dataclass
class Placement:
    """A block (or fragment of one) and where it sits on the page."""
    block: Block
    rect: Rect


@dataclass
class Page:
    """
    One physical output page.

    Continuation pages carry the slide title with a suffix and never
    carry notes.
    """
    slide_title: str
    is_first_page_of_slide: bool
    slide_index: int = 0
    subtitle: Optional[str] = None
    background: Optional[str] = None
    notes: Optional[str] = None
    placements: List[Placement] = field(default_factory=list)

    @property
    def blocks(self) -> List[Block]:
        """Blocks placed on this page, in placement order."""
        return [placement.block for placement in self.placements]
