"""
Line-oriented parser for the slide text dialect.

The parser is a single forward scan. Every line is classified into exactly
one kind, in a fixed precedence order, and multi-line constructs (tables,
bullet runs, paragraphs) are gathered by collector functions of the form
``(lines, start) -> (block, next_index)``. The only state carried between
lines is the open code fence (or ``None``) and the slide being filled.

The parser never raises: anything it cannot classify becomes paragraph text.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import (
    BULLET,
    MAX_INDENT_LEVEL,
    NUMBERED,
    Block,
    BulletItem,
    Bullets,
    Code,
    Image,
    Paragraph,
    Slide,
    Table,
)

logger = logging.getLogger(__name__)

# Line kinds, in precedence order (blank and fence handling come first)
BLANK = "blank"
FENCE = "fence"
HEADING = "heading"
SUBTITLE = "subtitle"
NOTE = "note"
BACKGROUND = "background"
IMAGE = "image"
TABLE = "table"
BULLET_LINE = "bullet"
TEXT = "text"

FENCE_MARKER = "```"

_HEADING_RE = re.compile(r"^#\s+(.*)$")
_SUBTITLE_RE = re.compile(r"^##\s+(.*)$")
_NOTE_RE = re.compile(r"^>note:(.*)$", re.IGNORECASE)
_BACKGROUND_RE = re.compile(r"^>bg:(.*)$", re.IGNORECASE)
_IMAGE_RE = re.compile(r"^\s*!\[(.*?)\]\((.+)\)\s*$")
_SIZING_RE = re.compile(r"^(.*)#(cover|contain)$", re.IGNORECASE | re.DOTALL)
_BULLET_RE = re.compile(r"^(\s*)([-*]|\d+\.)\s+(.*)$")
_NUMBERED_RE = re.compile(r"^\d+\.$")
_SEPARATOR_ROW_RE = re.compile(r"^[|:\-\s]+$")


def normalize_newlines(text: str) -> str:
    """Turn ``\\r\\n`` and lone ``\\r`` into ``\\n``."""
    return re.sub(r"\r\n?", "\n", text)


def is_separator_row(line: str) -> bool:
    """True for alignment rows such as ``|---|:--:|``."""
    stripped = line.strip()
    return stripped.startswith("|") and bool(_SEPARATOR_ROW_RE.match(stripped))


def is_table_line(line: str) -> bool:
    stripped = line.strip()
    if not stripped.startswith("|") or not stripped.endswith("|"):
        return False
    return not _SEPARATOR_ROW_RE.match(stripped)


def classify_line(line: str) -> str:
    """
    Return the kind of a line seen outside a code fence.

    Checks run in precedence order and the first match wins. Images must
    stand alone on the line, so ``- ![x](y.png)`` is a bullet whose text
    is the image markup.
    """
    trimmed = line.rstrip()
    if not trimmed.strip():
        return BLANK
    if trimmed.startswith(FENCE_MARKER):
        return FENCE
    if _HEADING_RE.match(line):
        return HEADING
    if _SUBTITLE_RE.match(line):
        return SUBTITLE
    if _NOTE_RE.match(trimmed):
        return NOTE
    if _BACKGROUND_RE.match(trimmed):
        return BACKGROUND
    if _IMAGE_RE.match(line):
        return IMAGE
    if is_table_line(line):
        return TABLE
    if _BULLET_RE.match(line):
        return BULLET_LINE
    return TEXT


def is_block_boundary(line: str) -> bool:
    """True if *line* would end a paragraph run."""
    return classify_line(line) != TEXT


# ----------------------------------------------------------------------
# Code fence state
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class CodeFence:
    """An open code fence and the lines gathered so far."""
    language: Optional[str] = None
    lines: Tuple[str, ...] = ()

    def to_block(self) -> Code:
        return Code(text="\n".join(self.lines), language=self.language)


def open_fence(line: str) -> CodeFence:
    language = line.strip()[len(FENCE_MARKER):].strip()
    return CodeFence(language=language or None)


def feed_fence(fence: CodeFence, line: str) -> Tuple[Optional[CodeFence], Optional[Code]]:
    """
    Feed one line to an open fence.

    Returns the new state (``None`` once closed) and the emitted ``Code``
    block, if the line closed the fence.
    """
    if line.rstrip().startswith(FENCE_MARKER):
        return None, fence.to_block()
    return CodeFence(language=fence.language, lines=fence.lines + (line,)), None


# ----------------------------------------------------------------------
# Single-line parsers
# ----------------------------------------------------------------------

def parse_image(line: str) -> Optional[Image]:
    match = _IMAGE_RE.match(line)
    if not match:
        return None
    alt_raw, target = match.groups()
    target = target.strip()
    sizing_mode = None
    sizing = _SIZING_RE.match(target)
    if sizing:
        target, sizing_mode = sizing.group(1), sizing.group(2).lower()
    return Image(alt_text=alt_raw.strip(), path=target.strip(), sizing_mode=sizing_mode)


def parse_bullet_item(line: str) -> Optional[BulletItem]:
    match = _BULLET_RE.match(line)
    if not match:
        return None
    indent, marker, text = match.groups()
    width = len(indent.replace("\t", "  "))
    return BulletItem(
        text=text.strip(),
        kind=NUMBERED if _NUMBERED_RE.match(marker) else BULLET,
        indent_level=min(width // 2, MAX_INDENT_LEVEL),
    )


def split_table_row(line: str) -> List[str]:
    inner = line.strip()[1:-1]
    return [cell.strip() for cell in inner.split("|")]


# ----------------------------------------------------------------------
# Multi-line collectors: (lines, start) -> (block, next_index)
# ----------------------------------------------------------------------

def collect_table(lines: List[str], start: int) -> Tuple[Table, int]:
    """
    Gather the table run beginning at *start*.

    Alignment rows inside the run are dropped without ending the run.
    """
    rows = []
    index = start
    while index < len(lines):
        line = lines[index]
        if is_table_line(line):
            rows.append(split_table_row(line))
        elif not is_separator_row(line):
            break
        index += 1
    return Table(rows=rows), index


def collect_bullets(lines: List[str], start: int) -> Tuple[Bullets, int]:
    items = []
    index = start
    while index < len(lines):
        item = parse_bullet_item(lines[index])
        if item is None:
            break
        items.append(item)
        index += 1
    return Bullets(items=items), index


def collect_paragraph(lines: List[str], start: int) -> Tuple[Paragraph, int]:
    """Gather trimmed lines until a blank line or a block boundary."""
    collected = [lines[start].strip()]
    index = start + 1
    while index < len(lines) and not is_block_boundary(lines[index]):
        collected.append(lines[index].strip())
        index += 1
    return Paragraph(text="\n".join(collected)), index


# ----------------------------------------------------------------------
# Driver
# ----------------------------------------------------------------------

class _SlideSequence:
    """Sealed slides plus the one currently being filled."""

    def __init__(self):
        self.slides: List[Slide] = []
        self._current: Optional[Slide] = None

    def _next_title(self) -> str:
        return f"Slide {len(self.slides) + 1}"

    def start(self, title: str) -> Slide:
        self.seal()
        self._current = Slide(title=title.strip() or self._next_title())
        return self._current

    def current(self) -> Slide:
        """The open slide, opening an untitled one first if needed."""
        if self._current is None:
            self._current = Slide(title=self._next_title())
        return self._current

    def add_block(self, block: Block):
        self.current().blocks.append(block)

    def seal(self):
        if self._current is not None:
            self.slides.append(self._current)
            self._current = None


def parse_slides(text: str) -> List[Slide]:
    """
    Parse a document into slides.

    Args:
        text: The raw document; any line-ending convention

    Returns:
        Slides in document order (empty for blank input)
    """
    lines = normalize_newlines(text).split("\n")
    deck = _SlideSequence()
    fence: Optional[CodeFence] = None

    index = 0
    while index < len(lines):
        line = lines[index]

        if fence is not None:
            fence, code = feed_fence(fence, line)
            if code is not None:
                deck.add_block(code)
            index += 1
            continue

        kind = classify_line(line)

        if kind == TABLE:
            table, index = collect_table(lines, index)
            deck.add_block(table)
            continue
        if kind == BULLET_LINE:
            bullets, index = collect_bullets(lines, index)
            if bullets.items:
                deck.add_block(bullets)
            continue
        if kind == TEXT:
            paragraph, index = collect_paragraph(lines, index)
            deck.add_block(paragraph)
            continue

        if kind == FENCE:
            fence = open_fence(line)
        elif kind == HEADING:
            deck.start(_HEADING_RE.match(line).group(1))
        elif kind == SUBTITLE:
            subtitle = _SUBTITLE_RE.match(line).group(1).strip()
            deck.current().subtitle = subtitle or None
        elif kind == NOTE:
            deck.current().add_note(_NOTE_RE.match(line.rstrip()).group(1).strip())
        elif kind == BACKGROUND:
            slide = deck.current()
            path = _BACKGROUND_RE.match(line.rstrip()).group(1).strip()
            if path:
                slide.background = path
        elif kind == IMAGE:
            deck.add_block(parse_image(line))
        index += 1

    if fence is not None:
        logger.debug("Unterminated code fence closed at end of input")
        deck.add_block(fence.to_block())
    deck.seal()

    logger.debug("Parsed %d slides", len(deck.slides))
    return deck.slides
