#!/usr/bin/env python3
"""Block fitting and pagination of slides onto fixed-size pages."""

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import List, Optional, Protocol, Union

from .config import LayoutConfig
from .models import (
    Block,
    Bullets,
    Code,
    Image,
    Page,
    Paragraph,
    Placement,
    Rect,
    Slide,
    Table,
)

logger = logging.getLogger(__name__)

# Float slack so that e.g. 10 lines of 0.5in fit exactly into 5.0in
_EPSILON = 1e-9


@dataclass
class Rendered:
    """The whole block fits; *height* is the vertical extent it used."""
    height: float
    placed: Block


@dataclass
class Split:
    """*placed* fits in *height*; *remainder* goes to the next page."""
    height: float
    placed: Block
    remainder: Block


@dataclass
class Defer:
    """Nothing of the block fits here."""
    reason: str = ""


PlacementResult = Union[Rendered, Split, Defer]


class BlockPlacer(Protocol):
    """
    The placement capability the paginator drives.

    ``place`` is asked whether *block* fits at *rect* (whose height is the
    space left on the page) and answers with a :class:`Rendered`,
    :class:`Split` or :class:`Defer`. With ``force=True`` the caller is on
    an empty page and wants the block placed no matter what.
    """

    def place(self, block: Block, rect: Rect, force: bool = False) -> PlacementResult:
        ...


def _count_fitting(available: float, unit: float) -> int:
    return max(int(math.floor((available + _EPSILON) / unit)), 0)


class BlockFitter:
    """
    Default placement capability backed by the fixed height model.

    Heights are line counts times the per-kind line heights of the shared
    :class:`LayoutConfig`; nothing is measured.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    # -- height model ---------------------------------------------------

    def needed_height(self, block: Block) -> float:
        """Height *block* would take if nothing limited it."""
        cfg = self.config
        if isinstance(block, Paragraph):
            lines = len(block.text.split("\n"))
            return max(lines * cfg.line_height, cfg.min_block_height)
        if isinstance(block, Bullets):
            return max(len(block.items) * cfg.bullet_line_height, cfg.min_block_height)
        if isinstance(block, Code):
            lines = len(block.text.split("\n"))
            return max(lines * cfg.code_line_height + cfg.code_padding, cfg.min_block_height)
        if isinstance(block, Image):
            return max(cfg.image_max_height, cfg.min_block_height)
        if isinstance(block, Table):
            return max(cfg.table_base_height + len(block.rows) * cfg.table_row_height,
                       cfg.min_block_height)
        raise TypeError(f"Unsupported block type: {type(block).__name__}")

    # -- placement ------------------------------------------------------

    def place(self, block: Block, rect: Rect, force: bool = False) -> PlacementResult:
        available = rect.h
        if available <= 0:
            return Defer("no space left")
        if not force and available + _EPSILON < self.config.min_block_height:
            return Defer("below minimum block height")

        if isinstance(block, Image):
            return self._place_image(block, available)
        if isinstance(block, Table):
            return self._place_table(block, available, force)

        needed = self.needed_height(block)
        if needed <= available + _EPSILON:
            return Rendered(height=needed, placed=block)
        if isinstance(block, Paragraph):
            return self._split_paragraph(block, available)
        if isinstance(block, Bullets):
            return self._split_bullets(block, available)
        if isinstance(block, Code):
            return self._split_code(block, available)
        raise TypeError(f"Unsupported block type: {type(block).__name__}")

    def _place_image(self, block: Image, available: float) -> PlacementResult:
        # Images never grow past the max height but shrink to the space left
        height = min(self.config.image_max_height, available)
        return Rendered(height=height, placed=block)

    def _place_table(self, block: Table, available: float, force: bool) -> PlacementResult:
        needed = self.needed_height(block)
        if needed <= available + _EPSILON:
            return Rendered(height=needed, placed=block)
        if force:
            return Rendered(height=available, placed=block)
        return Defer("table taller than the space left")

    def _split_paragraph(self, block: Paragraph, available: float) -> PlacementResult:
        lines = block.text.split("\n")
        keep = max(_count_fitting(available, self.config.line_height), 1)
        if keep >= len(lines):
            return Rendered(height=available, placed=block)
        head = Paragraph(text="\n".join(lines[:keep]))
        tail = Paragraph(text="\n".join(lines[keep:]).lstrip())
        return Split(height=available, placed=head, remainder=tail)

    def _split_bullets(self, block: Bullets, available: float) -> PlacementResult:
        keep = max(_count_fitting(available, self.config.bullet_line_height), 1)
        if keep >= len(block.items):
            return Rendered(height=available, placed=block)
        return Split(
            height=available,
            placed=Bullets(items=block.items[:keep]),
            remainder=Bullets(items=block.items[keep:]),
        )

    def _split_code(self, block: Code, available: float) -> PlacementResult:
        cfg = self.config
        lines = block.text.split("\n")
        keep = max(_count_fitting(available - cfg.code_padding, cfg.code_line_height), 1)
        if keep >= len(lines):
            return Rendered(height=available, placed=block)
        # Indentation is meaningful in code, so the remainder is not stripped
        return Split(
            height=available,
            placed=Code(text="\n".join(lines[:keep]), language=block.language),
            remainder=Code(text="\n".join(lines[keep:]), language=block.language),
        )


def paginate(
    slide: Slide,
    config: Optional[LayoutConfig] = None,
    placer: Optional[BlockPlacer] = None,
    *,
    default_background: Optional[str] = None,
    slide_index: int = 0,
) -> List[Page]:
    """
    Lay one slide's blocks out over as many pages as it needs.

    Args:
        slide: The slide to paginate
        config: Page geometry; defaults to the 16:9 layout
        placer: Placement capability; defaults to a :class:`BlockFitter`
            sharing *config*
        default_background: Background for pages of slides without one
        slide_index: Position of *slide* in the deck, copied onto each page

    Returns:
        At least one page, even for a slide without blocks
    """
    config = config or LayoutConfig()
    placer = placer or BlockFitter(config)

    queue = deque(slide.blocks)
    pages: List[Page] = []
    bottom = config.page_bottom

    while queue or not pages:
        first = not pages
        page = Page(
            slide_title=slide.title if first else slide.title + config.continuation_suffix,
            is_first_page_of_slide=first,
            slide_index=slide_index,
            subtitle=slide.subtitle,
            background=slide.background or default_background,
            notes=slide.notes if first else None,
        )
        pages.append(page)

        cursor = config.body_top
        consumed = False
        while queue:
            block = queue[0]
            rect = Rect(config.margin_x, cursor, config.content_width, bottom - cursor)
            result = placer.place(block, rect)

            if isinstance(result, Defer):
                logger.debug("Deferring %s on '%s': %s", block.kind, page.slide_title, result.reason)
                break

            queue.popleft()
            consumed = True
            page.placements.append(
                Placement(result.placed, Rect(rect.x, cursor, rect.w, result.height))
            )

            if isinstance(result, Split):
                logger.debug("Split %s on '%s'", block.kind, page.slide_title)
                queue.appendleft(result.remainder)
                cursor = bottom
                break

            cursor += result.height + config.block_gap
            if cursor >= bottom - config.block_gap:
                break

        if not consumed and queue:
            _force_head(queue, page, config, placer)

    return pages


def _force_head(queue: deque, page: Page, config: LayoutConfig, placer: BlockPlacer):
    """
    Place the queue head on an otherwise empty page, whatever its size.

    An empty page offers the most room a page ever will, so a block that
    still defers here would defer forever. If the placer rejects even the
    forced placement the block is dropped.
    """
    block = queue.popleft()
    rect = Rect(config.margin_x, config.body_top, config.content_width, config.body_height)
    result = placer.place(block, rect, force=True)

    if isinstance(result, Defer):
        logger.warning(
            "Dropping %s block on '%s': it does not fit on an empty page (%s)",
            block.kind, page.slide_title, result.reason or "rejected by placer",
        )
        return

    logger.warning("Force-placed %s block on '%s' at the top of an empty page", block.kind, page.slide_title)
    page.placements.append(Placement(result.placed, Rect(rect.x, rect.y, rect.w, result.height)))
    if isinstance(result, Split):
        queue.appendleft(result.remainder)


def paginate_deck(
    slides: List[Slide],
    config: Optional[LayoutConfig] = None,
    placer: Optional[BlockPlacer] = None,
    *,
    default_background: Optional[str] = None,
) -> List[Page]:
    """Paginate every slide in order and return all pages."""
    config = config or LayoutConfig()
    placer = placer or BlockFitter(config)
    pages: List[Page] = []
    for index, slide in enumerate(slides):
        slide_pages = paginate(
            slide, config, placer, default_background=default_background, slide_index=index
        )
        if len(slide_pages) > 1:
            logger.info("Slide '%s' spread over %d pages", slide.title, len(slide_pages))
        pages.extend(slide_pages)
    return pages
