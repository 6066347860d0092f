"""
Page geometry and per-kind height constants.

A single :class:`LayoutConfig` instance is shared by the block fitter, the
paginator and the PowerPoint renderer, so the three can never disagree on
where the page ends or how tall a line is. All lengths are in inches.
"""
from dataclasses import dataclass
from typing import Dict, Tuple

from .errors import DeckUsageError

# Slide sizes (width, height) in inches for the supported layouts
LAYOUTS: Dict[str, Tuple[float, float]] = {
    "LAYOUT_16x9": (10.0, 5.625),
    "LAYOUT_16x10": (10.0, 6.25),
    "LAYOUT_4x3": (10.0, 7.5),
    "LAYOUT_WIDE": (13.333, 7.5),
}

DEFAULT_LAYOUT = "LAYOUT_16x9"

CONTINUATION_SUFFIX = " (cont.)"


@dataclass(frozen=True)
class LayoutConfig:
    """Immutable layout settings for one presentation."""

    slide_width: float = LAYOUTS[DEFAULT_LAYOUT][0]
    slide_height: float = LAYOUTS[DEFAULT_LAYOUT][1]

    margin_x: float = 0.6
    margin_bottom: float = 0.7

    title_y: float = 0.4
    title_height: float = 0.8
    subtitle_y: float = 1.0
    subtitle_height: float = 0.6
    body_top: float = 1.6

    # Height model: line counts times a fixed per-kind line height
    line_height: float = 0.35
    bullet_line_height: float = 0.38
    code_line_height: float = 0.32
    code_padding: float = 0.2
    min_block_height: float = 0.6
    block_gap: float = 0.2
    image_max_height: float = 3.5
    table_base_height: float = 0.6
    table_row_height: float = 0.45

    continuation_suffix: str = CONTINUATION_SUFFIX

    font_family: str = "Calibri"
    code_font_family: str = "Consolas"
    title_font_size: float = 30
    subtitle_font_size: float = 20
    body_font_size: float = 20
    code_font_size: float = 16
    table_font_size: float = 14
    subtitle_color: str = "555555"
    code_text_color: str = "202020"
    code_fill_color: str = "F2F2F2"

    @classmethod
    def for_layout(cls, name: str = DEFAULT_LAYOUT, **overrides) -> "LayoutConfig":
        """
        Build a config sized for one of the named layouts.

        Args:
            name: One of the keys of :data:`LAYOUTS`
            **overrides: Any other field to replace

        Raises:
            DeckUsageError: If the layout name is not recognised
        """
        if name not in LAYOUTS:
            raise DeckUsageError(
                f"Unsupported layout: {name} (choose from {', '.join(sorted(LAYOUTS))})"
            )
        width, height = LAYOUTS[name]
        values = {"slide_width": width, "slide_height": height}
        values.update(overrides)
        return cls(**values)

    @property
    def content_width(self) -> float:
        return self.slide_width - 2 * self.margin_x

    @property
    def page_bottom(self) -> float:
        """Lowest y a block may reach; the bottom margin is already removed."""
        return self.slide_height - self.margin_bottom

    @property
    def body_height(self) -> float:
        """Height available to blocks on an empty page."""
        return self.page_bottom - self.body_top
