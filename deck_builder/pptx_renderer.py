#!/usr/bin/env python3
"""
PowerPoint renderer for converting paginated pages to a .pptx file.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from lxml import etree
from PIL import Image as PILImage
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.util import Inches, Pt

from .config import LayoutConfig
from .errors import RenderError
from .models import (
    NUMBERED,
    SIZING_CONTAIN,
    SIZING_COVER,
    Bullets,
    Code,
    Image,
    Page,
    Paragraph,
    Placement,
    Table,
)
from .paths import resolve_asset

logger = logging.getLogger(__name__)

BLANK_LAYOUT_INDEX = 6
EXTENDED_PROPERTIES_PART = "/docProps/app.xml"
EXTENDED_PROPERTIES_NS = "http://schemas.openxmlformats.org/officeDocument/2006/extended-properties"


@dataclass
class DocumentMetadata:
    """Document properties written into the presentation package."""
    title: Optional[str] = None
    author: Optional[str] = None
    company: Optional[str] = None
    revision: int = 1


class ImageDimensionCache:
    """Cache for image dimensions to avoid repeated PIL Image.open calls."""

    def __init__(self, debug: bool = False):
        self.cache: Dict[str, Tuple[int, int]] = {}
        self.debug = debug

    def get_dimensions(self, image_path: str) -> Tuple[Optional[int], Optional[int]]:
        """
        Get image dimensions, using cache if available.

        Args:
            image_path: Path to the image file

        Returns:
            Tuple of (width, height) or (None, None) if the file can't be read
        """
        if image_path in self.cache:
            return self.cache[image_path]

        try:
            with PILImage.open(image_path) as img:
                dimensions = img.size
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read image dimensions for {image_path}: {e}")
            return None, None

        self.cache[image_path] = dimensions
        if self.debug:
            logger.debug(f"Cached image dimensions for {image_path}: {dimensions}")
        return dimensions


def fit_image(image_size: Tuple[int, int], box: Tuple[float, float], mode: str) -> Dict[str, float]:
    """
    Work out picture geometry for ``contain`` or ``cover`` sizing.

    Args:
        image_size: Pixel (width, height) of the source image
        box: (width, height) of the target rectangle in inches
        mode: ``"contain"`` letterboxes, ``"cover"`` fills and crops

    Returns:
        Dict with ``left``/``top`` offsets within the box, ``width``/``height``
        of the picture and ``crop_*`` fractions (zero for contain)
    """
    img_w, img_h = image_size
    box_w, box_h = box
    geometry = {"left": 0.0, "top": 0.0, "width": box_w, "height": box_h,
                "crop_left": 0.0, "crop_right": 0.0, "crop_top": 0.0, "crop_bottom": 0.0}

    if mode == SIZING_COVER:
        scale = max(box_w / img_w, box_h / img_h)
        excess_x = (img_w * scale - box_w) / (img_w * scale)
        excess_y = (img_h * scale - box_h) / (img_h * scale)
        geometry.update(crop_left=excess_x / 2, crop_right=excess_x / 2,
                        crop_top=excess_y / 2, crop_bottom=excess_y / 2)
        return geometry

    scale = min(box_w / img_w, box_h / img_h)
    width, height = img_w * scale, img_h * scale
    geometry.update(left=(box_w - width) / 2, top=(box_h - height) / 2, width=width, height=height)
    return geometry


class PPTXRenderer:
    """
    Renderer for converting paginated pages to PowerPoint slides.

    The whole presentation is built in memory and only written once every
    page has been drawn, so a failure never leaves a half-written file.
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        *,
        base_dir: Optional[Path] = None,
        metadata: Optional[DocumentMetadata] = None,
        debug: bool = False,
    ):
        """
        Args:
            config: Page geometry and fonts; must be the one used to paginate
            base_dir: Directory relative image paths are resolved against
            metadata: Title/author/company properties
            debug: Extra logging per drawn block
        """
        self.config = config or LayoutConfig()
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.metadata = metadata or DocumentMetadata()
        self.debug = debug
        self.image_cache = ImageDimensionCache(debug)

    def render(self, pages: List[Page], output_path: str) -> str:
        """
        Render pages to a PowerPoint presentation and save it.

        Args:
            pages: Pages produced by the paginator
            output_path: Path where the PPTX file should be saved

        Returns:
            str: The path written

        Raises:
            RenderError: If drawing or saving fails; the file is not written
        """
        try:
            prs = self.build(pages)
        except Exception as e:
            raise RenderError(f"Failed to render presentation: {e}", cause=e) from e
        try:
            prs.save(output_path)
        except (OSError, ValueError) as e:
            raise RenderError(f"Failed to write {output_path}: {e}", cause=e) from e
        logger.info(f"Saved {len(pages)} pages to {output_path}")
        return str(output_path)

    def build(self, pages: List[Page]) -> Presentation:
        """Draw every page into a new in-memory presentation."""
        prs = Presentation()
        prs.slide_width = Inches(self.config.slide_width)
        prs.slide_height = Inches(self.config.slide_height)
        self._apply_metadata(prs)

        for page in pages:
            slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT_INDEX])
            self._draw_page(slide, page)
        return prs

    # ------------------------------------------------------------------
    # Document properties
    # ------------------------------------------------------------------

    def _apply_metadata(self, prs):
        props = prs.core_properties
        if self.metadata.title:
            props.title = self.metadata.title
        if self.metadata.author:
            props.author = self.metadata.author
        props.revision = self.metadata.revision
        if self.metadata.company:
            self._set_company(prs, self.metadata.company)

    def _set_company(self, prs, company: str):
        """Write ``<Company>`` into docProps/app.xml (python-pptx has no API for it)."""
        app_part = None
        for part in prs.part.package.iter_parts():
            if str(part.partname) == EXTENDED_PROPERTIES_PART:
                app_part = part
                break
        if app_part is None:
            logger.warning("Presentation template has no extended properties; company not set")
            return

        root = etree.fromstring(app_part.blob)
        element = root.find(f"{{{EXTENDED_PROPERTIES_NS}}}Company")
        if element is None:
            element = etree.SubElement(root, f"{{{EXTENDED_PROPERTIES_NS}}}Company")
        element.text = company
        # Generic parts serve .blob from _blob (python-pptx 0.6.x and 1.0.x)
        app_part._blob = etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)

    # ------------------------------------------------------------------
    # Page drawing
    # ------------------------------------------------------------------

    def _draw_page(self, slide, page: Page):
        cfg = self.config
        if page.background:
            self._draw_background(slide, page.background)

        self._add_text(slide, page.slide_title, cfg.margin_x, cfg.title_y, cfg.content_width,
                       cfg.title_height, size=cfg.title_font_size, bold=True)
        if page.subtitle:
            self._add_text(slide, page.subtitle, cfg.margin_x, cfg.subtitle_y, cfg.content_width,
                           cfg.subtitle_height, size=cfg.subtitle_font_size, color=cfg.subtitle_color)

        for placement in page.placements:
            self._draw_placement(slide, placement)

        if page.notes:
            slide.notes_slide.notes_text_frame.text = page.notes

    def _draw_background(self, slide, background: str):
        cfg = self.config
        path = resolve_asset(background, base_dir=self.base_dir)
        try:
            slide.shapes.add_picture(path, 0, 0, width=Inches(cfg.slide_width),
                                     height=Inches(cfg.slide_height))
        except (OSError, ValueError) as e:
            logger.warning(f"Background image {background} could not be added: {e}")

    def _draw_placement(self, slide, placement: Placement):
        block, rect = placement.block, placement.rect
        if self.debug:
            logger.debug(f"Drawing {block.kind} at y={rect.y:.2f}in h={rect.h:.2f}in")

        if isinstance(block, Paragraph):
            self._add_text(slide, block.text, rect.x, rect.y, rect.w,
                           max(rect.h, self.config.min_block_height), size=self.config.body_font_size)
        elif isinstance(block, Bullets):
            self._add_bullets(slide, block, rect)
        elif isinstance(block, Code):
            self._add_code(slide, block, rect)
        elif isinstance(block, Image):
            self._add_image(slide, block, rect)
        elif isinstance(block, Table):
            self._add_table(slide, block, rect)

    def _new_text_frame(self, slide, x, y, w, h):
        textbox = slide.shapes.add_textbox(Inches(x), Inches(y), Inches(w), Inches(h))
        text_frame = textbox.text_frame
        text_frame.word_wrap = True
        return textbox, text_frame

    def _style_run(self, run, *, size, bold=False, color=None, font=None):
        run.font.name = font or self.config.font_family
        run.font.size = Pt(size)
        if bold:
            run.font.bold = True
        if color:
            run.font.color.rgb = RGBColor.from_string(color)

    def _add_text(self, slide, text: str, x, y, w, h, *, size, bold=False, color=None, font=None):
        """Add a text box with one paragraph per line of *text*."""
        _, text_frame = self._new_text_frame(slide, x, y, w, h)
        for i, line in enumerate(text.split("\n")):
            paragraph = text_frame.paragraphs[0] if i == 0 else text_frame.add_paragraph()
            run = paragraph.add_run()
            run.text = line
            self._style_run(run, size=size, bold=bold, color=color, font=font)
        return text_frame

    def _add_bullets(self, slide, block: Bullets, rect):
        """One paragraph per item, indented by level and prefixed with its marker."""
        _, text_frame = self._new_text_frame(slide, rect.x, rect.y, rect.w,
                                             max(rect.h, self.config.min_block_height))
        counters: Dict[int, int] = {}
        for i, item in enumerate(block.items):
            paragraph = text_frame.paragraphs[0] if i == 0 else text_frame.add_paragraph()
            paragraph.level = item.indent_level

            # Deeper numbering restarts whenever we come back up a level
            for deeper in [level for level in counters if level > item.indent_level]:
                counters.pop(deeper)
            if item.kind == NUMBERED:
                counters[item.indent_level] = counters.get(item.indent_level, 0) + 1
                marker = f"{counters[item.indent_level]}. "
            else:
                marker = "• "

            run = paragraph.add_run()
            run.text = marker + item.text
            self._style_run(run, size=self.config.body_font_size)

    def _add_code(self, slide, block: Code, rect):
        cfg = self.config
        textbox, text_frame = self._new_text_frame(slide, rect.x, rect.y, rect.w,
                                                   max(rect.h, cfg.min_block_height))
        textbox.fill.solid()
        textbox.fill.fore_color.rgb = RGBColor.from_string(cfg.code_fill_color)
        for i, line in enumerate(block.text.split("\n")):
            paragraph = text_frame.paragraphs[0] if i == 0 else text_frame.add_paragraph()
            run = paragraph.add_run()
            run.text = line
            self._style_run(run, size=cfg.code_font_size, color=cfg.code_text_color,
                            font=cfg.code_font_family)

    def _add_image_placeholder(self, slide, block: Image, rect):
        self._add_text(slide, f"[Missing image: {os.path.basename(block.path) or 'no path'}]",
                       rect.x, rect.y, rect.w, rect.h, size=self.config.body_font_size)

    def _add_image(self, slide, block: Image, rect):
        path = resolve_asset(block.path, base_dir=self.base_dir)
        size = self.image_cache.get_dimensions(path) if os.path.isfile(path) else (None, None)
        if not size[0] or not size[1]:
            logger.warning(f"Image file not accessible: {block.path}")
            self._add_image_placeholder(slide, block, rect)
            return

        geometry = fit_image(size, (rect.w, rect.h), block.sizing_mode or SIZING_CONTAIN)
        try:
            picture = slide.shapes.add_picture(
                path,
                Inches(rect.x + geometry["left"]),
                Inches(rect.y + geometry["top"]),
                width=Inches(geometry["width"]),
                height=Inches(geometry["height"]),
            )
        except (OSError, ValueError) as e:
            # Pillow reads more formats (e.g. WEBP) than python-pptx can embed
            logger.warning(f"Image {block.path} could not be added: {e}")
            self._add_image_placeholder(slide, block, rect)
            return
        for side in ("left", "right", "top", "bottom"):
            crop = geometry[f"crop_{side}"]
            if crop:
                setattr(picture, f"crop_{side}", crop)
        if block.alt_text:
            # cNvPr/@descr is what PowerPoint shows as alt text
            picture._element.nvPicPr.cNvPr.set("descr", block.alt_text)

    def _add_table(self, slide, block: Table, rect):
        rows, cols = len(block.rows), block.column_count
        if not rows or not cols:
            return
        cfg = self.config
        shape = slide.shapes.add_table(rows, cols, Inches(rect.x), Inches(rect.y),
                                       Inches(rect.w), Inches(rect.h))
        table = shape.table
        for r, row in enumerate(block.rows):
            for c in range(cols):
                cell = table.cell(r, c)
                cell.text = row[c] if c < len(row) else ""
                for paragraph in cell.text_frame.paragraphs:
                    for run in paragraph.runs:
                        self._style_run(run, size=cfg.table_font_size)
