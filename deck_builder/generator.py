#!/usr/bin/env python3
"""
Main deck generator module that ties together parser, paginator and PowerPoint renderer.
"""

import argparse
import logging
import sys
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional

from .config import DEFAULT_LAYOUT, LAYOUTS, LayoutConfig
from .errors import DeckBuildError, DeckUsageError
from .layout_engine import BlockFitter, paginate_deck
from .markdown_parser import parse_slides
from .models import Page, Slide, slides_to_json
from .paths import is_remote_asset, validate_io_paths
from .pptx_renderer import DocumentMetadata, PPTXRenderer

logger = logging.getLogger(__name__)


class DeckGenerator:
    """
    Main class for generating PowerPoint decks from slide text.
    """

    def __init__(
        self,
        *,
        layout: str = DEFAULT_LAYOUT,
        base_dir: Optional[str] = None,
        metadata: Optional[DocumentMetadata] = None,
        default_background: Optional[str] = None,
        debug: bool = False,
    ):
        """Create a new :class:`DeckGenerator`.

        Parameters
        ----------
        layout
            One of the named layouts (``LAYOUT_16x9`` / ``LAYOUT_4x3`` / …).
            Raises :class:`DeckUsageError` when unknown.
        base_dir
            Base directory for resolving relative image paths.
            If None, defaults to current working directory.
        metadata
            Title/author/company written into the presentation.
        default_background
            Background image for slides that do not set ``>bg:``.
        debug
            Enable verbose logging.
        """
        self.debug = debug
        self.config = LayoutConfig.for_layout(layout)
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.default_background = default_background

        # One config shared by fitter and renderer so geometry cannot drift
        self.fitter = BlockFitter(self.config)
        self.pptx_renderer = PPTXRenderer(
            self.config, base_dir=self.base_dir, metadata=metadata, debug=debug
        )

    def parse(self, text: str) -> List[Slide]:
        """
        Parse *text* into slides.

        Raises:
            DeckUsageError: If the text contains no slides at all
        """
        slides = parse_slides(text)
        if not slides:
            raise DeckUsageError("No slides detected in the input file.")
        return slides

    def paginate(self, slides: List[Slide]) -> List[Page]:
        return paginate_deck(
            slides, self.config, self.fitter, default_background=self.default_background
        )

    def generate(
        self,
        text: str,
        output_path: str,
        *,
        on_parsed: Optional[Callable[[List[Slide]], None]] = None,
    ) -> str:
        """
        Generate a PowerPoint presentation from slide text.

        Args:
            text: The document to convert
            output_path: Path where the PPTX file should be saved
            on_parsed: Called with the parsed slides before pagination

        Returns:
            str: Path to the generated PPTX file
        """
        slides = self.parse(text)
        if on_parsed is not None:
            on_parsed(slides)
        pages = self.paginate(slides)
        self.pptx_renderer.render(pages, output_path)

        logger.info("Presentation written to %s (%d slides, %d pages)", output_path, len(slides), len(pages))
        return str(output_path)


def _build_parser():
    p = _ArgumentParser(prog="deckbuild", description="Convert slide text to a PPTX presentation.")
    p.add_argument("--in", dest="in_path", required=True, help="Slide text file to convert")
    p.add_argument("--out", dest="out_path", required=True, help="Destination .pptx path")
    p.add_argument("--layout", default=DEFAULT_LAYOUT,
                   help=f"Slide size: {', '.join(LAYOUTS)} (default: {DEFAULT_LAYOUT})")
    p.add_argument("--title", help="Presentation title property")
    p.add_argument("--author", help="Presentation author property")
    p.add_argument("--company", help="Presentation company property")
    p.add_argument("--bg", dest="background", help="Default background image for every slide")
    p.add_argument("--dump-json", type=Path, help="Also write the parsed slides as JSON")
    p.add_argument("--debug", action="store_true", help="Enable verbose logging")
    return p


class _ArgumentParser(argparse.ArgumentParser):
    """Reports bad arguments as a DeckUsageError instead of exiting with status 2."""

    def error(self, message):
        raise DeckUsageError(message)


def default_background(value: Optional[str]) -> Optional[str]:
    """Resolve a ``--bg`` value against the working directory; URLs pass through."""
    if not value:
        return None
    if is_remote_asset(value):
        return value
    return str(Path(value).expanduser().resolve())


def _write_slides_json(path: Path, slides: List[Slide]):
    try:
        path.write_text(slides_to_json(slides), encoding="utf-8")
    except OSError as e:
        raise DeckUsageError(f"Failed to write {path}: {e}", cause=e) from e
    logger.info(f"Wrote parsed slides to {path}")


def run(argv: Optional[List[str]] = None) -> str:
    """
    Run the command line flow and return the written path.

    Raises:
        DeckBuildError: On any usage or rendering failure
    """
    args = _build_parser().parse_args(argv)

    if args.debug:
        logging.getLogger("deck_builder").setLevel(logging.DEBUG)

    LayoutConfig.for_layout(args.layout)  # fail on unknown layouts before touching files
    in_path, out_path = validate_io_paths(args.in_path, args.out_path)

    try:
        text = in_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DeckUsageError(f"Failed to read input file: {e}", cause=e) from e

    generator = DeckGenerator(
        layout=args.layout,
        base_dir=in_path.parent,
        metadata=DocumentMetadata(title=args.title, author=args.author, company=args.company),
        default_background=default_background(args.background),
        debug=args.debug,
    )
    on_parsed = partial(_write_slides_json, args.dump_json) if args.dump_json else None
    return generator.generate(text, str(out_path), on_parsed=on_parsed)


def main(argv: Optional[List[str]] = None):
    """Command-line entry point for the deck generator."""
    try:
        run(argv)
    except DeckBuildError as e:
        print(str(e).splitlines()[0] if str(e) else type(e).__name__, file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
