"""Deck Builder – top-level package

Exposes the public API (`parse_slides`, `paginate`, `DeckGenerator`, etc.)
**and** sets up a minimal logging configuration so that every sub-module can
call

```python
import logging
logger = logging.getLogger(__name__)
```

and honour a single environment variable `DECKBUILD_LOG_LEVEL`.
"""

from __future__ import annotations

import logging
import os

# ------------------------------------------------------------------
# Default logging – honour env var, otherwise INFO.
# ------------------------------------------------------------------
LOG_LEVEL = os.getenv("DECKBUILD_LOG_LEVEL", "INFO").upper()
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

# Public API re-exports ------------------------------------------------
from .config import LAYOUTS, LayoutConfig  # noqa: E402  (import after logger)
from .errors import DeckBuildError, DeckUsageError, RenderError  # noqa: E402
from .generator import DeckGenerator  # noqa: E402
from .layout_engine import BlockFitter, Defer, Rendered, Split, paginate, paginate_deck  # noqa: E402
from .markdown_parser import parse_slides  # noqa: E402
from .models import (  # noqa: E402
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
)
from .pptx_renderer import DocumentMetadata, PPTXRenderer  # noqa: E402

__all__ = [
    "LAYOUTS",
    "LayoutConfig",
    "DeckBuildError",
    "DeckUsageError",
    "RenderError",
    "DeckGenerator",
    "BlockFitter",
    "Defer",
    "Rendered",
    "Split",
    "paginate",
    "paginate_deck",
    "parse_slides",
    "BulletItem",
    "Bullets",
    "Code",
    "Image",
    "Page",
    "Paragraph",
    "Placement",
    "Rect",
    "Slide",
    "Table",
    "DocumentMetadata",
    "PPTXRenderer",
]
