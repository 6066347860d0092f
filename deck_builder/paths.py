#!/usr/bin/env python3
"""Utility helpers for validating input/output paths and resolving assets.

Image and background references in a document are resolved against a base
directory (the input file's folder by the CLI) rather than the process
working directory, so a deck renders the same wherever it is built from.
"""
from __future__ import annotations

from pathlib import Path
from typing import Tuple

from .errors import DeckUsageError

__all__ = ["OUTPUT_SUFFIX", "is_remote_asset", "resolve_asset", "validate_io_paths"]

OUTPUT_SUFFIX = ".pptx"
REMOTE_PREFIXES = ("http://", "https://", "data:")


def is_remote_asset(src: str) -> bool:
    """True for URLs and data-URIs, which are never resolved on disk."""
    return src.startswith(REMOTE_PREFIXES)


def validate_io_paths(in_path: str | Path, out_path: str | Path) -> Tuple[Path, Path]:
    """Check the input file and output location before any work is done.

    Parameters
    ----------
    in_path
        Source text document. Must exist and be a regular file.
    out_path
        Destination presentation. Must end in ``.pptx`` and its parent
        directory must already exist.

    Returns
    -------
    ``(input, output)`` as absolute :class:`pathlib.Path` objects.

    Raises
    ------
    DeckUsageError
        With a one-line message describing the first problem found.
    """
    if not str(out_path).lower().endswith(OUTPUT_SUFFIX):
        raise DeckUsageError(f"--out must point to a {OUTPUT_SUFFIX} file")

    source = Path(in_path).expanduser().resolve()
    target = Path(out_path).expanduser().resolve()

    if not source.exists():
        raise DeckUsageError(f"Failed to read input file: {source} does not exist")
    if not source.is_file():
        raise DeckUsageError(f"Failed to read input file: {source} is not a file")

    if not target.parent.is_dir():
        raise DeckUsageError(f"Output directory missing: {target.parent}")

    return source, target


def resolve_asset(src: str, *, base_dir: Path) -> str:
    """Return the path python-pptx should open for *src*.

    Rules
    -----
    1. Remote or data-URIs are returned unchanged (the renderer will fall
       back to a placeholder for them).
    2. ``file://`` URLs are stripped to an absolute path first.
    3. Relative paths are resolved against *base_dir*.
    """
    if is_remote_asset(src):
        return src

    if src.startswith("file://"):
        return str(Path(src[7:]).expanduser().resolve())

    return str((Path(base_dir) / src).expanduser().resolve())
