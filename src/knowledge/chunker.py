"""Sentence-level text chunking.

Text is split on newlines and periods, each piece is trimmed, and empty
pieces are dropped. Runs of delimiters collapse into a single boundary.
Short chunks are never merged and there is no cap on chunk count.
"""

from __future__ import annotations

import re

_DELIMITERS = re.compile(r"[\n.]+")


def chunk_text(text: str) -> list[str]:
    """Split text into trimmed, non-empty chunks.

    Examples:
        >>> chunk_text("A. B.\\nC")
        ['A', 'B', 'C']
        >>> chunk_text("   ")
        []
    """
    pieces = _DELIMITERS.split(text.strip())
    return [piece.strip() for piece in pieces if piece.strip()]
