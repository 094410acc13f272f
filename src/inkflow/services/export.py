"""Plain Markdown export of a manuscript."""

import re
from typing import Optional

from inkflow.models.block import BlockKind, Document

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9\s_-]")


def render_markdown(document: Document, title: Optional[str] = None) -> str:
    """
    Render blocks as Markdown, one blank line between blocks.

    Headings become "# text", rules "---", paragraphs are written verbatim.
    Empty paragraphs and headings are skipped.

    Args:
        document: Manuscript to render (read only)
        title: Optional title written as a top-level heading

    Returns:
        Markdown text ending in a newline (empty string for an empty manuscript)
    """
    parts = []
    if title:
        parts.append(f"# {title.strip()}")

    for block in document.blocks:
        if block.kind == BlockKind.RULE:
            parts.append("---")
            continue
        text = block.text.strip()
        if not text:
            continue
        if block.kind == BlockKind.HEADING:
            parts.append(f"## {text}" if title else f"# {text}")
        else:
            parts.append(text)

    return "\n\n".join(parts) + "\n" if parts else ""


def count_words(document: Document) -> int:
    """Count whitespace-delimited words. Rules do not count."""
    return sum(
        len(block.text.split())
        for block in document.blocks
        if block.kind != BlockKind.RULE
    )


def export_filename(title: Optional[str], extension: str = "md") -> str:
    """
    Build a safe export filename from a manuscript title.

    Example:
        >>> export_filename("The Long Night: Part 1")
        'The_Long_Night_Part_1.md'
    """
    safe = _UNSAFE_FILENAME_CHARS.sub("", title or "").strip()
    safe = re.sub(r"\s+", "_", safe) or "Untitled"
    return f"{safe}.{extension}"
