"""Segmentation of pasted or imported text into manuscript blocks.

Blank lines separate blocks; single line breaks stay inside a block's text.
A long paste without any blank line is split on sentence boundaries instead
so it does not become one unreadable block.
"""

import re

from inkflow.models.block import Block, BlockKind


# Segments longer than this trigger the sentence-boundary fallback
SENTENCE_SPLIT_THRESHOLD = 150

_LINE_ENDINGS = re.compile(r"\r\n|[\r\u2028\u2029]")
_BLANK_LINE = re.compile(r"\n\s*\n")
_RULE = re.compile(r"^[-*_]{3,}$")
_HEADING_MARKER = re.compile(r"^#+\s*")

# Terminal punctuation, optional closing quote/bracket, then the run of spaces
# to cut at, provided an (optionally quoted) capital letter follows.
_SENTENCE_END = re.compile(r"[.!?][\"'”’)\]]?( +)(?=[\"'“‘(]?[A-Z])")


def normalize_line_endings(text: str) -> str:
    """Convert CR-LF, bare CR and Unicode line/paragraph separators to \\n."""
    return _LINE_ENDINGS.sub("\n", text)


def is_rule(text: str) -> bool:
    """True if text (already trimmed) is a scene-break rule such as '---'."""
    return bool(_RULE.match(text))


def split_sentences(text: str) -> list[str]:
    """
    Split text after sentence-ending punctuation.

    Args:
        text: A single run of prose

    Returns:
        Trimmed, non-empty sentence groups in order

    Example:
        >>> split_sentences('He left. "Wait!" she said. Then silence.')
        ['He left.', '"Wait!" she said.', 'Then silence.']
    """
    pieces = []
    start = 0
    for match in _SENTENCE_END.finditer(text):
        pieces.append(text[start:match.start(1)])
        start = match.end(1)
    pieces.append(text[start:])
    return [piece.strip() for piece in pieces if piece.strip()]


def split_segments(raw_text: str) -> list[str]:
    """
    Split raw text into trimmed segments, one per future block.

    Args:
        raw_text: Pasted or imported text

    Returns:
        Non-empty trimmed segments (possibly none)
    """
    normalized = normalize_line_endings(raw_text)
    segments = [s.strip() for s in _BLANK_LINE.split(normalized) if s.strip()]

    if len(segments) == 1 and len(segments[0]) > SENTENCE_SPLIT_THRESHOLD:
        sentences = split_sentences(segments[0])
        if len(sentences) > 1:
            return sentences

    return segments


def classify(segment: str) -> Block:
    """Build a block of the right kind from a trimmed segment."""
    if is_rule(segment):
        return Block(kind=BlockKind.RULE)
    if segment.startswith("#"):
        return Block(kind=BlockKind.HEADING, text=_HEADING_MARKER.sub("", segment, count=1))
    return Block(kind=BlockKind.PARAGRAPH, text=segment)


def segment(raw_text: str) -> list[Block]:
    """
    Parse free-form text into an ordered list of new blocks.

    Each returned block has a freshly generated id. Whitespace-only input
    yields an empty list; callers decide what that means.

    Args:
        raw_text: Pasted or imported text

    Returns:
        Blocks in reading order

    Example:
        >>> [(b.kind.value, b.text) for b in segment("# Title\\n\\nBody text")]
        [('heading', 'Title'), ('paragraph', 'Body text')]
    """
    return [classify(s) for s in split_segments(raw_text)]
