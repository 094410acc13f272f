"""Word-level diff for highlighting what a revision changed."""

import re
from enum import Enum

from pydantic import BaseModel, Field


# How many old tokens ahead of the cursor a new token may be matched against
LOOKAHEAD_WINDOW = 10

_WORD_BOUNDARY = re.compile(r"\b")


class DiffTag(str, Enum):
    """Enum for diff token tags."""

    SAME = "same"
    ADDED = "added"


class DiffToken(BaseModel):
    """A run of text tagged as unchanged or newly added."""

    token: str = Field(..., description="Token text (word, whitespace or punctuation run)")
    tag: DiffTag = Field(..., description="Whether the token appears in the old text")

    model_config = {"frozen": True}


def tokenize(text: str) -> list[str]:
    """Split text on word boundaries, keeping whitespace and punctuation runs as tokens.

    Concatenating the result reproduces the input exactly.
    """
    return [token for token in _WORD_BOUNDARY.split(text) if token]


def word_diff(old_text: str, new_text: str) -> list[DiffToken]:
    """
    Tag each token of new_text as SAME or ADDED relative to old_text.

    Walks the new tokens left to right. Each non-whitespace token is looked
    up in the old token stream within LOOKAHEAD_WINDOW tokens of the last
    matched position; a hit advances the old cursor past it. Whitespace is
    always reported as SAME.

    This is a forward-only display heuristic for "what did the rewrite
    change", not a minimal edit script. Deleted old tokens are not reported.

    Args:
        old_text: Reference text (e.g. from the comparison snapshot)
        new_text: Current text

    Returns:
        Tokens of new_text in order, each tagged

    Example:
        >>> [(t.token, t.tag.value) for t in word_diff("the cat", "the big cat")]
        [('the', 'same'), (' ', 'same'), ('big', 'added'), (' ', 'same'), ('cat', 'same')]
    """
    if not new_text:
        return []
    if not old_text:
        return [DiffToken(token=new_text, tag=DiffTag.ADDED)]
    if old_text == new_text:
        return [DiffToken(token=new_text, tag=DiffTag.SAME)]

    old_tokens = tokenize(old_text)
    new_tokens = tokenize(new_text)

    result: list[DiffToken] = []
    old_index = 0

    for token in new_tokens:
        if token.isspace():
            result.append(DiffToken(token=token, tag=DiffTag.SAME))
            if old_index < len(old_tokens) and old_tokens[old_index].isspace():
                old_index += 1
            continue

        found = False
        for offset in range(LOOKAHEAD_WINDOW):
            candidate = old_index + offset
            if candidate >= len(old_tokens):
                break
            if old_tokens[candidate] == token:
                old_index = candidate + 1
                found = True
                break

        result.append(DiffToken(token=token, tag=DiffTag.SAME if found else DiffTag.ADDED))

    return result
