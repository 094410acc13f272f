"""Suggestion model for editor-triggered rewrites."""

from pydantic import BaseModel, Field
from typing import Literal


SuggestionKind = Literal["synonym", "expand", "grammar", "sensory", "show-dont-tell", "custom"]


class Suggestion(BaseModel):
    """Alternative phrasings offered for a piece of text."""

    kind: SuggestionKind = Field(
        ...,
        description="What kind of rewrite produced the options"
    )

    original_text: str = Field(
        ...,
        description="Text the options would replace"
    )

    options: list[str] = Field(
        default_factory=list,
        description="Candidate replacements (empty when the request failed)"
    )
