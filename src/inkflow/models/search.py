"""SearchableItem model for the fuzzy finder."""

from pydantic import BaseModel, Field
from typing import Literal, Optional


SourceKind = Literal["manuscript", "braindump", "characters", "research"]

# Order in which sources appear in cross-collection results
SOURCE_ORDER: tuple[SourceKind, ...] = ("manuscript", "braindump", "characters", "research")


class SearchableItem(BaseModel):
    """Normalized projection of a block or external collection record."""

    id: str = Field(
        ...,
        description="Stable id of the underlying block or record"
    )

    source_kind: SourceKind = Field(
        ...,
        description="Which collection this item was projected from"
    )

    title: Optional[str] = Field(
        default=None,
        description="Optional title; matched instead of body when present"
    )

    body: str = Field(
        default="",
        description="Body text"
    )

    model_config = {"frozen": True}
