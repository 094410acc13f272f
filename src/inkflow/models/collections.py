"""Records from the external collections searched alongside the manuscript."""

from pydantic import BaseModel, Field


class BraindumpItem(BaseModel):
    """Free-form note captured outside the manuscript."""

    id: str = Field(..., description="Stable note id")
    content: str = Field(default="", description="Note text")


class CharacterProfile(BaseModel):
    """Character sheet."""

    id: str = Field(..., description="Stable character id")
    name: str = Field(..., description="Character name")
    role: str = Field(default="", description="Narrative role (e.g. 'Subject', 'Opponent')")
    core_desire: str = Field(default="", description="What the character wants most")
    description: str = Field(default="", description="Free-form description")


class ResearchInteraction(BaseModel):
    """One question/answer pair inside a research thread."""

    id: str = Field(..., description="Stable interaction id")
    query: str = Field(..., description="Question that was researched")
    content: str = Field(default="", description="Research answer text")


class ResearchThread(BaseModel):
    """Research thread grouping several interactions."""

    id: str = Field(..., description="Stable thread id")
    title: str = Field(default="", description="Thread title")
    interactions: list[ResearchInteraction] = Field(
        default_factory=list,
        description="Interactions in chronological order"
    )
