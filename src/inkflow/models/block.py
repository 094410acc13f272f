"""Block and Document models for the manuscript."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from inkflow.utils.ids import generate_block_id


class BlockKind(str, Enum):
    """Enum for block kinds."""

    PARAGRAPH = "paragraph"
    HEADING = "heading"
    RULE = "rule"


class Block(BaseModel):
    """A single unit of the manuscript (paragraph, heading, or scene-break rule)."""

    id: str = Field(
        default_factory=generate_block_id,
        description="Opaque unique identifier, assigned once at creation"
    )

    kind: BlockKind = Field(
        default=BlockKind.PARAGRAPH,
        description="Block kind tag"
    )

    text: str = Field(
        default="",
        description="Plain text content (always empty for rules)"
    )

    @model_validator(mode="after")
    def _rule_has_no_text(self) -> "Block":
        """Rules never carry text."""
        if self.kind == BlockKind.RULE and self.text:
            self.text = ""
        return self

    model_config = {"frozen": False}  # Content edits mutate in place


class Document(BaseModel):
    """Ordered sequence of blocks in reading order."""

    blocks: list[Block] = Field(
        default_factory=list,
        description="Blocks in reading order (no duplicate ids)"
    )

    @field_validator("blocks")
    @classmethod
    def validate_unique_ids(cls, v: list[Block]) -> list[Block]:
        """Validate no two blocks share an id."""
        seen: set[str] = set()
        for block in v:
            if block.id in seen:
                raise ValueError(f"Duplicate block id: {block.id}")
            seen.add(block.id)
        return v

    @classmethod
    def new(cls) -> "Document":
        """Create the starting document: a single empty paragraph."""
        return cls(blocks=[Block()])

    def index_of(self, block_id: str) -> Optional[int]:
        """Return the position of a block, or None if absent."""
        for i, block in enumerate(self.blocks):
            if block.id == block_id:
                return i
        return None

    def find(self, block_id: str) -> Optional[Block]:
        """Return the block with this id, or None if absent."""
        index = self.index_of(block_id)
        return self.blocks[index] if index is not None else None

    def ids(self) -> list[str]:
        """Return block ids in document order."""
        return [block.id for block in self.blocks]

    def is_blank(self) -> bool:
        """True when the document holds a single block with no text (a lone rule counts)."""
        return len(self.blocks) == 1 and self.blocks[0].text.strip() == ""

    def copy_deep(self) -> "Document":
        """Return a deep copy that shares no block objects with this document."""
        return self.model_copy(deep=True)

    model_config = {"frozen": False}
