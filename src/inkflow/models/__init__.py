"""Pydantic data models for inkflow."""

from inkflow.models.block import Block, BlockKind, Document
from inkflow.models.search import SearchableItem

__all__ = ["Block", "BlockKind", "Document", "SearchableItem"]
