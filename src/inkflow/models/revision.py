"""Progress model for the batch revision sweep."""

from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional


class SweepState(str, Enum):
    """Enum for batch revision runner states."""

    IDLE = "idle"
    RUNNING = "running"


class RevisionProgress(BaseModel):
    """Observable state of a batch revision sweep."""

    state: SweepState = Field(
        default=SweepState.IDLE,
        description="Current runner state"
    )

    current_block_id: Optional[str] = Field(
        default=None,
        description="Block currently awaiting correction (cleared when the sweep ends)"
    )

    total: int = Field(
        default=0,
        ge=0,
        description="Number of blocks in the document when the sweep started"
    )

    processed: int = Field(
        default=0,
        ge=0,
        description="Blocks sent to the corrector"
    )

    changed: int = Field(
        default=0,
        ge=0,
        description="Blocks whose text was replaced by a correction"
    )

    skipped: int = Field(
        default=0,
        ge=0,
        description="Rules, headings and near-empty blocks passed over"
    )

    failed: int = Field(
        default=0,
        ge=0,
        description="Blocks whose correction raised"
    )

    timed_out: bool = Field(
        default=False,
        description="Whether the safety timeout ended the sweep"
    )

    cancelled: bool = Field(
        default=False,
        description="Whether cancel() ended the sweep early"
    )

    @property
    def progress_percentage(self) -> Optional[float]:
        """Share of blocks visited so far (0.0-100.0), None before the sweep knows its size."""
        if self.total == 0:
            return None
        visited = self.processed + self.skipped
        return min(100.0, visited * 100.0 / self.total)

    model_config = {"frozen": False}  # Allow mutation as the sweep progresses
