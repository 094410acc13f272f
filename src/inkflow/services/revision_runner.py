"""Batch revision sweep: correct every eligible block, one at a time."""

import asyncio
from typing import Callable, Optional

import structlog

from inkflow.manuscript.review import ReviewSession
from inkflow.manuscript.store import BlockStore
from inkflow.models.block import Block, BlockKind
from inkflow.models.config import RevisionConfig
from inkflow.models.revision import RevisionProgress, SweepState
from inkflow.services.writing_assistant import Corrector

logger = structlog.get_logger()

ProgressCallback = Callable[[RevisionProgress], None]


class BatchRevisionRunner:
    """
    Sequential, timeout-bounded correction sweep over the manuscript.

    A sweep snapshots the document into the review session (so its effect
    can be reviewed, approved or reverted), records one undo checkpoint,
    then walks the blocks in order. Only one correction request is in
    flight at a time so partial results stay visible block by block.

    Only one sweep may run at a time; a second run() while running returns
    immediately.

    Example:
        >>> runner = BatchRevisionRunner(store, review, WritingAssistant(client))
        >>> progress = await runner.run()
        >>> print(progress.changed)
    """

    def __init__(
        self,
        store: BlockStore,
        review: ReviewSession,
        corrector: Corrector,
        config: Optional[RevisionConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize runner.

        Args:
            store: Block store to revise
            review: Review session that receives the pre-sweep snapshot
            corrector: Rewriting collaborator providing correct(text)
            config: Timing and eligibility settings (defaults if None)
            on_progress: Called with a copy of the progress after each step
        """
        self.store = store
        self.review = review
        self.corrector = corrector
        self.config = config or RevisionConfig()
        self.on_progress = on_progress
        self.progress = RevisionProgress()
        self._cancel_requested = False

    @property
    def state(self) -> SweepState:
        return self.progress.state

    @property
    def is_running(self) -> bool:
        return self.progress.state == SweepState.RUNNING

    @property
    def current_block_id(self) -> Optional[str]:
        return self.progress.current_block_id

    def is_eligible(self, block: Block) -> bool:
        """Rules, headings and near-empty blocks are left alone."""
        if block.kind in (BlockKind.RULE, BlockKind.HEADING):
            return False
        return len(block.text.strip()) >= self.config.min_length

    def cancel(self) -> None:
        """Ask a running sweep to stop before its next correction request."""
        if self.is_running:
            self._cancel_requested = True
            logger.info("revision_cancel_requested")

    def _notify(self) -> None:
        if self.on_progress is not None:
            self.on_progress(self.progress.model_copy())

    async def run(self) -> RevisionProgress:
        """
        Run one sweep.

        Returns:
            Final progress (state is IDLE again). If a sweep was already
            running, its live progress is returned without starting another.
        """
        if self.is_running:
            logger.warning("revision_already_running")
            return self.progress.model_copy()

        self._cancel_requested = False
        self.progress = RevisionProgress(state=SweepState.RUNNING, total=len(self.store))
        self.review.take_snapshot()
        self.store.checkpoint()
        logger.info("revision_started", blocks=self.progress.total)
        self._notify()

        try:
            await asyncio.wait_for(self._sweep(), timeout=self.config.safety_timeout)
        except asyncio.TimeoutError:
            self.progress.timed_out = True
            logger.warning(
                "revision_timed_out",
                timeout=self.config.safety_timeout,
                processed=self.progress.processed,
            )
        finally:
            self.progress.current_block_id = None
            self.progress.state = SweepState.IDLE
            self._cancel_requested = False

        logger.info(
            "revision_finished",
            processed=self.progress.processed,
            changed=self.progress.changed,
            skipped=self.progress.skipped,
            failed=self.progress.failed,
            timed_out=self.progress.timed_out,
            cancelled=self.progress.cancelled,
        )
        self._notify()
        return self.progress.model_copy()

    async def _sweep(self) -> None:
        if self.config.initial_delay:
            await asyncio.sleep(self.config.initial_delay)

        # Iterate over copies: the live document may change underneath us
        for block in self.store.blocks:
            if not self.is_eligible(block):
                self.progress.skipped += 1
                continue

            if self._cancel_requested:
                self.progress.cancelled = True
                logger.info("revision_cancelled", processed=self.progress.processed)
                return

            self.progress.current_block_id = block.id
            self._notify()

            try:
                corrected = await self.corrector.correct(block.text)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.progress.failed += 1
                logger.warning(
                    "revision_block_failed",
                    block_id=block.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue
            finally:
                self.progress.processed += 1

            self._apply(block, corrected)
            self._notify()

            if self.config.pacing_delay:
                await asyncio.sleep(self.config.pacing_delay)

    def _apply(self, block: Block, corrected: str) -> None:
        if not corrected or corrected == block.text:
            return

        # The block may have been removed or edited while we awaited
        live = self.store.get(block.id)
        if live is None:
            logger.info("revision_block_vanished", block_id=block.id)
            return
        if live.text != block.text:
            logger.info("revision_block_edited_meanwhile", block_id=block.id)
            return

        self.store.update_content(block.id, corrected)
        self.progress.changed += 1
        logger.debug("revision_block_changed", block_id=block.id)
