"""Comparison snapshot and dirty tracking for reviewing edits."""

from typing import Optional

import structlog

from inkflow.manuscript.store import BlockStore
from inkflow.models.block import Document
from inkflow.models.diff import DiffToken, word_diff

logger = structlog.get_logger()


class ReviewSession:
    """
    Holds a frozen comparison snapshot of the manuscript.

    The snapshot lives outside the undo/redo chain. It is taken when a review
    starts (or a batch revision begins), replaced on approve, and copied back
    into the store on revert. A block is dirty when its live text differs
    from the snapshot, or when the snapshot has no block with its id.
    """

    def __init__(self, store: BlockStore):
        self.store = store
        self._snapshot: Optional[Document] = None

    word_diff = staticmethod(word_diff)

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot is not None

    def snapshot(self) -> Optional[Document]:
        """Return a copy of the comparison snapshot, if any."""
        return self._snapshot.copy_deep() if self._snapshot is not None else None

    def take_snapshot(self) -> None:
        """Freeze the current document as the comparison reference."""
        self._snapshot = self.store.document()
        logger.info("snapshot_taken", blocks=len(self._snapshot.blocks))

    def discard_snapshot(self) -> None:
        """Leave review mode without touching the document."""
        self._snapshot = None

    def is_dirty(self, block_id: str) -> bool:
        """
        Whether a live block differs from the snapshot.

        With no snapshot taken there is nothing to compare against and no
        block is dirty. Ids not present in the live document are not dirty.
        """
        if self._snapshot is None:
            return False
        live = self.store.get(block_id)
        if live is None:
            return False
        reference = self._snapshot.find(block_id)
        return reference is None or reference.text != live.text

    def dirty_ids(self) -> list[str]:
        """Ids of all dirty live blocks, in document order."""
        return [block_id for block_id in self.store.ids() if self.is_dirty(block_id)]

    def diff_block(self, block_id: str) -> Optional[list[DiffToken]]:
        """
        Word diff of a block's snapshot text against its live text.

        A block missing from the snapshot diffs against empty text, so all
        of it shows as added.

        Returns:
            Tagged tokens, or None if block_id is not in the live document
        """
        live = self.store.get(block_id)
        if live is None:
            return None
        if self._snapshot is None:
            old_text = live.text
        else:
            reference = self._snapshot.find(block_id)
            old_text = reference.text if reference is not None else ""
        return word_diff(old_text, live.text)

    def approve(self) -> None:
        """Accept the live document as the new comparison reference."""
        self.take_snapshot()
        logger.info("review_approved")

    def revert(self) -> bool:
        """
        Restore the live document from the snapshot.

        The revert itself is checkpointed so it can be undone.

        Returns:
            False if there was no snapshot to revert to
        """
        if self._snapshot is None:
            return False
        self.store.checkpoint()
        self.store.replace_document(self._snapshot)
        logger.info("review_reverted", blocks=len(self._snapshot.blocks))
        return True
