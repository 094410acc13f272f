"""Bounded, linear undo/redo over full-document snapshots."""

from collections import deque
from typing import Optional

import structlog

from inkflow.models.block import Document

logger = structlog.get_logger()

DEFAULT_HISTORY_LIMIT = 20


class HistoryManager:
    """
    Undo/redo stacks of deep-copied documents.

    A checkpoint stores the document as it was *before* a mutation. Undo
    swaps the current document for the newest checkpoint; redo is the
    inverse. Any new checkpoint discards the redo stack, so history is
    strictly linear.

    The manager never holds a reference to a live document: everything
    pushed or returned is a deep copy.

    Example:
        >>> history = HistoryManager()
        >>> history.checkpoint(store_document)
        >>> previous = history.undo(current_document)
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        """
        Initialize empty history.

        Args:
            limit: Maximum number of undo entries retained (oldest dropped first)
        """
        self.limit = limit
        self._undo: deque[Document] = deque(maxlen=limit)
        self._redo: list[Document] = []

    @property
    def can_undo(self) -> bool:
        return len(self._undo) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._redo) > 0

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def checkpoint(self, document: Document) -> None:
        """Record the pre-mutation document and clear the redo stack."""
        self._undo.append(document.copy_deep())
        self._redo.clear()
        logger.debug("history_checkpoint", undo_depth=len(self._undo))

    def undo(self, current: Document) -> Optional[Document]:
        """
        Step back one checkpoint.

        Args:
            current: The live document, saved for redo

        Returns:
            The document to restore, or None if there is nothing to undo
        """
        if not self._undo:
            return None
        self._redo.append(current.copy_deep())
        restored = self._undo.pop()
        logger.debug("history_undo", undo_depth=len(self._undo), redo_depth=len(self._redo))
        return restored

    def redo(self, current: Document) -> Optional[Document]:
        """
        Step forward one undone state.

        Args:
            current: The live document, saved for undo

        Returns:
            The document to restore, or None if there is nothing to redo
        """
        if not self._redo:
            return None
        self._undo.append(current.copy_deep())
        restored = self._redo.pop()
        logger.debug("history_redo", undo_depth=len(self._undo), redo_depth=len(self._redo))
        return restored

    def clear(self) -> None:
        """Drop all undo and redo entries."""
        self._undo.clear()
        self._redo.clear()
