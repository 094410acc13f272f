"""Block store: the single owner of the live manuscript document.

Every structural change goes through this class. Operations that reference
an id which is no longer in the document do nothing: the editor can race
ahead of the store during rapid input, and a stale reference must never
crash an editing session.
"""

from typing import Callable, Iterable, Optional

import structlog

from inkflow.manuscript.history import DEFAULT_HISTORY_LIMIT, HistoryManager
from inkflow.manuscript.segmenter import is_rule, segment
from inkflow.models.block import Block, BlockKind, Document

logger = structlog.get_logger()

Listener = Callable[["BlockStore"], None]


class BlockStore:
    """
    Canonical ordered sequence of blocks plus its undo history.

    Readers only ever get deep copies (`document()`, `blocks`, `get()`), so
    history entries and comparison snapshots can never alias live blocks.

    Example:
        >>> store = BlockStore()
        >>> first = store.blocks[0].id
        >>> second = store.insert_after(first, "Second paragraph")
        >>> store.undo()
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        history: Optional[HistoryManager] = None,
    ):
        """
        Initialize the store.

        Args:
            document: Initial document (copied); defaults to one empty paragraph
            history: History manager to use; defaults to a 20-entry one
        """
        self._document = self._normalized(document)
        self.history = history if history is not None else HistoryManager(DEFAULT_HISTORY_LIMIT)
        self._listeners: list[Listener] = []

    @staticmethod
    def _normalized(document: Optional[Document]) -> Document:
        if document is None or not document.blocks:
            return Document.new()
        return document.copy_deep()

    # Read access

    def document(self) -> Document:
        """Return a deep copy of the live document."""
        return self._document.copy_deep()

    @property
    def blocks(self) -> tuple[Block, ...]:
        """Copies of the live blocks in reading order."""
        return tuple(block.model_copy() for block in self._document.blocks)

    def ids(self) -> list[str]:
        return self._document.ids()

    def get(self, block_id: str) -> Optional[Block]:
        """Return a copy of the block, or None if it no longer exists."""
        block = self._document.find(block_id)
        return block.model_copy() if block is not None else None

    def contains(self, block_id: str) -> bool:
        return self._document.index_of(block_id) is not None

    def __len__(self) -> int:
        return len(self._document.blocks)

    # Listeners

    def add_listener(self, listener: Listener) -> None:
        """Call listener(store) after every change to the document."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # History

    def checkpoint(self) -> None:
        """Record the current document so the next change can be undone."""
        self.history.checkpoint(self._document)

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def undo(self) -> bool:
        """Restore the previous checkpoint. Returns False if there was none."""
        previous = self.history.undo(self._document)
        if previous is None:
            return False
        self._document = self._normalized(previous)
        logger.info("document_undo", blocks=len(self._document.blocks))
        self._changed()
        return True

    def redo(self) -> bool:
        """Re-apply the last undone state. Returns False if there was none."""
        following = self.history.redo(self._document)
        if following is None:
            return False
        self._document = self._normalized(following)
        logger.info("document_redo", blocks=len(self._document.blocks))
        self._changed()
        return True

    def replace_document(self, document: Document) -> None:
        """
        Swap in a whole document (copied) in a single assignment.

        Does not checkpoint; callers that want the swap to be undoable call
        checkpoint() first.
        """
        self._document = self._normalized(document)
        self._changed()

    # Mutations

    def insert_after(self, anchor_id: str, text: str = "") -> str:
        """
        Insert a new paragraph right after anchor_id.

        If the anchor is unknown the paragraph is appended at the end.

        Args:
            anchor_id: Block to insert after
            text: Text of the new paragraph

        Returns:
            Id of the new block (for focus handoff)
        """
        self.checkpoint()
        block = Block(kind=BlockKind.PARAGRAPH, text=text)
        index = self._document.index_of(anchor_id)
        if index is None:
            self._document.blocks.append(block)
        else:
            self._document.blocks.insert(index + 1, block)
        logger.info("block_inserted", block_id=block.id, anchor_id=anchor_id, anchor_found=index is not None)
        self._changed()
        return block.id

    def update_content(self, block_id: str, text: str) -> None:
        """
        Replace a block's text.

        Typing a rule pattern such as "---" turns the block into a rule in
        place. No checkpoint is recorded: keystroke-level edits are left to
        callers to coalesce.
        """
        block = self._document.find(block_id)
        if block is None:
            logger.debug("stale_block_ignored", operation="update_content", block_id=block_id)
            return

        if is_rule(text.strip()):
            block.kind = BlockKind.RULE
            block.text = ""
        elif block.kind == BlockKind.RULE:
            # Rules carry no text; editing one turns it back into prose
            block.kind = BlockKind.PARAGRAPH
            block.text = text
        else:
            block.text = text
        self._changed()

    def remove(self, block_id: str) -> None:
        """Delete a block. Removing the last block leaves one empty paragraph."""
        index = self._document.index_of(block_id)
        if index is None:
            logger.debug("stale_block_ignored", operation="remove", block_id=block_id)
            return

        self.checkpoint()
        if len(self._document.blocks) <= 1:
            self._document = Document.new()
        else:
            del self._document.blocks[index]
        logger.info("block_removed", block_id=block_id)
        self._changed()

    def split_at(self, block_id: str, offset: int) -> Optional[str]:
        """
        Split a block in two at a character offset.

        The block keeps text[:offset]; a new paragraph after it receives
        text[offset:]. The offset is clamped to the text length.

        Returns:
            Id of the new block, or None if block_id is unknown
        """
        index = self._document.index_of(block_id)
        if index is None:
            logger.debug("stale_block_ignored", operation="split_at", block_id=block_id)
            return None

        self.checkpoint()
        block = self._document.blocks[index]
        offset = max(0, min(offset, len(block.text)))
        tail = Block(kind=BlockKind.PARAGRAPH, text=block.text[offset:])
        block.text = block.text[:offset]
        self._document.blocks.insert(index + 1, tail)
        logger.info("block_split", block_id=block_id, new_block_id=tail.id, offset=offset)
        self._changed()
        return tail.id

    def paste_into(self, block_id: str, raw_text: str) -> list[str]:
        """
        Paste free-form text at a block.

        The text is segmented into blocks. An empty target block is replaced
        by them; otherwise they are inserted after it.

        Returns:
            Ids of the pasted blocks (empty if nothing was pasted)
        """
        index = self._document.index_of(block_id)
        if index is None:
            logger.debug("stale_block_ignored", operation="paste_into", block_id=block_id)
            return []

        new_blocks = segment(raw_text)
        if not new_blocks:
            return []

        self.checkpoint()
        target = self._document.blocks[index]
        if target.text.strip() == "":
            self._document.blocks[index:index + 1] = new_blocks
            mode = "replace"
        else:
            self._document.blocks[index + 1:index + 1] = new_blocks
            mode = "insert_after"
        logger.info("text_pasted", block_id=block_id, mode=mode, new_blocks=len(new_blocks))
        self._changed()
        return [b.id for b in new_blocks]

    def reorder(self, new_order: Iterable[str]) -> bool:
        """
        Rearrange blocks to match new_order.

        new_order must be a permutation of the current ids; anything else is
        ignored.

        Returns:
            True if the order was applied
        """
        new_order = list(new_order)
        current = self._document.ids()
        if len(new_order) != len(current) or set(new_order) != set(current):
            logger.debug("reorder_rejected", expected=len(current), received=len(new_order))
            return False

        self.checkpoint()
        by_id = {block.id: block for block in self._document.blocks}
        self._document.blocks = [by_id[block_id] for block_id in new_order]
        logger.info("blocks_reordered", blocks=len(new_order))
        self._changed()
        return True

    def import_text(self, raw_text: str) -> list[str]:
        """
        Bulk-import text.

        Replaces the document when it holds a single empty block,
        otherwise appends the imported blocks at the end.

        Returns:
            Ids of the imported blocks
        """
        new_blocks = segment(raw_text)
        if not new_blocks:
            return []

        self.checkpoint()
        if self._document.is_blank():
            self._document = Document(blocks=new_blocks)
        else:
            self._document.blocks.extend(new_blocks)
        logger.info("text_imported", new_blocks=len(new_blocks))
        self._changed()
        return [b.id for b in new_blocks]

    def clear(self) -> str:
        """Reset to a single empty paragraph. Returns its id."""
        self.checkpoint()
        self._document = Document.new()
        logger.info("document_cleared")
        self._changed()
        return self._document.blocks[0].id
