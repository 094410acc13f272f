"""Local manuscript storage with atomic writes and debounced autosave."""

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Optional

import structlog

from inkflow.models.block import Block, BlockKind, Document
from inkflow.models.config import StorageConfig
from inkflow.services.exceptions import StorageCorruptError

logger = structlog.get_logger()

DEFAULT_SCOPE = "default"

_UNSAFE_SCOPE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def atomic_write(path: Path, content: str) -> None:
    """
    Atomically write content to file with temp-file-rename pattern.

    1. Write to a temporary file in the same directory
    2. fsync to ensure data is on disk
    3. Rename over the target (atomic on POSIX)

    Args:
        path: Target file path
        content: Content to write

    Raises:
        OSError: On file I/O errors
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    # Same directory keeps the rename on one filesystem
    temp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"

    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        temp_path.replace(path)

        logger.debug("atomic_write_success", path=str(path), size=len(content))

    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error("atomic_write_failed", path=str(path), error=str(e))
        raise


_LEGACY_KINDS = {"p": BlockKind.PARAGRAPH, "h1": BlockKind.HEADING, "h2": BlockKind.HEADING, "hr": BlockKind.RULE}


def _block_from_legacy(item: dict) -> Block:
    """Convert a block saved by the old single-manuscript format."""
    if not isinstance(item, dict) or "id" not in item:
        raise ValueError(f"Not a legacy block: {item!r}")
    return Block(
        id=str(item["id"]),
        kind=_LEGACY_KINDS.get(item.get("type", "p"), BlockKind.PARAGRAPH),
        text=str(item.get("content", "")),
    )


def sanitize_scope(scope: str) -> str:
    """Turn a scope (book id) into a safe file stem."""
    cleaned = _UNSAFE_SCOPE_CHARS.sub("_", scope.strip()).strip("_")
    return cleaned or DEFAULT_SCOPE


class ManuscriptRepository:
    """
    Stores one JSON document per scope under <data_dir>/manuscripts/.

    Older single-manuscript installs kept everything in
    <data_dir>/manuscript.json; the default scope falls back to it when it
    has no file of its own.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir).expanduser()

    @property
    def legacy_path(self) -> Path:
        return self.data_dir / "manuscript.json"

    def path_for(self, scope: str) -> Path:
        return self.data_dir / "manuscripts" / f"{sanitize_scope(scope)}.json"

    def exists(self, scope: str) -> bool:
        return self.path_for(scope).exists()

    def load(self, scope: str = DEFAULT_SCOPE) -> Optional[Document]:
        """
        Load a saved manuscript.

        Returns:
            The document, or None if nothing was saved for this scope

        Raises:
            StorageCorruptError: If the file exists but cannot be parsed
        """
        path = self.path_for(scope)
        if not path.exists() and sanitize_scope(scope) == DEFAULT_SCOPE and self.legacy_path.exists():
            logger.info("manuscript_legacy_migration", path=str(self.legacy_path))
            path = self.legacy_path

        if not path.exists():
            logger.debug("manuscript_not_found", scope=scope, path=str(path))
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            # Legacy files hold a bare list of {id, type, content} blocks
            if isinstance(data, list):
                document = Document(blocks=[_block_from_legacy(item) for item in data])
            else:
                document = Document.model_validate(data)
        except (ValueError, UnicodeDecodeError) as e:
            logger.error("manuscript_corrupt", path=str(path), error=str(e))
            raise StorageCorruptError(str(path)) from e

        logger.info("manuscript_loaded", scope=scope, blocks=len(document.blocks))
        return document

    def save(self, scope: str, document: Document) -> Path:
        """Write a manuscript atomically. Returns the file written."""
        path = self.path_for(scope)
        atomic_write(path, document.model_dump_json(indent=2))
        logger.info("manuscript_saved", scope=scope, blocks=len(document.blocks))
        return path


class DebouncedSaver:
    """
    Fire-and-forget autosave that waits for a quiet period.

    Each schedule() restarts the timer; only the newest document is written.
    Save errors are logged and swallowed so editing is never interrupted.

    Example:
        >>> saver = DebouncedSaver.from_config(config.storage, "my-novel")
        >>> store.add_listener(lambda s: saver.schedule(s.document()))
    """

    def __init__(self, repository: ManuscriptRepository, scope: str = DEFAULT_SCOPE, delay: float = 2.0):
        self.repository = repository
        self.scope = scope
        self.delay = delay
        self._pending: Optional[Document] = None
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, storage: StorageConfig, scope: str = DEFAULT_SCOPE) -> "DebouncedSaver":
        """Build a saver over storage.data_dir that waits storage.autosave_delay seconds."""
        return cls(ManuscriptRepository(Path(storage.data_dir)), scope, delay=storage.autosave_delay)

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule(self, document: Document) -> None:
        """Queue document for saving after the debounce delay. Requires a running loop."""
        self._pending = document.copy_deep()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self._save_later())

    async def _save_later(self) -> None:
        await asyncio.sleep(self.delay)
        self._write()

    def _write(self) -> None:
        document, self._pending = self._pending, None
        if document is None:
            return
        try:
            self.repository.save(self.scope, document)
        except OSError as e:
            logger.error("autosave_failed", scope=self.scope, error=str(e))

    async def flush(self) -> None:
        """Write any pending document now and stop the timer."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._write()
