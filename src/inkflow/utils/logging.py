"""Structured logging setup for inkflow."""

import structlog
from pathlib import Path
from typing import Any
import os


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def log_file_path() -> Path:
    """Where configure_logging() appends its JSON lines."""
    return Path.home() / ".cache" / "inkflow" / "logs" / "inkflow.log"


def configure_logging() -> None:
    """
    Configure structlog for JSON logging to ~/.cache/inkflow/logs/inkflow.log.

    INKFLOW_LOG_LEVEL selects the level (DEBUG, INFO, WARNING or ERROR;
    anything else falls back to INFO). What each level adds:

    - DEBUG: history_checkpoint/history_undo depths, stale_block_ignored for
      ids the editor no longer has, revision_block_changed, llm_request_payload
    - INFO: block_inserted, text_pasted, blocks_reordered, snapshot_taken,
      review_reverted, revision_started/revision_finished, manuscript_saved
    - WARNING: revision_block_failed, revision_timed_out, correction_failed,
      llm_request_retry
    - ERROR: manuscript_corrupt, autosave_failed, llm_stream_interrupted,
      llm_http_error

    Example:
        # Enable debug logging
        export INKFLOW_LOG_LEVEL=DEBUG
        inkflow correct

        # View logs with jq for readability:
        tail -f ~/.cache/inkflow/logs/inkflow.log | jq .
    """
    log_file = log_file_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    log_level = os.environ.get("INKFLOW_LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        log_level = "INFO"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Structured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("block_removed", block_id="f47ac10b")
    """
    return structlog.get_logger(name)
