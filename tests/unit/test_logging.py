"""Unit tests for logging setup."""

import json

import pytest
import structlog

from inkflow.utils.logging import configure_logging, get_logger, log_file_path


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    """Test configure_logging()."""

    def test_writes_json_lines(self, tmp_path):
        configure_logging()

        get_logger("test").info("manuscript_saved", scope="novel")

        assert log_file_path() == tmp_path / ".cache" / "inkflow" / "logs" / "inkflow.log"
        record = json.loads(log_file_path().read_text().splitlines()[-1])
        assert record["event"] == "manuscript_saved"
        assert record["scope"] == "novel"
        assert record["level"] == "info"

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("INKFLOW_LOG_LEVEL", "warning")
        configure_logging()

        logger = get_logger("test")
        logger.info("block_inserted")
        logger.warning("revision_timed_out")

        events = [json.loads(line)["event"] for line in log_file_path().read_text().splitlines()]
        assert events == ["revision_timed_out"]

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("INKFLOW_LOG_LEVEL", "LOUD")
        configure_logging()

        logger = get_logger("test")
        logger.debug("history_checkpoint")
        logger.info("block_inserted")

        events = [json.loads(line)["event"] for line in log_file_path().read_text().splitlines()]
        assert events == ["block_inserted"]
