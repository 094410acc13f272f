"""Integration tests for the inkflow CLI."""

import os
import stat
from unittest.mock import AsyncMock, patch

import click
import pytest
from click.testing import CliRunner

from inkflow.cli import cli, load_config
from inkflow.services.writing_assistant import WritingAssistant

SAMPLE_TEXT = "# One\n\nHello there.\n\n---\n\nEnd."


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep logs and default paths inside the test's tmp directory."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("INKFLOW_CONFIG", raising=False)
    return tmp_path


def write_config(tmp_path, with_llm=True):
    config_file = tmp_path / "config.yaml"
    llm_section = """
llm:
  endpoint: http://localhost:11434/v1
  api_key: ollama
  model: llama3
""" if with_llm else ""
    config_file.write_text(f"""{llm_section}
storage:
  data_dir: {tmp_path / "data"}
revision:
  initial_delay: 0
  pacing_delay: 0
""")
    os.chmod(config_file, stat.S_IRUSR | stat.S_IWUSR)
    return config_file


@pytest.fixture
def config_file(tmp_path):
    return write_config(tmp_path)


def invoke(config_file, *args, input=None):
    return CliRunner().invoke(cli, ["--config", str(config_file), *args], input=input)


class TestLoadConfig:
    """Test load_config()."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")

        assert config.llm is None

    def test_missing_file_is_an_error_when_llm_needed(self, tmp_path):
        with pytest.raises(click.ClickException, match="not found"):
            load_config(tmp_path / "absent.yaml", require_llm=True)

    def test_env_var_selects_config(self, tmp_path, monkeypatch):
        config_file = write_config(tmp_path)
        monkeypatch.setenv("INKFLOW_CONFIG", str(config_file))

        assert load_config().llm.model == "llama3"


class TestImportAndShow:
    """Test the import and show commands."""

    def test_import_from_stdin(self, config_file):
        result = invoke(config_file, "import", "-", input=SAMPLE_TEXT)

        assert result.exit_code == 0, result.output
        assert "Imported 4 block(s) into 'default' (4 total)." in result.output

    def test_import_appends_to_existing_manuscript(self, config_file):
        invoke(config_file, "import", "-", input=SAMPLE_TEXT)

        result = invoke(config_file, "import", "-", input="Epilogue.")

        assert "Imported 1 block(s) into 'default' (5 total)." in result.output

    def test_import_empty_input(self, config_file):
        result = invoke(config_file, "import", "-", input="\n\n   \n")

        assert result.exit_code == 0
        assert "Nothing to import" in result.output

    def test_import_from_file(self, config_file, tmp_path):
        source = tmp_path / "chapter.txt"
        source.write_text("First.\r\n\r\nSecond.")

        result = invoke(config_file, "import", str(source))

        assert "Imported 2 block(s)" in result.output

    def test_show(self, config_file):
        invoke(config_file, "import", "-", input=SAMPLE_TEXT)

        result = invoke(config_file, "show")

        assert result.exit_code == 0, result.output
        assert "Hello there." in result.output
        assert "heading" in result.output
        assert "4 words" in result.output

    def test_scopes_are_separate(self, config_file):
        invoke(config_file, "--scope", "novel", "import", "-", input=SAMPLE_TEXT)

        result = invoke(config_file, "show")

        assert "Hello there." not in result.output

    def test_corrupt_manuscript_reported(self, config_file, tmp_path):
        path = tmp_path / "data" / "manuscripts" / "default.json"
        path.parent.mkdir(parents=True)
        path.write_text("not json")

        result = invoke(config_file, "show")

        assert result.exit_code == 1
        assert "corrupt" in result.output


class TestSearch:
    """Test the search command."""

    def test_search_manuscript(self, config_file):
        invoke(config_file, "import", "-", input=SAMPLE_TEXT)

        result = invoke(config_file, "search", "hlo")

        assert result.exit_code == 0, result.output
        assert "[manuscript] Hello there." in result.output

    def test_no_results(self, config_file):
        result = invoke(config_file, "search", "zzz")

        assert "No results found." in result.output

    def test_search_collections(self, config_file, tmp_path):
        collections = tmp_path / "notes.yaml"
        collections.write_text("""
characters:
  - id: c1
    name: Lady Macbeth
    core_desire: The crown
braindump:
  - id: n1
    content: Something about a dagger
""")

        result = invoke(config_file, "search", "lady m", "--collections", str(collections))

        assert "[characters] Lady Macbeth" in result.output
        assert "The crown" in result.output
        assert "dagger" not in result.output

    def test_invalid_collections_file(self, config_file, tmp_path):
        collections = tmp_path / "notes.yaml"
        collections.write_text("characters:\n  - name: Missing id\n")

        result = invoke(config_file, "search", "x", "--collections", str(collections))

        assert result.exit_code == 1
        assert "Invalid collections file" in result.output


class TestCorrect:
    """Test the correct command."""

    def test_requires_llm_section(self, tmp_path):
        config_file = write_config(tmp_path, with_llm=False)

        result = invoke(config_file, "correct")

        assert result.exit_code == 1
        assert "No llm section" in result.output

    def test_corrects_and_saves(self, config_file):
        invoke(config_file, "import", "-", input=SAMPLE_TEXT)

        with patch.object(WritingAssistant, "correct", new=AsyncMock(side_effect=lambda text: text.upper())):
            result = invoke(config_file, "correct")

        assert result.exit_code == 0, result.output
        assert "2 of 2 paragraph(s) corrected." in result.output
        assert "HELLO THERE." in invoke(config_file, "show").output

    def test_dry_run_does_not_save(self, config_file):
        invoke(config_file, "import", "-", input=SAMPLE_TEXT)

        with patch.object(WritingAssistant, "correct", new=AsyncMock(side_effect=lambda text: text.upper())):
            result = invoke(config_file, "correct", "--dry-run")

        assert "Dry run: nothing saved." in result.output
        assert "Hello there." in invoke(config_file, "show").output


class TestExportAndClear:
    """Test the export and clear commands."""

    def test_export_to_stdout(self, config_file):
        invoke(config_file, "import", "-", input=SAMPLE_TEXT)

        result = invoke(config_file, "export")

        assert result.output == "# One\n\nHello there.\n\n---\n\nEnd.\n"

    def test_export_with_title_writes_file(self, config_file, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        invoke(config_file, "import", "-", input=SAMPLE_TEXT)

        result = invoke(config_file, "export", "--title", "My Book")

        assert result.exit_code == 0, result.output
        assert (tmp_path / "My_Book.md").read_text().startswith("# My Book\n\n## One\n\n")

    def test_clear(self, config_file):
        invoke(config_file, "import", "-", input=SAMPLE_TEXT)

        result = invoke(config_file, "clear", "--yes")

        assert "Cleared 'default'." in result.output
        assert "Hello there." not in invoke(config_file, "show").output
