"""Unit tests for Markdown export."""

from inkflow.models.block import Block, BlockKind, Document
from inkflow.services.export import count_words, export_filename, render_markdown


class TestRenderMarkdown:
    """Test render_markdown()."""

    def test_renders_blocks(self, sample_document):
        assert render_markdown(sample_document) == (
            "# Chapter One\n\n"
            "The rain had not stopped for three days.\n\n"
            "Mara counted the drops on the window.\n\n"
            "---\n\n"
            "Morning came grey and silent.\n"
        )

    def test_title_demotes_headings(self, sample_document):
        markdown = render_markdown(sample_document, title="Rainfall")

        assert markdown.startswith("# Rainfall\n\n## Chapter One\n\n")

    def test_empty_blocks_skipped(self):
        document = Document(blocks=[Block(text=""), Block(text="Only"), Block(kind=BlockKind.HEADING, text=" ")])

        assert render_markdown(document) == "Only\n"

    def test_blank_document(self):
        assert render_markdown(Document.new()) == ""


class TestCountWords:
    def test_counts_words(self, sample_document):
        assert count_words(sample_document) == 2 + 8 + 7 + 5


class TestExportFilename:
    """Test export_filename()."""

    def test_title(self):
        assert export_filename("The Long Night: Part 1") == "The_Long_Night_Part_1.md"

    def test_missing_title(self):
        assert export_filename(None) == "Untitled.md"
        assert export_filename("!!!") == "Untitled.md"

    def test_extension(self):
        assert export_filename("Draft", extension="txt") == "Draft.txt"
