"""CLI entry point for inkflow."""

import asyncio
import os
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import BaseModel, Field, ValidationError
from rich.console import Console
from rich.table import Table
from rich.text import Text

from inkflow import __version__
from inkflow.manuscript.history import HistoryManager
from inkflow.manuscript.review import ReviewSession
from inkflow.manuscript.store import BlockStore
from inkflow.models.block import BlockKind
from inkflow.models.collections import BraindumpItem, CharacterProfile, ResearchThread
from inkflow.models.config import Config
from inkflow.models.diff import DiffTag
from inkflow.models.revision import RevisionProgress
from inkflow.services.exceptions import StorageCorruptError
from inkflow.services.export import count_words, export_filename, render_markdown
from inkflow.services.fuzzy_finder import search_all
from inkflow.services.persistence import DEFAULT_SCOPE, ManuscriptRepository
from inkflow.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()


class Collections(BaseModel):
    """External collections file accepted by `inkflow search --collections`."""

    braindump: list[BraindumpItem] = Field(default_factory=list)
    characters: list[CharacterProfile] = Field(default_factory=list)
    research: list[ResearchThread] = Field(default_factory=list)


def default_config_path() -> Path:
    """~/.config/inkflow/config.yaml, overridable with INKFLOW_CONFIG."""
    override = os.environ.get("INKFLOW_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "inkflow" / "config.yaml"


def load_config(path: Optional[Path] = None, require_llm: bool = False) -> Config:
    """
    Load configuration.

    A missing config file is fine for offline commands (defaults are used),
    but commands that talk to the LLM need one with an llm section.

    Raises:
        click.ClickException: If config is missing when required, has invalid
            permissions, or fails validation
    """
    config_path = path or default_config_path()

    try:
        if not config_path.exists() and not require_llm:
            logger.info("config_defaults_used", path=str(config_path))
            return Config()
        config = Config.load(config_path)
        logger.info("config_loaded", path=str(config_path))
    except FileNotFoundError as e:
        logger.error("config_not_found", path=str(config_path))
        raise click.ClickException(str(e))
    except PermissionError as e:
        logger.error("config_permission_error", path=str(config_path))
        raise click.ClickException(str(e))
    except Exception as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")

    if require_llm and config.llm is None:
        raise click.ClickException(f"No llm section in {config_path}; corrections need an LLM endpoint")
    return config


def open_store(config: Config, scope: str) -> tuple[ManuscriptRepository, BlockStore]:
    """Load the saved manuscript for scope (or start a blank one)."""
    repository = ManuscriptRepository(Path(config.storage.data_dir))
    try:
        document = repository.load(scope)
    except StorageCorruptError as e:
        raise click.ClickException(str(e))
    store = BlockStore(document, history=HistoryManager(config.history.limit))
    return repository, store


def _save(repository: ManuscriptRepository, scope: str, store: BlockStore) -> None:
    try:
        repository.save(scope, store.document())
    except OSError as e:
        logger.error("manuscript_save_failed", scope=scope, error=str(e))
        raise click.ClickException(f"Could not save manuscript: {e}")


def _preview(text: str, width: int = 70) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[:width - 1] + "…"


@click.group()
@click.version_option(version=__version__, prog_name="inkflow")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.config/inkflow/config.yaml)",
)
@click.option("--scope", default=DEFAULT_SCOPE, show_default=True, help="Which manuscript (book) to work on")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], scope: str):
    """inkflow: a block-structured manuscript engine with LLM-assisted revision."""
    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["scope"] = scope


@cli.command("import")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_context
def import_(ctx: click.Context, source):
    """
    Import text into the manuscript.

    Blank lines separate paragraphs; "# " starts a heading and "---" a scene
    break. Use "-" to read from stdin.

    Examples:
        inkflow import chapter1.txt
        pbpaste | inkflow --scope novel import -
    """
    config = load_config(ctx.obj["config_path"])
    scope = ctx.obj["scope"]
    repository, store = open_store(config, scope)

    new_ids = store.import_text(source.read())
    if not new_ids:
        click.echo("Nothing to import (input was empty).")
        return

    _save(repository, scope, store)
    logger.info("import_command_completed", scope=scope, new_blocks=len(new_ids))
    click.echo(f"Imported {len(new_ids)} block(s) into '{scope}' ({len(store)} total).")


@cli.command()
@click.pass_context
def show(ctx: click.Context):
    """List the manuscript's blocks."""
    config = load_config(ctx.obj["config_path"])
    _, store = open_store(config, ctx.obj["scope"])

    table = Table(title=f"Manuscript: {ctx.obj['scope']}")
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Id", style="dim")
    table.add_column("Text")
    for index, block in enumerate(store.blocks, 1):
        text = "* * *" if block.kind == BlockKind.RULE else _preview(block.text)
        table.add_row(str(index), block.kind.value, block.id[:8], text)

    console.print(table)
    console.print(f"{count_words(store.document())} words")


@cli.command()
@click.argument("query")
@click.option(
    "--collections",
    "collections_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML/JSON file with braindump, characters and research collections",
)
@click.pass_context
def search(ctx: click.Context, query: str, collections_file: Optional[Path]):
    """
    Fuzzy-search the manuscript and optional external collections.

    Characters of QUERY must appear in order ("cat" finds "The Cathedral").

    Examples:
        inkflow search cathedral
        inkflow search "lady m" --collections notes.yaml
    """
    config = load_config(ctx.obj["config_path"])
    _, store = open_store(config, ctx.obj["scope"])

    collections = Collections()
    if collections_file is not None:
        try:
            data = yaml.safe_load(collections_file.read_text(encoding="utf-8")) or {}
            collections = Collections.model_validate(data)
        except (yaml.YAMLError, ValidationError) as e:
            raise click.ClickException(f"Invalid collections file {collections_file}: {e}")

    results = search_all(
        query,
        document=store.document(),
        braindump=collections.braindump,
        characters=collections.characters,
        research=collections.research,
    )
    logger.info("search_command_completed", query=query, results=len(results))

    if not results:
        click.echo("No results found.")
        return

    for item in results:
        label = item.title or _preview(item.body)
        click.echo(f"[{item.source_kind}] {label}")
        if item.title and item.body:
            click.echo(f"    {_preview(item.body)}")


def _render_diff(review: ReviewSession, block_id: str) -> Text:
    rendered = Text()
    for token in review.diff_block(block_id) or []:
        style = "bold green underline" if token.tag == DiffTag.ADDED else ""
        rendered.append(token.token, style=style)
    return rendered


@cli.command()
@click.option("--dry-run", is_flag=True, help="Show corrections without saving them")
@click.pass_context
def correct(ctx: click.Context, dry_run: bool):
    """
    Run a grammar correction sweep over every paragraph.

    Each paragraph is sent to the LLM in turn; changed paragraphs are shown
    with their new words highlighted.
    """
    from inkflow.services.llm_client import LLMClient
    from inkflow.services.revision_runner import BatchRevisionRunner
    from inkflow.services.writing_assistant import WritingAssistant

    config = load_config(ctx.obj["config_path"], require_llm=True)
    scope = ctx.obj["scope"]
    repository, store = open_store(config, scope)
    review = ReviewSession(store)
    assistant = WritingAssistant(LLMClient(config.llm))

    with console.status("[bold green]Correcting...") as status:
        def on_progress(progress: RevisionProgress) -> None:
            percentage = progress.progress_percentage or 0.0
            status.update(f"[bold green]Correcting... {percentage:.0f}% ({progress.changed} changed)")

        runner = BatchRevisionRunner(store, review, assistant, config.revision, on_progress=on_progress)
        result = asyncio.run(runner.run())

    for block_id in review.dirty_ids():
        console.print(_render_diff(review, block_id))
        console.print()

    summary = f"{result.changed} of {result.processed} paragraph(s) corrected"
    if result.failed:
        summary += f", {result.failed} failed"
    if result.timed_out:
        summary += " (stopped by safety timeout)"
    click.echo(summary + ".")

    if dry_run:
        click.echo("Dry run: nothing saved.")
        return
    if result.changed:
        _save(repository, scope, store)


@cli.command()
@click.option("--title", default=None, help="Title written at the top of the export")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: derived from --title, or stdout without one)",
)
@click.pass_context
def export(ctx: click.Context, title: Optional[str], output: Optional[Path]):
    """Export the manuscript as Markdown."""
    config = load_config(ctx.obj["config_path"])
    _, store = open_store(config, ctx.obj["scope"])

    markdown = render_markdown(store.document(), title=title)
    if output is None and title:
        output = Path(export_filename(title))

    if output is None:
        click.echo(markdown, nl=False)
        return

    output.write_text(markdown, encoding="utf-8")
    logger.info("export_command_completed", path=str(output))
    click.echo(f"Exported {count_words(store.document())} words to {output}")


@cli.command()
@click.confirmation_option(prompt="Clear the whole manuscript?")
@click.pass_context
def clear(ctx: click.Context):
    """Reset the manuscript to a single empty paragraph."""
    config = load_config(ctx.obj["config_path"])
    scope = ctx.obj["scope"]
    repository, store = open_store(config, scope)
    store.clear()
    _save(repository, scope, store)
    click.echo(f"Cleared '{scope}'.")


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()
