"""CLI commands for yt2anki."""

import logging
import sys
import zipfile
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .apkg import ApkgError, generate_apkg, read_apkg
from .config import format_config_display, load_config, set_config_value
from .vocab import VocabularyError, load_vocabulary

console = Console()

_COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}


def _preview(text: str, width: int = 40) -> str:
    return text[:width] + "..." if len(text) > width else text


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
def cli(verbose: bool) -> None:
    """yt2anki - Turn vocabulary lists into Anki decks.

    Builds .apkg files that Anki can import directly.
    """
    if verbose:
        logger = logging.getLogger("yt2anki")
        logger.setLevel(logging.DEBUG)
        if not any(isinstance(h, RichHandler) for h in logger.handlers):
            logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


@cli.command()
@click.argument("vocab_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Output .apkg path")
@click.option("-d", "--deck-name", help="Deck name (default: output file name)")
@click.option("--seed", type=int, help="First note id (default: current time in ms)")
def build(vocab_file: Path, output: Path | None, deck_name: str | None, seed: int | None) -> None:
    """Build an Anki deck from a vocabulary JSON file."""
    config = load_config()
    if output is None:
        output = Path(config.default_output)
    if not deck_name:
        deck_name = output.stem

    try:
        items = load_vocabulary(vocab_file)
    except VocabularyError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        sys.exit(1)

    with console.status("Generating Anki deck..."):
        try:
            result = generate_apkg(
                items,
                output,
                deck_name,
                id_seed=seed,
                description=config.deck_description,
                compression=_COMPRESSION[config.compression],
            )
        except ApkgError as e:
            console.print(f"[red]✗ Deck generation failed: {escape(str(e))}[/red]")
            sys.exit(1)

    console.print(f"[green]✓ Deck saved to {escape(str(result.path))}[/green]")
    console.print(f"[dim]  {result.note_count} notes, {result.card_count} cards[/dim]")


@cli.command()
@click.argument("vocab_file", type=click.Path(dir_okay=False, path_type=Path))
def show(vocab_file: Path) -> None:
    """List the words in a vocabulary JSON file."""
    try:
        items = load_vocabulary(vocab_file)
    except VocabularyError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        sys.exit(1)

    if not items:
        console.print("[yellow]No words found[/yellow]")
        return

    table = Table(title=f"Vocabulary: {escape(vocab_file.name)}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Word", style="cyan")
    table.add_column("IPA", style="dim")
    table.add_column("Definition", style="green", max_width=40)
    table.add_column("Example", max_width=40)

    for i, item in enumerate(items, 1):
        table.add_row(
            str(i),
            escape(item.word),
            escape(f"/{item.ipa}/") if item.ipa else "",
            escape(_preview(item.definition)),
            escape(_preview(item.example_en)),
        )

    console.print(table)
    console.print(f"\n[dim]{len(items)} word(s)[/dim]")


@cli.command()
@click.argument("apkg_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(apkg_file: Path) -> None:
    """Summarize an .apkg file."""
    try:
        summary = read_apkg(apkg_file)
    except ApkgError as e:
        console.print(f"[red]✗ Cannot read package: {escape(str(e))}[/red]")
        sys.exit(1)

    console.print(f"\n[bold]{escape(apkg_file.name)}[/bold]")
    console.print(f"  Deck:    [cyan]{escape(summary.deck_name or '-')}[/cyan]")
    console.print(f"  Entries: {', '.join(summary.entries)}")
    console.print(f"  Media:   {len(summary.media)} file(s)")
    console.print(f"  Notes:   {summary.note_count}")
    console.print(f"  Cards:   {summary.card_count}")

    if summary.words:
        shown = escape(", ".join(summary.words[:10]))
        more = f" (+{len(summary.words) - 10} more)" if len(summary.words) > 10 else ""
        console.print(f"  Words:   [dim]{shown}{more}[/dim]")


@cli.command()
@click.argument("key", required=False)
@click.argument("value", required=False)
def config(key: str | None, value: str | None) -> None:
    """Show or change configuration.

    Without arguments, shows all values. With KEY VALUE, sets one.
    """
    cfg = load_config()

    if key is None:
        console.print(format_config_display(cfg))
        return

    if value is None:
        console.print("[red]✗ Missing value.[/red] [dim]Usage: yt2anki config KEY VALUE[/dim]")
        sys.exit(1)

    try:
        set_config_value(cfg, key, value)
    except KeyError:
        console.print(f"[red]✗ Unknown config key '{key}'.[/red]")
        console.print("[dim]Run 'yt2anki config' to see available keys.[/dim]")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        sys.exit(1)

    console.print(f"[green]✓ {key} = {value}[/green]")


def main() -> None:
    """Entry point for the CLI."""
    cli()
