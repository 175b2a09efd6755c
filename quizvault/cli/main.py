"""
Typer CLI for quizvault.

Commands:
    quizvault parse PATH        - Parse a document and summarise its questions
    quizvault check PATH        - List parse diagnostics (exit 1 on errors)
    quizvault blanks PATH       - Show cloze questions with blanks
    quizvault convert PATH      - Rewrite question block delimiters
    quizvault add-ids PATH      - Write generated ids into question blocks
    quizvault vault             - Summarise every document in the vault

Usage:
    quizvault --help
    quizvault parse vault/lesson-1.md --json
    quizvault blanks lesson-1.md --mode sequential
    quizvault convert lesson-1.md --target admonition --dry-run
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config import get_settings
from quizvault.cloze.blanks import BlankMode
from quizvault.diagnostics import Severity, has_errors
from quizvault.questions import (
    ParsedDocument,
    QuestionType,
    add_question_ids,
    convert_block_format,
    display_id,
    parse_document,
)

app = typer.Typer(
    help="quizvault: parse and maintain cloze study documents",
    no_args_is_help=True,
)

console = Console()

SEVERITY_STYLES = {
    Severity.INFO: "dim",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
}


def configure_logging(level: str, log_file: str | None = None) -> None:
    """Send loguru output to stderr (and optionally a rotating file)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if log_file:
        logger.add(log_file, level=level, rotation="10 MB", retention=3)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Parse and maintain cloze study documents."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_file)


# ========================================
# Document I/O
# ========================================


def load_document(path: Path) -> tuple[Path, str]:
    """
    Resolve and read a document.

    Raises:
        FileNotFoundError: Neither ``path`` nor ``vault_path/path`` is a file.
    """
    resolved = get_settings().resolve_document(path)
    if not resolved.is_file():
        raise FileNotFoundError(f"Document not found: {path}")
    return resolved, resolved.read_text(encoding="utf-8")


def _load_or_exit(path: Path) -> tuple[Path, str]:
    try:
        return load_document(path)
    except FileNotFoundError as e:
        rprint(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)


def write_document(path: Path, original: str, updated: str) -> Path | None:
    """Write ``updated`` to ``path``; returns the backup path when one was made."""
    backup = None
    if get_settings().backup_on_rewrite:
        backup = path.with_name(path.name + ".backup")
        backup.write_text(original, encoding="utf-8")
    path.write_text(updated, encoding="utf-8")
    logger.info(f"Rewrote {path}")
    return backup


def _parse(text: str, workers: int | None) -> ParsedDocument:
    return parse_document(text, workers=workers or get_settings().parse_workers)


# ========================================
# Commands
# ========================================


@app.command("parse")
def parse_command(
    path: Path = typer.Argument(..., help="Document to parse"),
    as_json: bool = typer.Option(False, "--json", help="Print the parsed graph as JSON"),
    workers: int | None = typer.Option(
        None, "--workers", "-w", min=1, help="Parse groups in parallel (default: from config)"
    ),
) -> None:
    """
    Parse a document and summarise its groups and questions.

    Examples:
        quizvault parse lesson-1.md
        quizvault parse lesson-1.md --json > lesson-1.json
    """
    resolved, text = _load_or_exit(path)
    document = _parse(text, workers)

    if as_json:
        typer.echo(json.dumps(document.to_dict(), indent=2, ensure_ascii=False))
        return

    table = Table(title=f"Questions in {resolved.name}", show_header=True)
    table.add_column("Group", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="magenta")
    table.add_column("Blanks", justify="right")
    table.add_column("Question")

    for group in document.groups:
        for question in group.questions:
            preview = question.text.replace("\n", " ")
            table.add_row(
                escape(group.title),
                display_id(question.id),
                question.type.value,
                str(len(question.blanks)) if question.is_cloze else "-",
                escape(preview[:60] + ("…" if len(preview) > 60 else "")),
            )

    console.print(table)

    summary = document.summary()
    rprint(
        f"\n[bold]{summary['groups']}[/bold] group(s), "
        f"[bold]{summary['questions']}[/bold] question(s), "
        f"block format: {summary['block_format']}"
    )
    if document.diagnostics:
        rprint(f"[yellow]⚠[/yellow] {len(document.diagnostics)} diagnostic(s); run 'quizvault check' for details")


@app.command("check")
def check_command(
    path: Path = typer.Argument(..., help="Document to check"),
) -> None:
    """List parse diagnostics; exits with code 1 when any is an error."""
    resolved, text = _load_or_exit(path)
    document = _parse(text, None)

    if not document.diagnostics:
        rprint(f"[bold green]✓ {resolved.name}: no problems found[/bold green]")
        return

    table = Table(title=f"Diagnostics for {resolved.name}", show_header=True)
    table.add_column("Severity")
    table.add_column("Code", style="cyan")
    table.add_column("Group", style="dim")
    table.add_column("Question", style="dim")
    table.add_column("Message")

    for diagnostic in document.diagnostics:
        style = SEVERITY_STYLES[diagnostic.severity]
        table.add_row(
            f"[{style}]{diagnostic.severity.value}[/{style}]",
            diagnostic.code.value,
            diagnostic.group_id or "",
            display_id(diagnostic.question_id),
            escape(diagnostic.message),
        )

    console.print(table)

    if has_errors(document.diagnostics):
        rprint(f"\n[red]✗[/red] {len(document.errors)} error(s) in {resolved.name}")
        raise typer.Exit(code=1)


@app.command("blanks")
def blanks_command(
    path: Path = typer.Argument(..., help="Document to read"),
    mode: BlankMode | None = typer.Option(
        None, "--mode", "-m", help="Blank style (default: from config)"
    ),
) -> None:
    """Show every cloze question with its blanks and expected answers."""
    _, text = _load_or_exit(path)
    settings = get_settings()
    blank_mode = mode or BlankMode(settings.default_blank_mode)
    document = _parse(text, None)

    cloze = [q for q in document.iter_questions() if q.type is QuestionType.CLOZE]
    if not cloze:
        rprint("[dim]No cloze questions found[/dim]")
        return

    for question in cloze:
        rprint(f"\n[bold cyan]{question.id}[/bold cyan]")
        console.print(question.display_text(blank_mode, glyph=settings.blank_glyph), markup=False)
        for number, answer in enumerate(question.blanks, start=1):
            rprint(f"  [green]{number}.[/green] {escape(answer)}")


@app.command("convert")
def convert_command(
    path: Path = typer.Argument(..., help="Document to rewrite"),
    target: str | None = typer.Option(
        None, "--target", "-t", help="admonition or legacy (default: from config)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report without writing"),
) -> None:
    """
    Rewrite every question block to one delimiter syntax.

    Examples:
        quizvault convert lesson-1.md
        quizvault convert lesson-1.md --target legacy --dry-run
    """
    resolved, text = _load_or_exit(path)
    try:
        result = convert_block_format(text, target or get_settings().question_block_format)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--target")

    if not result.modified:
        rprint(f"[dim]No blocks to convert in {resolved.name}[/dim]")
        return

    if dry_run:
        rprint(f"Would convert {result.changed} block(s) in {resolved.name}")
        return

    backup = write_document(resolved, text, result.text)
    rprint(f"[green]✓[/green] Converted {result.changed} block(s) in {resolved.name}")
    if backup is not None:
        rprint(f"  Backup: {backup}")


@app.command("add-ids")
def add_ids_command(
    path: Path = typer.Argument(..., help="Document to rewrite"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report without writing"),
) -> None:
    """Write generated ID: lines into question blocks that lack one."""
    resolved, text = _load_or_exit(path)
    result = add_question_ids(text)

    if not result.modified:
        rprint(f"[dim]All questions in {resolved.name} already have ids[/dim]")
        return

    if dry_run:
        rprint(f"Would add {result.changed} id(s) to {resolved.name}")
        return

    backup = write_document(resolved, text, result.text)
    rprint(f"[green]✓[/green] Added {result.changed} id(s) to {resolved.name}")
    if backup is not None:
        rprint(f"  Backup: {backup}")


@app.command("vault")
def vault_command() -> None:
    """Summarise every document in the configured vault."""
    settings = get_settings()
    documents = settings.iter_documents()
    if not documents:
        rprint(f"[dim]No documents matching {settings.document_glob} in {settings.vault_path}[/dim]")
        return

    table = Table(title=f"Vault: {settings.vault_path}", show_header=True)
    table.add_column("Document", style="cyan")
    table.add_column("Groups", justify="right")
    table.add_column("Questions", justify="right")
    table.add_column("Errors", justify="right")

    total_errors = 0
    for path in documents:
        document = _parse(path.read_text(encoding="utf-8"), None)
        summary = document.summary()
        total_errors += len(document.errors)
        errors = f"[red]{len(document.errors)}[/red]" if document.errors else "0"
        table.add_row(
            escape(str(path.relative_to(settings.vault_path))),
            str(summary["groups"]),
            str(summary["questions"]),
            errors,
        )

    console.print(table)
    rprint(f"\n[bold]{len(documents)}[/bold] document(s), [bold]{total_errors}[/bold] error(s)")


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
