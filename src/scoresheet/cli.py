"""Scoresheet reconciliation CLI."""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from scoresheet.log import configure_logging
from scoresheet.models import MoveToken, ReconciliationResult
from scoresheet.oracle import ChessRulesOracle
from scoresheet.pipeline import (
    Reconciler,
    ScoresheetPipeline,
    TokenExtractor,
    build_report,
    load_textract_blocks,
)

app = typer.Typer(
    name="scoresheet",
    help="Reconcile OCR'd chess score sheets into legal move sequences",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (default from settings)"),
) -> None:
    """Configure logging for every command."""
    configure_logging(log_level)


@app.command()
def extract(
    json_path: Path = typer.Argument(..., help="Textract response JSON"),
) -> None:
    """List the move tokens found in a document."""
    blocks = _load(json_path)
    tokens = TokenExtractor().extract(blocks)
    if not tokens:
        console.print("[yellow]No moves found[/yellow]")
        return

    table = Table(title=f"{len(tokens)} tokens")
    table.add_column("#", justify="right")
    table.add_column("Token")
    table.add_column("Stage", style="dim")
    for token in tokens:
        table.add_row(str(token.index), token.raw, token.source.value if token.source else "")
    console.print(table)


@app.command()
def reconcile(
    json_path: Path = typer.Argument(..., help="Textract response JSON"),
    fen: Optional[str] = typer.Option(None, help="Starting position FEN"),
    output_dir: Optional[Path] = typer.Option(None, help="Write a JSON report here"),
) -> None:
    """Extract and reconcile one document."""
    console.print(f"[bold blue]Processing:[/bold blue] {json_path}")
    blocks = _load(json_path)
    pipeline = ScoresheetPipeline(oracle=_oracle(fen))
    result = pipeline.process_blocks(blocks)

    _print_result(result)
    if output_dir is not None:
        _write_report(result, json_path, output_dir)


@app.command()
def check(
    moves: List[str] = typer.Argument(..., help="Moves in game order"),
    fen: Optional[str] = typer.Option(None, help="Starting position FEN"),
) -> None:
    """Reconcile moves given on the command line."""
    tokens = [MoveToken(raw=move, index=i) for i, move in enumerate(moves)]
    result = Reconciler(_oracle(fen)).reconcile(tokens)
    _print_result(result)


@app.command()
def batch(
    directory: Path = typer.Argument(..., help="Directory containing Textract JSON files"),
    output_dir: Path = typer.Option("./output", help="Output directory"),
    workers: Optional[int] = typer.Option(None, help="Number of parallel workers"),
) -> None:
    """Reconcile every JSON document in a directory."""
    paths = sorted(directory.glob("*.json"))
    console.print(f"[bold blue]Batch processing:[/bold blue] {len(paths)} files in {directory}")
    if not paths:
        console.print("[yellow]Nothing to process[/yellow]")
        return

    results = ScoresheetPipeline().process_many(paths, max_workers=workers)

    table = Table()
    table.add_column("File")
    for name in ("Total", "Valid", "Corrected", "Invalid"):
        table.add_column(name, justify="right")
    for path, result in results.items():
        stats = result.stats
        table.add_row(
            path.name,
            str(stats.total),
            str(stats.valid),
            str(stats.corrected),
            str(stats.invalid),
        )
        _write_report(result, path, output_dir)
    console.print(table)


def _oracle(fen: Optional[str]) -> ChessRulesOracle:
    try:
        return ChessRulesOracle(starting_fen=fen)
    except ValueError as e:
        console.print(f"[red]Invalid FEN:[/red] {e}")
        raise typer.Exit(code=1)


def _load(json_path: Path):
    try:
        return load_textract_blocks(json_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)


def _print_result(result: ReconciliationResult) -> None:
    if result.is_empty:
        console.print("[yellow]No moves found[/yellow]")
        return

    stats = result.stats
    console.print(
        f"[bold]{stats.total}[/bold] moves: "
        f"[green]{stats.valid} valid[/green], "
        f"[yellow]{stats.corrected} corrected[/yellow], "
        f"[red]{stats.invalid} invalid[/red]"
    )
    console.print(" ".join(result.corrected_moves))

    if result.corrections:
        table = Table(title="Corrections")
        table.add_column("#", justify="right")
        table.add_column("Original")
        table.add_column("Corrected")
        table.add_column("Method")
        table.add_column("Note", style="dim")
        for record in result.corrections:
            note = record.error.value if record.error else ""
            if record.distance is not None and record.corrected is not None:
                note = f"distance {record.distance}"
            table.add_row(
                str(record.index),
                record.original,
                record.corrected or "-",
                record.method.value,
                note,
            )
        console.print(table)


def _write_report(result: ReconciliationResult, source: Path, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / f"{source.stem}.json"
    report_path.write_text(json.dumps(build_report(result, source.name), indent=2) + "\n")
    console.print(f"[dim]Report written to {report_path}[/dim]")


if __name__ == "__main__":
    app()
