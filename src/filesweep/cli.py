"""Command line interface for FileSweep."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from filesweep.config import AppConfig
from filesweep.models import ScanResult
from filesweep.scan.predicates import AnyPredicate, NameEquals, NameGlob, SizeAtLeast
from filesweep.scan.session import prune_cache, run_scan
from filesweep.utils.files import InvalidRootError
from filesweep.utils.sizes import format_size, parse_size

console = Console()
app = typer.Typer(help="FileSweep - incremental directory scanner")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_predicate(
    min_size: Optional[str], name: Optional[str], glob: Optional[str]
) -> AnyPredicate:
    given = [option for option in (min_size, name, glob) if option is not None]
    if len(given) != 1:
        raise typer.BadParameter("Pass exactly one of --min-size, --name or --glob")
    if min_size is not None:
        try:
            return SizeAtLeast(parse_size(min_size))
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--min-size") from exc
    if name is not None:
        return NameEquals(name)
    return NameGlob(glob)


def _display_text(text: str) -> str:
    """Make undecodable filename bytes printable."""
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _print_report(result: ScanResult, predicate: AnyPredicate) -> None:
    if not result.matches:
        console.print(f"[yellow]No files with {escape(predicate.describe())} found.[/yellow]")
    else:
        console.print(
            f"Found {len(result.matches)} matching files out of {result.scanned} scanned:"
        )
        for match in result.sorted_matches():
            console.print(
                f"  - {escape(_display_text(match.path))} [dim]({format_size(match.size)}, {match.size} bytes)[/dim]",
                soft_wrap=True,
            )

    console.print("[bold]===== Final Scan Statistics =====[/bold]")
    console.print(f"Files Scanned:       {result.scanned}")
    console.print(f"Permission Denied:   {result.permission_denied}")
    console.print(f"Other Errors:        {result.other_errors}")
    console.print(f"Files Found:         {len(result.matches)}")
    console.print(f"Cache Hits:          {result.cache_hits}")
    if result.pruned:
        console.print(f"Pruned From Cache:   {result.pruned}")
    for warning in result.warnings:
        console.print(f"[yellow]Warning: {escape(_display_text(warning))}[/yellow]", soft_wrap=True)


@app.command()
def scan(
    root: Path = typer.Argument(..., help="Directory to scan."),
    min_size: Optional[str] = typer.Option(
        None, "--min-size", "-s", help="Match files at least this large (e.g. 10GB, 20MB, 500KB)."
    ),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Match files with this exact name."),
    glob: Optional[str] = typer.Option(None, "--glob", "-g", help="Match file names against a pattern."),
    cache: Path = typer.Option(None, "--cache", help="Metadata cache file"),
    workers: int = typer.Option(AppConfig().workers, "--workers", "-w", min=1, help="Parallel workers"),
    follow_links: bool = typer.Option(False, "--follow-links", help="Follow symbolic links"),
    prune: bool = typer.Option(False, "--prune", help="Drop cached files that no longer exist"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Scan a directory, reusing cached metadata for unchanged files."""
    _setup_logging(verbose)
    predicate = _build_predicate(min_size, name, glob)
    config = AppConfig(
        cache_path=cache,
        workers=workers,
        follow_links=follow_links,
        prune_missing=prune,
    )

    start = time.perf_counter()
    try:
        result = run_scan(root, predicate, config, base_dir=Path.cwd())
    except InvalidRootError as exc:
        raise typer.BadParameter(str(exc), param_hint="ROOT") from exc
    elapsed = time.perf_counter() - start

    _print_report(result, predicate)
    console.print(f"Time taken: {elapsed:.2f}s")


@app.command()
def prune(
    cache: Path = typer.Option(None, "--cache", help="Metadata cache file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Remove cached files that no longer exist on disk."""
    _setup_logging(verbose)
    config = AppConfig(cache_path=cache)
    resolved = config.resolve_cache_path(Path.cwd())

    if not resolved.exists():
        console.print("[yellow]Cache not found, nothing to prune.[/yellow]")
        return

    try:
        removed = prune_cache(config, base_dir=Path.cwd())
    except OSError as exc:
        console.print(f"[red]Failed to save cache: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(f"Removed {removed} missing files from the cache.")
