#!/usr/bin/env python3
"""
pairminer CLI

Mines labeled training pairs for code-understanding models.

Commands:
- mine: caller/callee pairs from grouped function records (JSON lines)
- extract: function/comment and call pairs from raw source files
- clean: normalize the comments of caller/callee comment pairs
- split: proportional train/val/test split of a JSON-lines file
- validate: check a mined pairs file against its schema

Usage:
    pairminer mine --data data/python/train --lang python --out output/python.jsonl
    pairminer extract --data contracts/ --lang solidity --task func_comm --out-dir out/
    pairminer languages
"""

import logging
from contextlib import nullcontext
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.logging import RichHandler
from rich.table import Table

from pairminer.config import Config
from pairminer.data.clean import clean_pairs
from pairminer.data.jsonl import iter_jsonl, write_jsonl
from pairminer.data.split import parse_split, save_dataset
from pairminer.data.validate import validate_jsonl
from pairminer.errors import ConfigError, PairMinerError, UnknownLanguageError
from pairminer.grouping import list_input_files
from pairminer.lang.profiles import LanguageProfile, available_languages, get_profile
from pairminer.pipeline import PipelineSettings, default_workers, run_pipeline
from pairminer.source import TASKS, extract_from_files
from pairminer.synthesis import NegativeSampler
from pairminer.ui import (
    PipelineReporter,
    console,
    create_pipeline_progress,
    err_console,
    print_error,
    print_info,
    print_pipeline_summary,
    print_success,
    print_warning,
)
from pairminer.version import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    __app_name__,
    __description__,
    __version__,
)

LOGGER = logging.getLogger(__name__)

app = typer.Typer(
    name="pairminer",
    help=f"{__app_name__} - {__description__}",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(
            f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]"
        )
        raise typer.Exit()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=str(level).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _load_config(config_path: Path | None, overrides: dict) -> Config:
    config = Config()
    try:
        config.load(config_path)
        for key, value in overrides.items():
            if value is not None:
                config.set(key, value)
        config.validate()
    except ConfigError as exc:
        print_error(exc.message)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc
    return config


def _resolve_profile(language: str | None) -> LanguageProfile:
    if not language:
        print_error(f"--lang is required, one of: {', '.join(available_languages())}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    try:
        return get_profile(language)
    except UnknownLanguageError as exc:
        print_error(f"{exc.message}; available: {', '.join(exc.details['available'])}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc


def _parse_split_or_exit(split: str) -> tuple[float, float, float]:
    try:
        return parse_split(split)
    except ValueError as exc:
        print_error(str(exc))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Mine caller/callee and function/doc training pairs."""


@app.command()
def mine(
    data: Path = typer.Option(..., "--data", "-d", help="JSON-lines file or directory of them"),
    out: Path = typer.Option(Path("output/pairs.jsonl"), "--out", "-o"),
    lang: str | None = typer.Option(None, "--lang", "-l", help="Language tag"),
    workers: int | None = typer.Option(None, "--workers", "-t", help="Worker threads"),
    mode: str | None = typer.Option(None, "--mode", help="full or tokens"),
    negatives: str | None = typer.Option(None, "--negatives", help="sorted or shuffled"),
    seed: int | None = typer.Option(None, "--seed"),
    duplicates: str | None = typer.Option(
        None, "--duplicates", help="last-write-wins or exclude"
    ),
    config_path: Path | None = typer.Option(None, "--config", "-c"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    progress: bool = typer.Option(True, "--progress/--no-progress"),
) -> None:
    """Mine caller/callee pairs from grouped function records."""
    config = _load_config(
        config_path,
        {
            "language": lang,
            "workers": workers,
            "output_mode": mode,
            "negatives": negatives,
            "seed": seed,
            "duplicates": duplicates,
        },
    )
    _configure_logging("DEBUG" if verbose else config.get("log_level"))
    profile = _resolve_profile(config.get("language"))

    if not data.exists():
        print_error(f"Input not found: {data}")
        raise typer.Exit(code=EXIT_ERROR)
    paths = list_input_files(data)
    if not paths:
        print_warning(f"No input files under {data}; nothing to mine.")
        raise typer.Exit(code=0)

    settings = PipelineSettings(
        workers=config.get("workers") or default_workers(),
        fanout=config.get("fanout"),
        output_mode=config.get("output_mode"),
        negatives=config.get("negatives"),
        seed=config.get("seed"),
        duplicates=config.get("duplicates"),
    )
    print_info(
        f"Mining {len(paths)} file(s) as {profile.tag} with {settings.workers} worker(s)"
    )

    progress_bar = create_pipeline_progress() if progress else None
    reporter = PipelineReporter(progress_bar)
    try:
        with progress_bar or nullcontext():
            stats = run_pipeline(paths, out, profile, settings=settings, reporter=reporter)
    except PairMinerError as exc:
        print_error(exc.message)
        raise typer.Exit(code=EXIT_ERROR) from exc
    except OSError as exc:
        print_error(f"I/O error: {exc}")
        raise typer.Exit(code=EXIT_ERROR) from exc

    print_pipeline_summary(stats, out)


@app.command()
def extract(
    data: Path = typer.Option(..., "--data", "-d", help="Source file or directory"),
    out_dir: Path = typer.Option(Path("output"), "--out-dir", "-o"),
    lang: str | None = typer.Option(None, "--lang", "-l"),
    task: str = typer.Option("func_call_comm", "--task", "-t", help=", ".join(TASKS)),
    suffix: list[str] = typer.Option(None, "--suffix", help="Only read files with these suffixes"),
    split: str | None = typer.Option(None, "--split"),
    negatives: str | None = typer.Option(None, "--negatives"),
    seed: int | None = typer.Option(None, "--seed"),
    config_path: Path | None = typer.Option(None, "--config", "-c"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Extract pairs from raw source files and write a split dataset."""
    config = _load_config(
        config_path,
        {"language": lang, "split": split, "negatives": negatives, "seed": seed},
    )
    _configure_logging("DEBUG" if verbose else config.get("log_level"))
    profile = _resolve_profile(config.get("language"))
    if task not in TASKS:
        print_error(f"Unknown task: {task}; expected one of {', '.join(TASKS)}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    split_ratios = _parse_split_or_exit(config.get("split"))

    if not data.exists():
        print_error(f"Input not found: {data}")
        raise typer.Exit(code=EXIT_ERROR)
    paths = list_input_files(data, set(suffix) if suffix else None)
    sampler = NegativeSampler(strategy=config.get("negatives"), seed=config.get("seed"))

    progress_bar = create_pipeline_progress()
    try:
        with progress_bar:
            files_task = progress_bar.add_task("Files", total=len(paths))
            rows = extract_from_files(
                paths,
                profile,
                task,
                sampler=sampler,
                on_file=lambda _: progress_bar.advance(files_task),
            )
    except PairMinerError as exc:
        print_error(exc.message)
        raise typer.Exit(code=EXIT_ERROR) from exc

    sizes = save_dataset(out_dir, rows, split_ratios)
    print_success(
        f"Wrote {sizes['all']} samples to {out_dir} "
        f"(train {sizes['train']}, val {sizes['val']}, test {sizes['test']})"
    )


@app.command()
def clean(
    input_path: Path = typer.Option(..., "--input", "-i"),
    out: Path = typer.Option(..., "--out", "-o"),
    min_words: int = typer.Option(4, "--min-words"),
) -> None:
    """Keep one summary sentence per comment and flatten code whitespace."""
    _configure_logging("WARNING")
    if not input_path.exists():
        print_error(f"Input not found: {input_path}")
        raise typer.Exit(code=EXIT_ERROR)
    cleaned = [pair.model_dump() for pair in clean_pairs(iter_jsonl(input_path), min_words)]
    write_jsonl(out, cleaned)
    print_success(f"Wrote {len(cleaned)} cleaned pairs to {out}")


@app.command("split")
def split_command(
    input_path: Path = typer.Option(..., "--input", "-i"),
    out_dir: Path = typer.Option(..., "--out-dir", "-o"),
    split: str = typer.Option("8,1,1", "--split"),
) -> None:
    """Split a JSON-lines file into train/val/test in input order."""
    _configure_logging("WARNING")
    split_ratios = _parse_split_or_exit(split)
    if not input_path.exists():
        print_error(f"Input not found: {input_path}")
        raise typer.Exit(code=EXIT_ERROR)
    sizes = save_dataset(out_dir, list(iter_jsonl(input_path)), split_ratios)
    print_success(
        f"train {sizes['train']}, val {sizes['val']}, test {sizes['test']} -> {out_dir}"
    )


@app.command()
def validate(
    path: Path = typer.Argument(...),
    mode: str = typer.Option("full", "--mode"),
) -> None:
    """Validate a mined pairs file."""
    _configure_logging("WARNING")
    if mode not in ("full", "tokens"):
        print_error("--mode must be 'full' or 'tokens'")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    try:
        total, errors = validate_jsonl(path, mode=mode)
    except FileNotFoundError as exc:
        print_error(f"File not found: {path}")
        raise typer.Exit(code=EXIT_ERROR) from exc
    if errors:
        print_error(f"{errors}/{total} invalid rows in {path}")
        raise typer.Exit(code=1)
    print_success(f"{total} valid rows in {path}")


@app.command()
def languages() -> None:
    """List the supported language tags."""
    table = Table(title="Languages", show_header=True, header_style="bold cyan")
    table.add_column("Tag")
    table.add_column("Function nodes", style="dim")
    for tag in available_languages():
        profile = get_profile(tag)
        table.add_row(tag, ", ".join(sorted(profile.function_types)))
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold blue]{__app_name__}[/bold blue] [green]{__version__}[/green]")
    console.print(f"[dim]{__description__}[/dim]")


if __name__ == "__main__":
    app()
