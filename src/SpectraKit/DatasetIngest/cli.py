# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.cli",
#   "purpose": "Typer command line for fetching, parsing, and validating datasets",
#   "sections": [
#     {"id": "main", "name": "main", "anchor": "function-main", "kind": "function"},
#     {"id": "fetch", "name": "fetch", "anchor": "function-fetch", "kind": "function"},
#     {"id": "parse", "name": "parse", "anchor": "function-parse", "kind": "function"},
#     {"id": "validate", "name": "validate", "anchor": "function-validate", "kind": "function"},
#     {"id": "config", "name": "config", "anchor": "function-config", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Typer command line for fetching, parsing, and validating datasets.

Example:
    $ spectrakit-ingest fetch https://example.org/spectrum.csv --label "Sample A"
    $ spectrakit-ingest parse ./spectrum.tsv --mime text/tab-separated-values --json
    $ spectrakit-ingest validate https://example.org/data.txt --mime text/plain
    $ spectrakit-ingest config
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from .errors import ParseError
from .logging_utils import setup_logging
from .parser import parse_dataset
from .session import DatasetSession
from .settings import IngestSettings, get_settings
from .types import FetchResult, ParsedSpectrum
from .validators import validate_dataset_url

app = typer.Typer(
    name="spectrakit-ingest",
    help="Fetch, parse, and validate remotely hosted tabular spectra",
    no_args_is_help=True,
)


def _summarize(spectrum: ParsedSpectrum) -> str:
    labels = ", ".join(entry.label for entry in spectrum.series)
    if spectrum.x_values:
        x_range = f"[{spectrum.x_values[0]:g}, {spectrum.x_values[-1]:g}]"
    else:
        x_range = "[]"
    return (
        f"{spectrum.label}: {len(spectrum)} points, "
        f"x={spectrum.x_label} {x_range}, series: {labels}"
    )


def _emit(spectrum: ParsedSpectrum, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(spectrum.to_dict(), allow_nan=False))
    else:
        typer.echo(_summarize(spectrum))


async def _fetch_once(settings: IngestSettings, url: str, mime: str, label: str) -> FetchResult:
    async with DatasetSession(settings) as session:
        return await session.fetch_dataset(url, mime, label)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_json: bool = typer.Option(False, "--log-json", help="Emit JSON log lines on stderr"),
) -> None:
    """Configure logging from settings before running a command."""

    log_settings = get_settings().logging
    setup_logging(
        level="DEBUG" if verbose else log_settings.level,
        emit_json=log_json or log_settings.emit_json_logs,
        log_dir=log_settings.log_dir,
    )


@app.command()
def fetch(
    url: str = typer.Argument(..., help="http(s) URL of the dataset"),
    mime: str = typer.Option("text/csv", "--mime", "-m", help="Declared MIME type"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Display label"),
    as_json: bool = typer.Option(False, "--json", help="Print the parsed spectrum as JSON"),
) -> None:
    """Fetch one dataset over HTTP and print a summary."""

    settings = get_settings()
    result = asyncio.run(_fetch_once(settings, url, mime, label or url))
    if not result.ok or result.data is None:
        kind = result.error_kind.value if result.error_kind else "error"
        typer.echo(f"Error ({kind}): {result.error}", err=True)
        raise typer.Exit(code=1)
    _emit(result.data, as_json)


@app.command()
def parse(
    path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Local dataset file"
    ),
    mime: str = typer.Option("text/csv", "--mime", "-m", help="MIME type to parse as"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Display label"),
    as_json: bool = typer.Option(False, "--json", help="Print the parsed spectrum as JSON"),
) -> None:
    """Parse a local dataset file with the same rules used for remote data."""

    settings = get_settings()
    text = path.read_bytes().decode("utf-8-sig", errors="replace")
    try:
        spectrum = parse_dataset(
            text,
            str(path),
            label or path.name,
            mime,
            max_points=settings.limits.max_points,
        )
    except ParseError as exc:
        typer.echo(f"Error ({exc.parse_kind.value}): {exc}", err=True)
        raise typer.Exit(code=1)
    _emit(spectrum, as_json)


@app.command()
def validate(
    url: str = typer.Argument(..., help="URL to check"),
    mime: str = typer.Option("text/csv", "--mime", "-m", help="Declared MIME type"),
) -> None:
    """Check a URL and MIME type against the allowlists without fetching."""

    verdict = validate_dataset_url(url, mime)
    if not verdict.valid:
        typer.echo(verdict.error, err=True)
        raise typer.Exit(code=1)
    typer.echo("valid")


@app.command()
def config() -> None:
    """Print the effective settings as JSON."""

    settings = get_settings()
    payload = settings.model_dump(mode="json")
    payload["config_hash"] = settings.config_hash()
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))


if __name__ == "__main__":  # pragma: no cover
    app()
