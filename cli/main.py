"""SchemaLift CLI: entry-point for the pipeline and its deterministic stages.

Usage:
    python cli/main.py --help

Commands:
    clean     → clean a page and print its content bundle
    flatten   → print the flattened, deduplicated text lines of a page
    validate  → validate candidate entities from a JSON file
    generate  → run the whole pipeline for a URL
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that
# `from schemalift.xxx import ...` works when the CLI is invoked as
# `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Any, NoReturn, Optional

import typer

from schemalift.config import settings
from schemalift.errors import PipelineError
from schemalift.logging_config import setup_logging

app = typer.Typer(
    name="schemalift",
    help="SchemaLift CLI: web pages to validated Schema.org JSON-LD.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG | INFO | WARNING | ERROR."),
) -> None:
    """Configure logging for every command."""
    setup_logging((log_level or settings.log_level).upper())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_html(file: Optional[Path], url: Optional[str]) -> str:
    if (file is None) == (url is None):
        typer.echo("Pass exactly one of --file or --url.", err=True)
        raise typer.Exit(2)
    if file is not None:
        return file.read_text(encoding="utf-8")

    from schemalift.scraper import fetch_page

    typer.echo(f"[fetch] Fetching {url!r} …", err=True)
    try:
        raw = fetch_page(url)
    except Exception as exc:  # noqa: BLE001
        _fail(PipelineError(f"Could not fetch {url}: {exc}", stage="ingestion"))
    typer.echo(f"[fetch] HTTP {raw.status_code}  {raw.final_url}", err=True)
    return raw.html


def _fail(exc: PipelineError) -> NoReturn:
    typer.echo(f"[{exc.stage}] {exc.reason}", err=True)
    raise typer.Exit(1)


def _dump(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Deterministic stages
# ---------------------------------------------------------------------------

@app.command("clean")
def clean_cmd(
    file: Optional[Path] = typer.Option(None, "--file", exists=True, dir_okay=False, help="Local HTML file."),
    url: Optional[str] = typer.Option(None, "--url", help="URL to fetch."),
    policy: Optional[str] = typer.Option(None, "--policy", help="Visible text policy: exhaustive | paragraphs."),
    as_json: bool = typer.Option(False, "--json", help="Print the full bundle as JSON."),
) -> None:
    """Clean a page and print its visible text (or the whole bundle)."""
    from schemalift.pipeline.cleaner import clean
    from schemalift.pipeline.visible_text import get_strategy

    html = _read_html(file, url)
    try:
        strategy = get_strategy(policy) if policy else None
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(2) from exc

    try:
        bundle = clean(html, strategy=strategy)
    except PipelineError as exc:
        _fail(exc)

    if as_json:
        _dump(bundle.to_dict())
        return

    stats = bundle.stats
    typer.echo(
        f"[clean] {stats.original_length} → {stats.cleaned_length} chars  "
        f"removed={stats.elements_removed}  tokens~{stats.token_estimate}",
        err=True,
    )
    typer.echo(bundle.text)


@app.command("flatten")
def flatten_cmd(
    file: Optional[Path] = typer.Option(None, "--file", exists=True, dir_okay=False, help="Local HTML file."),
    url: Optional[str] = typer.Option(None, "--url", help="URL to fetch."),
) -> None:
    """Clean a page, then print its flattened text one line per fragment."""
    from schemalift.pipeline.cleaner import clean
    from schemalift.pipeline.flatten import flatten

    html = _read_html(file, url)
    try:
        bundle = clean(html)
    except PipelineError as exc:
        _fail(exc)

    flattened = flatten(bundle.cleaned_markup)
    typer.echo(
        f"[flatten] {flattened.line_count} line(s), {flattened.reduction_percent}% smaller",
        err=True,
    )
    typer.echo(flattened.text)


@app.command("validate")
def validate_cmd(
    file: Path = typer.Option(..., "--file", exists=True, dir_okay=False, help="JSON candidates file."),
    page_url: Optional[str] = typer.Option(None, "--page-url", help="Base URL for relative links."),
) -> None:
    """Validate candidate entities and print the report.

    The file holds either a list of entities or ``{"schemas": [...]}``.
    """
    from schemalift.pipeline.validator import validate

    try:
        payload = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"Invalid JSON in {file}: {exc}", err=True)
        raise typer.Exit(2) from exc
    candidates = payload.get("schemas", []) if isinstance(payload, dict) else payload
    if not isinstance(candidates, list):
        typer.echo('Expected a list of entities or {"schemas": [...]}.', err=True)
        raise typer.Exit(2)

    try:
        report = validate(candidates, page_url=page_url)
    except PipelineError as exc:
        _dump(exc.to_dict())
        _fail(exc)
    _dump(report.to_dict())


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------

@app.command("generate")
def generate_cmd(
    url: str = typer.Option(..., "--url", help="Page to generate JSON-LD for."),
    artifacts_dir: Optional[Path] = typer.Option(
        None, "--artifacts-dir", file_okay=False, help="Write each stage's output here."
    ),
    policy: Optional[str] = typer.Option(None, "--policy", help="Visible text policy: exhaustive | paragraphs."),
) -> None:
    """Run the whole pipeline for a URL and print the result."""
    from schemalift.pipeline.runner import run_pipeline
    from schemalift.pipeline.visible_text import get_strategy

    typer.echo(f"[generate] Running pipeline for {url!r} …", err=True)
    try:
        result = run_pipeline(
            url,
            strategy=get_strategy(policy) if policy else None,
            artifacts_dir=artifacts_dir,
        )
    except PipelineError as exc:
        _dump(exc.to_dict())
        _fail(exc)

    typer.echo(
        f"[generate] {len(result.report.accepted)} accepted {result.report.entity_types}, "
        f"{len(result.report.rejected)} rejected in {result.stats.total_ms} ms",
        err=True,
    )
    _dump(result.to_dict())


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
