"""Financing checker CLI — entry-point for local analysis and the API server.

Usage:
    python cli/main.py --help

Commands:
    analyze   → fetch a URL and classify it
    text      → classify a piece of text without fetching anything
    serve     → run the HTTP API under uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from checker.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer

from checker.analysis import Match, analyze_content
from checker.config import configure_logging, settings
from checker.pipeline import NON_USER, PROACTIVE
from checker.scraper.errors import FetchError

app = typer.Typer(
    name="checker",
    help="Website financing checker CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    configure_logging("DEBUG" if verbose else None)


def _echo_matches(matches: list[Match]) -> None:
    for m in matches:
        flag = "*" if m.is_high_confidence else " "
        line = f"  {flag} {m.keyword:<24} x{m.count}"
        if m.examples:
            line += "  e.g. " + ", ".join(repr(e) for e in m.examples)
        typer.echo(line)


# ---------------------------------------------------------------------------
# analyze — full pipeline
# ---------------------------------------------------------------------------
@app.command("analyze")
def analyze(
    url: str = typer.Option(..., help="URL to analyze."),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """Fetch a URL and classify whether it promotes financing."""
    from checker.pipeline import analyze_website

    if not as_json:
        typer.echo(f"[analyze] Fetching {url!r} …")
    try:
        report = analyze_website(url)
    except FetchError as exc:
        typer.echo(f"[analyze] Failed ({exc.kind.value}): {exc}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return

    typer.echo(f"[analyze] Classification : {report.classification}")
    typer.echo(f"[analyze] Confidence     : {report.confidence:.3f}")
    typer.echo(f"[analyze] Method         : {report.method.value}")
    typer.echo(f"[analyze] Content length : {report.content_length}")
    typer.echo(f"[analyze] Matches        : {report.total_matches}")
    _echo_matches(report.matches)


# ---------------------------------------------------------------------------
# text — analyzer only
# ---------------------------------------------------------------------------
@app.command("text")
def text_cmd(
    text: Optional[str] = typer.Option(None, "--text", help="Text to analyze."),
    file: Optional[Path] = typer.Option(
        None, "--file", exists=True, dir_okay=False, help="Read text from a file."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Classify a piece of text (no network access)."""
    if (text is None) == (file is None):
        typer.echo("[text] Provide exactly one of --text or --file.", err=True)
        raise typer.Exit(2)

    content = text if text is not None else file.read_text(encoding="utf-8")  # type: ignore[union-attr]
    result = analyze_content(content)

    if as_json:
        payload = {
            "is_detected": result.is_detected,
            "confidence": result.confidence,
            "matched_keywords": [m.to_dict() for m in result.matches],
            "total_matches": result.total_matches,
            "high_confidence_matches": result.high_confidence_match_count,
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    label = PROACTIVE if result.is_detected else NON_USER
    typer.echo(f"[text] Classification : {label}")
    typer.echo(f"[text] Confidence     : {result.confidence:.3f}")
    typer.echo(f"[text] Matches        : {result.total_matches}")
    _echo_matches(result.matches)


# ---------------------------------------------------------------------------
# serve — HTTP API
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option(settings.host, help="Bind address."),
    port: int = typer.Option(settings.port, help="Bind port."),
    reload: bool = typer.Option(False, help="Auto-reload on code changes."),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    typer.echo(f"[serve] Listening on http://{host}:{port}")
    uvicorn.run("checker.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
