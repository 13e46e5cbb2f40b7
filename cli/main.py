"""QuickMark CLI — entry-point for backend operations.

Usage:
    python cli/main.py --help

Commands:
    extract   → fetch a URL and print its bookmark metadata
    serve     → run the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from backend.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json

import typer

from backend.config import settings
from backend.logging_config import configure_logging

app = typer.Typer(
    name="quickmark",
    help="QuickMark bookmark metadata CLI.",
    no_args_is_help=True,
)


@app.command("extract")
def extract(
    url: str = typer.Option(..., help="URL to describe."),
    as_json: bool = typer.Option(False, "--json", help="Print the record as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline steps."),
) -> None:
    """Extract title, description, favicon and preview image for a URL."""
    from backend.scraper.metadata import InvalidURLError, extract_metadata

    configure_logging(settings.log_format, "DEBUG" if verbose else "WARNING", sys.stderr)
    settings.ensure_workspace()

    try:
        result = extract_metadata(url, settings=settings)
    except InvalidURLError as exc:
        typer.echo(f"[extract] {exc}", err=True)
        raise typer.Exit(2)

    if as_json:
        typer.echo(json.dumps({"url": url, **result.to_dict()}, indent=2))
        return

    typer.echo(f"[extract] Title       : {result.title}")
    typer.echo(f"[extract] Description : {result.description or '(none)'}")
    typer.echo(f"[extract] Favicon     : {result.favicon_ref or '(none)'}")
    typer.echo(f"[extract] Preview     : {result.preview_image_ref or '(none)'}")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(9022, help="Port to listen on."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    typer.echo(f"[serve] QuickMark API on http://{host}:{port}")
    uvicorn.run("backend.api.app:app", host=host, port=port, log_config=None)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
