"""Command-line entry point for the SDLTM to TMX converter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from sdltm2tmx import config
from sdltm2tmx.converter import convert
from sdltm2tmx.errors import ConfigurationError

app = typer.Typer(
    name="sdltm2tmx",
    help="Convert an SDLTM translation memory into a TMX 1.4 document.",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        try:
            tool = config.get_tool_identity()
        except ConfigurationError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"{tool.product_name} {tool.version}")
        raise typer.Exit()


@app.command()
def main(
    sdltm: Path = typer.Argument(..., help="SDLTM file to read"),
    tmx: Path = typer.Argument(..., help="TMX file to write (replaced if it exists)"),
    product_name: Optional[str] = typer.Option(
        None, "--product-name", help="Value for the header creationtool attribute"
    ),
    tool_version: Optional[str] = typer.Option(
        None, "--tool-version", help="Value for the header creationtoolversion attribute"
    ),
    keep_partial: bool = typer.Option(
        False, "--keep-partial", help="Keep the partially written TMX if conversion fails"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every translation unit"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show the tool version and exit",
    ),
) -> None:
    """Convert SDLTM to TMX."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not sdltm.is_file():
        typer.echo(f"Error: File not found: {sdltm}", err=True)
        raise typer.Exit(code=1)

    result = convert(sdltm, tmx, product_name=product_name, version=tool_version)
    if not result.ok:
        if not keep_partial:
            tmx.unlink(missing_ok=True)
        typer.echo(f"Error: {result.reason}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"{result.count} translation units written to {tmx}")


if __name__ == "__main__":
    app()
