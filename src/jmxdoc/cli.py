"""Command line interface for jmxdoc.

Commands:
---------
- validate PATH: Load and fully validate a JMX document (exit 1 on failure)
- info PATH: Object counts and content hash of a JMX document
- migrate SRC DST: Load a document of any supported version and save it at the current version

Every command accepts ``--config`` pointing to a TOML settings file; logging is
configured from its ``[logging]`` section (plus ``JMXDOC_`` env overrides).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from jmxdoc.config import Settings, load_settings
from jmxdoc.domain.exceptions import JMXError
from jmxdoc.migrate import CURRENT_VERSION
from jmxdoc.serialize import document_to_dict
from jmxdoc.session import load_document, save_document
from jmxdoc.utils import compute_hash, configure_logger

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Build, validate and migrate JMX experiment protocol documents.",
)

ConfigOption = typer.Option(None, "--config", "-c", help="TOML settings file", exists=True, dir_okay=False)


def _setup(config: Optional[Path]) -> Settings:
    settings = load_settings(config)
    configure_logger("jmxdoc", level=settings.logging.level, structured=settings.logging.structured)
    logger.debug(f"Settings: {settings.model_dump()}")
    return settings


def _fail(exc: JMXError) -> None:
    typer.echo(f"Error [{exc.error_code}]: {exc}", err=True)
    if exc.hint:
        typer.echo(f"Hint: {exc.hint}", err=True)
    raise typer.Exit(code=1)


@app.command("validate")
def validate(
    path: Path = typer.Argument(..., help="JMX document (.jmx)"),
    config: Optional[Path] = ConfigOption,
):
    """Load PATH and check every rule; exit code 1 if it is invalid."""
    _setup(config)
    try:
        load_document(path)
    except JMXError as exc:
        _fail(exc)
    typer.echo(f"OK: {path}")


@app.command("info")
def info(
    path: Path = typer.Argument(..., help="JMX document (.jmx)"),
    config: Optional[Path] = ConfigOption,
):
    """Print object counts and the content hash of PATH."""
    _setup(config)
    try:
        doc = load_document(path)
    except JMXError as exc:
        _fail(exc)

    n_targets = sum(len(s.targets) for s in doc.target_sets)
    n_trials = sum(1 for s in doc.trial_sets for _ in s.iter_trials())
    typer.echo(f"Document: {path}")
    typer.echo(f"  channel configurations: {len(doc.chancfgs)}")
    typer.echo(f"  perturbations:          {len(doc.perts)}")
    typer.echo(f"  target sets:            {len(doc.target_sets)} ({n_targets} targets)")
    typer.echo(f"  trial sets:             {len(doc.trial_sets)} ({n_trials} trials)")
    typer.echo(f"  hash:                   {compute_hash(document_to_dict(doc))}")


@app.command("migrate")
def migrate(
    src: Path = typer.Argument(..., help="JMX document to upgrade"),
    dst: Path = typer.Argument(..., help="Output path (.jmx)"),
    config: Optional[Path] = ConfigOption,
):
    """Rewrite SRC at the current document version into DST."""
    settings = _setup(config)
    try:
        doc = load_document(src)
        save_document(doc, dst, indent=settings.io.indent, create_parent_dirs=settings.io.create_parent_dirs)
    except JMXError as exc:
        _fail(exc)
    typer.echo(f"Wrote {dst} (version {CURRENT_VERSION})")


if __name__ == "__main__":
    app()
