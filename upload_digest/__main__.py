"""Main entry point for upload-digest CLI."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click
import structlog
from rich.console import Console
from rich.table import Table

from upload_digest import __version__
from upload_digest.core.config import AppConfig, DigestOptions
from upload_digest.core.digest import (
    DIGEST_HEADER,
    ConfigurationError,
    compute_digest,
    default_registry,
)
from upload_digest.core.utils import format_size

logger = structlog.get_logger()


def _configure_logging(colors: bool = False) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


_configure_logging()


def _get_context_objects(ctx: click.Context) -> tuple[AppConfig, Console, bool]:
    return ctx.obj["config"], ctx.obj["console"], ctx.obj["verbose"]


def _output_json(data: dict[str, Any]) -> None:
    # Plain print keeps Rich markup out of JSON output
    print(json.dumps(data, indent=2))


@click.group()
@click.version_option(version=__version__, prog_name="upload-digest")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", "-d", is_flag=True, help="Enable debug output")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["rich", "json", "plain"], case_sensitive=False),
    default="rich",
    help="Output format",
)
@click.pass_context
def main(
    ctx: click.Context,
    config: Path | None,
    verbose: bool,
    debug: bool,
    output: str,
) -> None:
    """Compute Digest headers for HTTP uploads."""
    ctx.ensure_object(dict)

    try:
        app_config = AppConfig.load(config)
    except Exception as e:
        logger.error("config_load_failed", error=str(e))
        sys.exit(1)

    if verbose or debug:
        app_config.log_level = "DEBUG" if debug else "INFO"
    app_config.output_format = output.lower()

    if debug:
        _configure_logging(colors=True)

    console = Console(
        force_terminal=app_config.output_format == "rich",
        no_color=app_config.output_format != "rich",
        width=None if app_config.output_format == "rich" else 120,
    )

    ctx.obj["config"] = app_config
    ctx.obj["console"] = console
    ctx.obj["verbose"] = verbose or debug

    logger.debug("cli_initialized", config=app_config.model_dump(mode="json"))


@main.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    config, console, verbose = _get_context_objects(ctx)

    if config.output_format == "json":
        _output_json({
            "name": "upload-digest",
            "version": __version__,
            "python_version": sys.version.replace("\n", " "),
            "platform": sys.platform,
        })
        return

    console.print(f"upload-digest {__version__}")
    if verbose:
        console.print(f"Python {sys.version}")
        console.print(f"Platform: {sys.platform}")


@main.command()
@click.pass_context
def algorithms(ctx: click.Context) -> None:
    """List the built-in digest algorithms."""
    config, console, _ = _get_context_objects(ctx)
    names = default_registry.names()

    if config.output_format == "json":
        _output_json({"algorithms": names, "default": default_registry.default})
        return

    if config.output_format == "plain":
        for name in names:
            click.echo(name)
        return

    table = Table(title="Digest Algorithms")
    table.add_column("Name", style="cyan")
    table.add_column("Default")
    for name in names:
        table.add_row(name, "yes" if name == default_registry.default else "")
    console.print(table)


@main.command()
@click.argument(
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--algorithm",
    "-a",
    type=str,
    default=None,
    help="Hash algorithm (default: from config, SHA-256)",
)
@click.option(
    "--offset",
    type=click.IntRange(min=0),
    default=0,
    help="Digest the file from this byte offset onward",
)
@click.pass_context
def header(
    ctx: click.Context,
    file_path: Path,
    algorithm: str | None,
    offset: int,
) -> None:
    """Print the Digest header for FILE_PATH."""
    config, console, verbose = _get_context_objects(ctx)

    options = DigestOptions(
        enabled=True,
        algorithm=algorithm if algorithm is not None else config.digest.algorithm,
    )

    try:
        with open(file_path, "rb") as f:
            f.seek(offset)
            result = compute_digest(f, options, chunk_size=config.chunk_size)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"Failed to read file {file_path}: {e}") from e

    # Regular files are always seekable
    assert result is not None
    options.remember(result)

    size = max(file_path.stat().st_size - offset, 0)

    if config.output_format == "json":
        _output_json({
            "file": str(file_path),
            "header": DIGEST_HEADER,
            "algorithm": result.algorithm,
            "value": result.header_value,
            "offset": offset,
            "size": size,
        })
        return

    line = f"{DIGEST_HEADER}: {result.header_value}"
    if config.output_format == "plain":
        click.echo(line)
        return

    console.print(line, markup=False, highlight=False, soft_wrap=True)
    if verbose:
        console.print(f"[dim]{file_path} ({format_size(size)} from offset {offset})[/dim]")


def handle_exception(exc_type: type[BaseException], exc_value: BaseException, exc_traceback: Any) -> None:
    """Handle uncaught exceptions."""
    if issubclass(exc_type, KeyboardInterrupt):
        logger.info("Operation cancelled by user")
        sys.exit(1)

    logger.error(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback),
    )
    sys.exit(1)


if __name__ == "__main__":
    sys.excepthook = handle_exception
    main()
