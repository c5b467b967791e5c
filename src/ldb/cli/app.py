from typing import Optional

import typer

from ldb.config import get_config, init_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import ldb

        typer.echo(f"ldb version: {ldb.__version__}")
        raise typer.Exit()


app = typer.Typer(name="ldb", no_args_is_help=True)


@app.callback()
def app_callback(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Override the configured log level.",
        envvar="LDB_LOG_LEVEL",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """ldb - declarative collection schemas for embedded SQL databases."""
    config = get_config()
    if log_level:
        config = config.model_copy(update={"log_level": log_level})
    init_logging(config)
