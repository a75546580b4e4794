"""Command line entry points: headless engine and status API."""

import logging
from pathlib import Path

import click
import uvicorn

from felixcheck.config import configure_logging, settings
from felixcheck.engine import CheckEngine
from felixcheck.registry import load_registry, register_all
from felixcheck.sinks import LogSink

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--log-level",
    default=settings.LOG_LEVEL,
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Root log level",
)
def main(log_level):
    """Schedule health checks and report their results."""
    configure_logging(log_level)


@main.command()
@click.option(
    "--checks",
    "checks_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Bindings file (defaults to FELIXCHECK_CHECKS_PATH)",
)
@click.option("--workers", type=int, default=settings.WORKERS, show_default=True, help="Scheduler threads")
def run(checks_path, workers):
    """Run every binding and log each result until SIGINT/SIGTERM."""
    reg = load_registry(checks_path)
    engine = CheckEngine(sinks=[LogSink()], workers=workers)
    register_all(engine, reg)
    logger.info("Running %d checks, waiting for termination signal", len(engine.bindings()))
    engine.run_forever()


@main.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Bind address")
@click.option("--port", type=int, default=8000, show_default=True, help="Bind port")
def serve(host, port):
    """Run the engine behind the status API."""
    uvicorn.run("felixcheck.main:app", host=host, port=port)


if __name__ == "__main__":
    main()
