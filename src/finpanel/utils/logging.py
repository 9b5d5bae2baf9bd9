"""
Logging setup for the batch jobs.

Events are structlog key-value records written to stderr, so job tables
printed by the CLI on stdout stay clean. Python warnings raised during
estimation (statsmodels, pandas) are routed through the same stream.
"""

import logging
import sys
from typing import Any

import structlog

PACKAGE = "finpanel"


def _processors(json_output: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_logging(level: str | int = "INFO", json_output: bool = False) -> None:
    """
    Configure structured logging for a job run.

    Args:
        level: Level name (DEBUG, INFO, ...) or numeric level.
        json_output: Emit one JSON object per event instead of console lines.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(format="%(name)s: %(message)s", stream=sys.stderr, level=level)
    logging.captureWarnings(True)

    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """
    Logger for a module, tagged with its name relative to the package.

    Args:
        name: Module name, usually __name__.
    """
    if name:
        return structlog.get_logger(logger=name.removeprefix(f"{PACKAGE}."))
    return structlog.get_logger()


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind values to every event logged inside the block.

    Example:
        with log_context(project="liq-1990", job="betas"):
            log.info("Estimating")
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
