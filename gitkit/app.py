"""Bootstrap: logging setup and repository wiring."""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

import structlog
from pydantic import ValidationError

from gitkit.core.config import GitKitConfig
from gitkit.exceptions import ConfigError
from gitkit.git.invoker import GitInvoker
from gitkit.git.repository import Repository

logger = structlog.get_logger()


def load_config() -> GitKitConfig:
    """Read GITKIT_* settings, raising ConfigError on invalid values."""
    try:
        return GitKitConfig()
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


# Applied to every event before it reaches a stdlib handler.
_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _handler(
    handler: logging.Handler, renderer: structlog.types.Processor
) -> logging.Handler:
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer))
    return handler


def configure_logging(config: GitKitConfig) -> None:
    """Route structlog through stdlib logging.

    Human-readable events go to stderr so command output on stdout stays
    parseable. With ``log_dir`` set, events are also appended as JSON lines
    to a rotating ``gitkit.log``.
    """
    console = logging.StreamHandler(sys.stderr)
    handlers = [_handler(console, structlog.dev.ConsoleRenderer())]
    if config.log_dir is not None:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            config.log_dir / "gitkit.log",
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
        )
        handlers.append(_handler(rotating, structlog.processors.JSONRenderer()))

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(config.log_level)

    structlog.configure(
        processors=[
            *_PRE_CHAIN,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_repository(
    path: Path | str, config: GitKitConfig | None = None
) -> Repository:
    """Wire a Repository with an invoker built from ``config``."""
    if config is None:
        config = GitKitConfig()
    invoker = GitInvoker(
        binary=config.git_binary, timeout=config.command_timeout_seconds
    )
    logger.debug("repository_built", path=str(path), git_binary=invoker.binary)
    return Repository(path, invoker=invoker, config=config)
