"""
Helmsman logging setup (structlog).

Every helmsman module logs through a module-level ``structlog.get_logger()`` with
event names and key/value context (command_registered, command_resolved,
options_rejected, command_dispatched, ...). Nothing is configured at import time;
the host application owns the structlog configuration.

configure() is the default used by helmsman.dispatch.run when the host has not
configured structlog: warnings and above, rendered on stderr so that command
output on stdout stays clean. The threshold can be changed with the
HELMSMAN_LOG_LEVEL environment variable.
"""
import logging
import os
import sys

import structlog

ENVIRONMENT_VARIABLE = "HELMSMAN_LOG_LEVEL"


def configure(level=None, /, *, json_format=False, stream=None):
    """
    Configure structlog for a helmsman-driven program.

    Parameters
    - level: level name ("DEBUG", "INFO", "WARNING", "ERROR"); defaults to
      $HELMSMAN_LOG_LEVEL, then "WARNING".
    - json_format: render JSON lines instead of the console renderer.
    - stream: file object receiving log lines (default: sys.stderr).
    """
    level = (level or os.environ.get(ENVIRONMENT_VARIABLE) or "WARNING").upper()
    if not isinstance(threshold := logging.getLevelName(level), int):
        raise ValueError("unknown log level %r" % level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


__all__ = (
    "configure",
)
