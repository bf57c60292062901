"""Logging configuration for the command-line tools.

WHY: Library modules only create loggers; whoever runs the program decides
where records go. The CLI needs a single readable stream on stderr so
stdout stays free for document output that may be piped.

HOW: setup_logging() replaces any handlers on the root logger with one
stderr StreamHandler and quiets chatty HTTP client loggers.

RULES:
- Never called from library code, only from entry points
- Calling it twice does not duplicate handlers
"""

from __future__ import annotations

import logging
import sys

DEFAULT_LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"


def setup_logging(level: int = logging.INFO, log_format: str = DEFAULT_LOG_FORMAT) -> None:
    """Configure the root logger to write to stderr at the given level."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    root.setLevel(level)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(log_format))
    root.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
