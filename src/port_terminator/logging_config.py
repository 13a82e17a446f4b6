"""
Console logging for the command line tool.

The library itself only creates module loggers; handlers are installed here,
once, when the CLI starts.
"""

import logging
import sys
import threading
from typing import Optional, TextIO

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as exc:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            _MODULE_LOGGER.debug("Handler close failed: %s", exc)
    logger.handlers = []


def _console_level(verbose: bool, silent: bool) -> int:
    if silent:
        return logging.WARNING
    if verbose:
        return logging.DEBUG
    return logging.INFO


def _build_console_handler(level: int, stream: Optional[TextIO]) -> logging.Handler:
    # stdout is reserved for reports, so log lines go to stderr
    console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.setLevel(level)
    return console_handler


def _suppress_noisy_third_parties() -> None:
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def setup_logging(verbose: bool = False, silent: bool = False, stream: Optional[TextIO] = None) -> None:
    """Replace root handlers with a single message-only console handler.

    ``silent`` wins over ``verbose``: only warnings and errors are shown.
    """
    with _config_lock:
        root_logger = logging.getLogger()
        _close_handlers(root_logger)

        level = _console_level(verbose, silent)
        root_logger.addHandler(_build_console_handler(level, stream))
        root_logger.setLevel(level)
        _suppress_noisy_third_parties()


__all__ = ["setup_logging"]
