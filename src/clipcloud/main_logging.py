"""Logging configuration for the clipcloud CLI."""
import logging

# Libraries whose per-request and per-packet logging drowns out sync decisions.
NOISY_LOGGERS = ("httpx", "httpcore", "socketio", "engineio")


def configure_logging(verbose: bool) -> None:
    """Configure logging for a CLI run.

    clipcloud loggers follow the verbosity: DEBUG when verbose, WARNING
    otherwise. The HTTP and Socket.IO libraries are never raised above INFO
    so a verbose run shows clipboard decisions rather than wire traffic.

    Args:
        verbose: Enable DEBUG output for clipcloud itself.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s",
        handlers=[logging.StreamHandler()],
    )
    library_level = logging.INFO if verbose else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
