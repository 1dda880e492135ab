import logging

from rich.console import Console
from rich.logging import RichHandler

# Client libraries that log every request at DEBUG/INFO
_CHATTY_LOGGERS = ("urllib3", "kubernetes.client.rest", "google.auth")


def level_for_verbosity(verbosity: int) -> int:
    """Maps a -v count to a logging level: 0 warning, 1 info, 2+ debug."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logger(
    name: str = "skyactuator", level: int = logging.WARNING
) -> logging.Logger:
    """
    Returns the package logger, writing timestamped records to stderr.

    Repeated calls only change levels. Third-party HTTP client loggers stay
    at WARNING unless debugging.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=level <= logging.DEBUG,
            log_time_format="[%Y-%m-%d %H:%M:%S]",
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    logger.setLevel(level)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for chatty in _CHATTY_LOGGERS:
        logging.getLogger(chatty).setLevel(library_level)

    return logger


logger = setup_logger()
