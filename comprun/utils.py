import os
import time
import logging
from typing import Optional

import typer

SOURCE_SUFFIX = ".c"
OBJECT_SUFFIX = ".o"

# Between INFO and WARNING: always shown, rendered bold.
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_LEVEL_STYLES = {
    logging.DEBUG: {"dim": True},
    logging.INFO: {"fg": typer.colors.BLUE},
    SUCCESS: {"bold": True},
    logging.WARNING: {"fg": typer.colors.YELLOW},
    logging.ERROR: {"fg": typer.colors.BRIGHT_RED},
    logging.CRITICAL: {"fg": typer.colors.BRIGHT_RED, "bold": True},
}


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        style = _LEVEL_STYLES.get(record.levelno)
        if not style:
            return message
        return typer.style(message, **style)


class EchoHandler(logging.Handler):
    """Write records through typer.echo so colors are stripped off-terminal."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            typer.echo(self.format(record))
        except Exception:
            self.handleError(record)


def setup_logging(verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger("comprun")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = EchoHandler()
    handler.setFormatter(ColorFormatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO if verbose else SUCCESS)
    return logger


def strip_suffix(name: str, suffix: str = SOURCE_SUFFIX) -> str:
    if name.endswith(suffix) and len(name) > len(suffix):
        return name[: -len(suffix)]
    return name


def as_local_path(name: str) -> str:
    """Prefix bare names with ./ so they are never looked up on PATH."""
    if os.path.dirname(name):
        return name
    return os.path.join(".", name)


def same_file(a: str, b: str) -> bool:
    return os.path.realpath(a) == os.path.realpath(b)


def get_mtime(path: str) -> Optional[float]:
    try:
        return os.stat(path).st_mtime
    except FileNotFoundError:
        return None


def wait_for_file(path: str, retries: int = 5, sleep_s: float = 0.1) -> bool:
    """Wait briefly for a file to appear.

    Compilers can exit before the produced file is visible through the
    filesystem metadata, so give it a few checks before declaring it missing.
    """
    for _ in range(max(1, retries)):
        if os.path.isfile(path):
            return True
        time.sleep(sleep_s)
    return os.path.isfile(path)
