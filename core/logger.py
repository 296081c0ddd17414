import logging
import sys
from core.config import LOG_COLOR, LOG_LEVEL

PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-12s | %(message)s"
QUIET_LIBRARIES = ("sqlalchemy.engine", "aiosqlite", "httpx", "httpcore", "telegram")


class ColoredFormatter(logging.Formatter):
    RESET = "\033[0m"
    CYAN = "\033[36m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    BOLD_RED = "\033[1;31m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"

    LEVEL_COLORS = {
        logging.DEBUG: CYAN,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def __init__(self):
        super().__init__(datefmt="%H:%M:%S")
        self._formatters = {}

    def format(self, record):
        formatter = self._formatters.get(record.levelno)
        if formatter is None:
            color = self.LEVEL_COLORS.get(record.levelno, self.WHITE)
            fmt = (
                f"{self.GRAY}%(asctime)s{self.RESET} │ {color}%(levelname)-8s{self.RESET} │ "
                f"{self.CYAN}%(name)-12s{self.RESET} │ {color}%(message)s{self.RESET}"
            )
            formatter = self._formatters[record.levelno] = logging.Formatter(fmt, datefmt=self.datefmt)
        return formatter.format(record)


def _use_color(stream) -> bool:
    if LOG_COLOR in ("1", "true", "yes", "always"):
        return True
    if LOG_COLOR in ("0", "false", "no", "never"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def setup_logger(name: str) -> logging.Logger:
    """Per-module logger; container logs get the plain format."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        if _use_color(sys.stdout):
            handler.setFormatter(ColoredFormatter())
        else:
            handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
        logger.propagate = False

    for noisy in QUIET_LIBRARIES:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
