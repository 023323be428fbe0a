import logging
import sys
import time
from contextlib import contextmanager
from typing import Dict

from wcwidth import wcswidth

LOGGER_NAME = "constellation"


class PrettyFormatter(logging.Formatter):
    """Custom formatter with colors and clear step indicators."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    ICONS = {
        'DEBUG': '🔍',
        'INFO': '✅',
        'WARNING': '⚠️ ',
        'ERROR': '❌',
        'CRITICAL': '🔥',
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname, self.RESET)
        icon = self.ICONS.get(record.levelname, '')
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        return (
            f"{self.BOLD}[{timestamp}]{self.RESET} "
            f"{color}{icon} {record.levelname:<8}{self.RESET} │ "
            f"{record.name}: {record.getMessage()}"
        )


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure the package logger with pretty console output."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # calling twice (app + CLI in one process) must not duplicate output
    if not any(isinstance(h.formatter, PrettyFormatter) for h in logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(PrettyFormatter())
        logger.addHandler(console_handler)
    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


def _center_display(s: str, target_cols: int) -> str:
    """Center using terminal display width (handles emoji/double-width chars)."""
    w = wcswidth(s)
    if w < 0:
        w = len(s)

    if w >= target_cols:
        return s

    pad = target_cols - w
    left = pad // 2
    right = pad - left
    return (" " * left) + s + (" " * right)


def log_section(title: str, width: int = 50) -> None:
    """Print a visually distinct section header."""
    border = "═" * width
    print(f"\n\033[1;34m╔{border}╗\033[0m")
    centered = _center_display(title, width - 2)
    print(f"\033[1;34m║\033[0m {centered} \033[1;34m║\033[0m")
    print(f"\033[1;34m╚{border}╝\033[0m\n")


def log_detail(key: str, value) -> None:
    print(f"      \033[90m•\033[0m {key}: \033[1m{value}\033[0m")


class Timer:
    """Context manager for timing pipeline stages, logged at DEBUG."""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.timings: Dict[str, float] = {}

    @contextmanager
    def measure(self, label: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.timings[label] = elapsed
            self.logger.debug("%s: %.4fs", label, elapsed)

    @property
    def total(self) -> float:
        return sum(self.timings.values())
