"""Logging utilities for ReguSim runs.

Provides color-coded output to distinguish deterministic steps from
narrative (LLM) calls. Config.LOG_LEVEL of WARNING or above silences
everything except errors.
"""

import os
from enum import Enum

from .config import Config


class Color(Enum):
    """ANSI color codes for terminal output."""

    # Colors for operation types
    BLUE = "\033[94m"      # Deterministic operations (network build, contagion step)
    YELLOW = "\033[93m"    # LLM calls (brief, report)
    RED = "\033[91m"       # Errors, fallbacks and retries
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"
LOG_TAG_LLM = "[AI]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if REGUSIM_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("REGUSIM_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


# Numeric thresholds for Config.LOG_LEVEL. Errors always print.
LOG_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def _enabled(level: int) -> bool:
    threshold = LOG_LEVELS.get(str(Config.LOG_LEVEL).upper(), LOG_LEVELS["INFO"])
    return level >= threshold


def _emit(level: int, tag: str, color: Color, message: str) -> None:
    if _enabled(level):
        print(colored(f"{tag} {message}", color))


def log_deterministic(message: str) -> None:
    """Log a deterministic operation such as a contagion step (blue)."""
    _emit(LOG_LEVELS["INFO"], LOG_TAG_DETERMINISTIC, Color.BLUE, message)


def log_llm(message: str) -> None:
    """Log a narrative request (yellow)."""
    _emit(LOG_LEVELS["INFO"], LOG_TAG_LLM, Color.YELLOW, message)


def log_error(message: str) -> None:
    """Log an error, fallback or retry (red). Never suppressed."""
    _emit(LOG_LEVELS["ERROR"], LOG_TAG_ERROR, Color.RED, message)


def log_success(message: str) -> None:
    _emit(LOG_LEVELS["INFO"], LOG_TAG_SUCCESS, Color.GREEN, message)


def log_info(message: str) -> None:
    _emit(LOG_LEVELS["INFO"], LOG_TAG_INFO, Color.CYAN, message)
