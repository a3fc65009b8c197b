"""
Centralized error handling and logging for battle setup generation.

This module provides:
- A shared "armyforge" logger with file + console handlers
- Custom exception types for the caller-visible failure categories
- Helpers for logging errors with context
"""
import logging
import traceback
from datetime import datetime
from typing import Optional

from settings import LOG_DIR

LOGGER_NAME = "armyforge"

logger = logging.getLogger(LOGGER_NAME)
logger.setLevel(logging.DEBUG)

# Prevent duplicate handlers
if not logger.handlers:
    # Console handler for warnings/errors
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter('%(levelname)s: %(message)s')
    )
    logger.addHandler(console_handler)

    # File handler for detailed logs
    try:
        LOG_DIR.mkdir(exist_ok=True)
        log_file = LOG_DIR / f"armyforge_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
        logger.addHandler(file_handler)
    except OSError as e:
        # Read-only installs still get console logging
        logger.warning(f"File logging disabled: {e}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a child of the shared logger.

    Args:
        name: Usually the module's ``__name__``

    Returns:
        Logger that propagates to the "armyforge" handlers
    """
    return logger.getChild(name)


class GameError(Exception):
    """Base exception for battle-setup errors."""
    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or message


class ConfigError(GameError):
    """Error reading or parsing configuration."""
    pass


class ValidationError(ConfigError):
    """Error when a configuration value is out of range."""
    pass


class CatalogError(GameError):
    """Error loading character/class data."""
    pass


class CompositionError(GameError):
    """Invalid roster request (e.g. non-positive unit count)."""
    pass


class FormationError(GameError):
    """Invalid placement request (non-positive count, degenerate area)."""
    pass


class TeamConfigurationError(GameError):
    """No valid team split exists for the requested players/winners."""
    pass


def log_error(error: Exception, context: str = "") -> None:
    """
    Log an error with context information.

    Args:
        error: The exception that occurred
        context: Where the error occurred (e.g., "team_battle", "load_catalog")
    """
    error_type = type(error).__name__
    trace = traceback.format_exc()
    logger.error(
        f"Error in {context}: {error_type}: {error}\n{trace}",
        exc_info=True,
    )
