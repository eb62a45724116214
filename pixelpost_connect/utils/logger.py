import logging
import sys
from typing import Optional
from pathlib import Path
from ..config import get_settings

def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get or create logger with consistent configuration.

    Args:
        name: Logger name (usually __name__ of calling module)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name or __name__)

    # Only configure if no handlers are set
    if not logger.handlers:
        settings = get_settings()
        log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
        formatter = logging.Formatter(settings.LOG_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)
        logger.setLevel(log_level)

        try:
            log_dir = Path('logs')
            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / settings.LOG_FILE

            file_handler = logging.FileHandler(str(log_path))
            file_handler.setFormatter(formatter)
            file_handler.setLevel(log_level)
            logger.addHandler(file_handler)

            logger.debug(f"Logger initialized for {name}, writing to {log_path.absolute()}")

        except OSError as e:
            # Console logging keeps working without the file handler
            logger.warning(f"Error configuring file logger: {str(e)}")

    return logger

def preview(secret: Optional[str]) -> Optional[str]:
    """Shorten a secret value so it can appear in debug logs."""
    if not secret:
        return None
    if len(secret) <= 10:
        return "***"
    return f"{secret[:5]}...{secret[-5:]}"
