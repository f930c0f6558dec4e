import html
import logging
import os
import sys

# Define custom logging levels
PROGRESS_LEVEL = 22
SUCCESS_LEVEL = 25
FAILURE_LEVEL = 45

# Add custom levels to logging module
logging.addLevelName(PROGRESS_LEVEL, "PROGRESS")
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")
logging.addLevelName(FAILURE_LEVEL, "FAILURE")

OUTPUT_TEXT = "text"
OUTPUT_MARKUP = "markup"


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds color codes to log messages based on log level."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "PROGRESS": "\033[94m",  # Bright Blue
        "SUCCESS": "\033[92m",  # Bright Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "FAILURE": "\033[91m",  # Bright Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        # Only add colors if output is to a terminal
        if sys.stderr.isatty():
            level_color = self.COLORS.get(record.levelname, "")
            reset_color = self.COLORS["RESET"]
            return f"{level_color}{message}{reset_color}"

        return message


class MarkupFormatter(logging.Formatter):
    """Formatter for non-interactive (web gateway) output: escaped HTML lines."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return html.escape(message).replace("\n", "<br />\n") + "<br />"


def detect_output_format() -> str:
    """
    Pick the console output format for the current execution context.

    A CGI gateway sets ``GATEWAY_INTERFACE``; output there is rendered by a
    browser and gets escaped markup. Everything else is line-oriented text.
    """
    if os.environ.get("GATEWAY_INTERFACE"):
        return OUTPUT_MARKUP
    return OUTPUT_TEXT


def setup_colored_logging(level: int = logging.INFO, output_format: str = None) -> None:
    """
    Configure console logging for the application.

    Args:
        level: Logging level (default: logging.INFO)
        output_format: "text" or "markup"; detected from the environment when None
    """
    output_format = output_format or detect_output_format()
    fmt = "%(asctime)s - %(levelname)s - %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    if output_format == OUTPUT_MARKUP:
        formatter = MarkupFormatter(fmt=fmt, datefmt=datefmt)
        console_handler = logging.StreamHandler(sys.stdout)
    else:
        formatter = ColoredFormatter(fmt=fmt, datefmt=datefmt)
        console_handler = logging.StreamHandler(sys.stderr)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


class EnhancedLogger:
    """Enhanced logger wrapper with custom level methods."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def debug(self, msg, *args, **kwargs):
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self._logger.info(msg, *args, **kwargs)

    def progress(self, msg, *args, **kwargs):
        """Log with PROGRESS level (bright blue) - progress updates."""
        self._logger.log(PROGRESS_LEVEL, msg, *args, **kwargs)

    def success(self, msg, *args, **kwargs):
        """Log with SUCCESS level (bright green) - successful operations."""
        self._logger.log(SUCCESS_LEVEL, msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self._logger.error(msg, *args, **kwargs)

    def failure(self, msg, *args, **kwargs):
        """Log with FAILURE level (bright red) - run-halting failures."""
        self._logger.log(FAILURE_LEVEL, msg, *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self._logger.critical(msg, *args, **kwargs)

    # Delegate other logger methods
    def __getattr__(self, name):
        return getattr(self._logger, name)


def get_colored_logger(name: str) -> EnhancedLogger:
    """
    Get an enhanced logger instance with colored output support and custom levels.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Enhanced logger instance with custom level methods
    """
    return EnhancedLogger(logging.getLogger(name))
