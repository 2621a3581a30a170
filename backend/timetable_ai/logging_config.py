import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from timetable_ai.config import settings

LOG_FILE_NAME = "app.log"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(module)s - %(funcName)s - %(lineno)d - %(message)s"


def setup_logging(log_dir: str | None = None, level: str | None = None) -> None:
    """
    Configures logging for the application.
    Outputs to console and a rotating file with a detailed format.
    Safe to call more than once; handlers are only attached when missing.
    """
    log_dir = log_dir or settings.LOG_DIR
    level_value = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    os.makedirs(log_dir, exist_ok=True)
    log_formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level_value)

    has_file_handler = any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)
    if not has_file_handler:
        # 5MB per file, 2 backups
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE_NAME), maxBytes=1024 * 1024 * 5, backupCount=2
        )
        file_handler.setFormatter(log_formatter)
        root_logger.addHandler(file_handler)

    has_console_handler = any(
        isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout
        for h in root_logger.handlers
    )
    if not has_console_handler:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(log_formatter)
        root_logger.addHandler(console_handler)

    logging.getLogger("timetable_ai").setLevel(level_value)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    # The SDK logs every request at INFO through httpx
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.info("Logging configured successfully (console and file).")


if __name__ == "__main__":
    setup_logging()
    logging.getLogger("timetable_ai.test").warning("This is a warning from timetable_ai.test.")
