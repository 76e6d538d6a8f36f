import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_DIR = Path(os.getenv("LOG_DIR", str(Path(__file__).parent.parent / "logs")))

# Generation units run on "scenegen_N" worker threads; the thread name ties a line to its unit
LOG_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that log every request at INFO
_NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai", "anthropic", "langchain")


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None):
    """
    Set up centralized logging configuration.
    Configures logging to output to both console and a rotating file.

    Args:
        level: Root level, defaults to LOG_LEVEL or INFO
        log_file: Defaults to LOG_DIR/scenegen.log
    """
    logger = logging.getLogger()
    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())

    # Clear any existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is None:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        log_file = LOG_DIR / "scenegen.log"

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=int(os.getenv("LOG_FILE_MAX_BYTES", str(10*1024*1024))),
        backupCount=int(os.getenv("LOG_FILE_BACKUP_COUNT", "5")),
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging system initialized (file=%s)", log_file)
