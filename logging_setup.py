import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | %(message)s"

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    root = logging.getLogger()
    root.setLevel(log_level)

    fmt = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(fmt)
    handlers = [console]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=1_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(fmt)
        handlers.append(file_handler)

    # Prevent duplicates on reload by replacing handlers
    root.handlers = handlers
