from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> logging.Logger:
    """Configure root logging for the CLI; library modules only create loggers."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)
    return logging.getLogger("mp3glue")
