# app/logging_config.py

import logging

from app.config import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    handlers = [logging.StreamHandler()]
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, handlers=handlers)
