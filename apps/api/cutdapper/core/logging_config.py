"""Console logging setup shared by the API and the projection tooling."""

import logging.config
from typing import Any, Dict


def configure_logging(level: str = "INFO") -> None:
    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": level.upper(),
            },
        },
        "loggers": {
            "cutdapper": {"handlers": ["console"], "level": level.upper(), "propagate": False},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)
