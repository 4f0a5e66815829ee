from __future__ import annotations

import logging.config
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Two separate stores: application data and identity/auth
DATABASE_URL = os.getenv("HOMECARE_DATABASE_URL", f"sqlite:///{PROJECT_ROOT / 'homecare.sqlite'}")
AUTH_DATABASE_URL = os.getenv("HOMECARE_AUTH_DATABASE_URL", f"sqlite:///{PROJECT_ROOT / 'homecare_auth.sqlite'}")
SQL_ECHO = os.getenv("HOMECARE_SQL_ECHO", "false").lower() == "true"

# In production: set it in the environment
JWT_SECRET = os.getenv("JWT_SECRET", "CHANGE_ME_DEV_SECRET")
JWT_ALG = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("HOMECARE_CORS_ORIGINS", "http://localhost:5173,http://localhost:8501").split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("HOMECARE_LOG_LEVEL", "INFO").upper()

LOGGING_CONFIG: dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "homecare": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "sqlalchemy.engine": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}


def configure_logging() -> None:
    logging.config.dictConfig(LOGGING_CONFIG)
