# barbershop/config.py

import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barbershop.db")

# "sql" or "memory"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql").lower()

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Daily booking grid: SLOT_COUNT slots of SLOT_MINUTES starting at SLOT_DAY_START
SLOT_DAY_START = os.getenv("SLOT_DAY_START", "09:00")
SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "30"))
SLOT_COUNT = int(os.getenv("SLOT_COUNT", "18"))

INVITE_TTL_HOURS = int(os.getenv("INVITE_TTL_HOURS", "48"))

COMPLETED_SERVICES_PAGE_LIMIT = int(os.getenv("COMPLETED_SERVICES_PAGE_LIMIT", "100"))
COMPLETED_SERVICES_MAX_LIMIT = 500
