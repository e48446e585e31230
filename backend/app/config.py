# app/config.py
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


# --- Runtime environment ---
APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Database URL from environment ---
DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://postgres:postgres@db:5432/carecall")

# --- Triage ---
CLASSIFICATION_TIMEOUT_SECONDS = float(os.getenv("CLASSIFICATION_TIMEOUT_SECONDS", "2.0"))

# Administrative override: lets status updates bypass the transition table
ALLOW_STATUS_OVERRIDE = _env_flag("ALLOW_STATUS_OVERRIDE")
