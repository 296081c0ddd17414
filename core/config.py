import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


# ==============================
# DATABASE
# ==============================
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    DATABASE_URL = "sqlite+aiosqlite:///hub.db"
else:
    # Hosted providers still hand out 'postgres://' URLs
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+asyncpg://", 1)
    elif DATABASE_URL.startswith("postgresql://"):
        DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)

DB_POOL_SIZE = _int_env("DB_POOL_SIZE", 10)
STORE_TIMEOUT_SECONDS = _float_env("STORE_TIMEOUT_SECONDS", 10.0)

# ==============================
# JANITOR
# ==============================
JANITOR_ENABLED = os.getenv("JANITOR_ENABLED", "true").lower() in ("1", "true", "yes")
JANITOR_INTERVAL = _int_env("JANITOR_INTERVAL", 60)
JANITOR_CONCURRENCY = _int_env("JANITOR_CONCURRENCY", 4)

GAP_THRESHOLD = _int_env("GAP_THRESHOLD", 3)
STRIKE_LIMIT = _int_env("STRIKE_LIMIT", 4)

# ==============================
# HUB CYCLE
# ==============================
RESET_LEAD_MINUTES = _int_env("RESET_LEAD_MINUTES", 60)
ADMIN_FOLDER_CAP = _int_env("ADMIN_FOLDER_CAP", 5)
ADMIN_CODE_PREFIX = os.getenv("ADMIN_CODE_PREFIX", "Hub")

# ==============================
# OPERATOR ALERTS
# ==============================
ALERT_BOT_TOKEN = os.getenv("ALERT_BOT_TOKEN")
ALERT_CHAT_ID = os.getenv("ALERT_CHAT_ID")

# ==============================
# SERVER / LOGGING
# ==============================
PORT = _int_env("PORT", 8000)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
# "auto" colours only when stdout is a terminal
LOG_COLOR = os.getenv("LOG_COLOR", "auto").lower()
