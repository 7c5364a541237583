"""
Central configuration for BM Calendar.

All paths and tuning knobs live here.  Values are read from environment
variables (or a .env file) with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ── Vault ─────────────────────────────────────────────────────────────
# Root directory the log folder paths are resolved against
VAULT_PATH = Path(os.getenv("BM_VAULT_PATH", "."))
# JSON file holding the persisted plugin settings
SETTINGS_FILE = Path(
    os.getenv("BM_SETTINGS_FILE", ".bm_calendar/data.json")
)

# ── Settings defaults ─────────────────────────────────────────────────
DEFAULT_LOGS_FOLDER = os.getenv("BM_DEFAULT_LOGS_FOLDER", "Logs/BM")
DEFAULT_DEBUG_MODE = os.getenv("BM_DEFAULT_DEBUG_MODE", "false").lower() in (
    "1",
    "true",
    "yes",
)

# ── Watcher ───────────────────────────────────────────────────────────
# Quiet period before a burst of change notifications triggers one reload.
# 0 reloads on every notification.
RELOAD_DEBOUNCE_SECONDS = float(os.getenv("RELOAD_DEBOUNCE_SECONDS", "0"))

# ── Web panel ─────────────────────────────────────────────────────────
WEB_HOST = os.getenv("WEB_HOST", "127.0.0.1")
WEB_PORT = int(os.getenv("WEB_PORT", "5057"))

# ── Logging ───────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "bm_calendar.log")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", os.urandom(32).hex())
