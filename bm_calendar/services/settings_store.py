"""
Settings store — the two user-facing knobs, persisted as JSON.

The file uses the same keys as the host plugin's data file
(``logsFolder``, ``debugMode``) so an existing one can be pointed at.
"""

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path

from bm_calendar import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    logs_folder: str = config.DEFAULT_LOGS_FOLDER
    debug_mode: bool = config.DEFAULT_DEBUG_MODE

    def to_dict(self) -> dict:
        return {"logsFolder": self.logs_folder, "debugMode": self.debug_mode}

    def with_changes(self, **changes) -> "Settings":
        return replace(self, **changes)


def load_settings(path: Path | None = None) -> Settings:
    """Load stored settings merged over the defaults."""
    path = Path(path or config.SETTINGS_FILE)
    defaults = Settings()
    if not path.exists():
        return defaults

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.error("Could not read settings from %s; using defaults", path)
        return defaults
    if not isinstance(data, dict):
        logger.error("Settings file %s is not a JSON object; using defaults", path)
        return defaults

    logs_folder = data.get("logsFolder", defaults.logs_folder)
    debug_mode = data.get("debugMode", defaults.debug_mode)
    return Settings(
        logs_folder=str(logs_folder) if logs_folder is not None else defaults.logs_folder,
        debug_mode=bool(debug_mode),
    )


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    path = Path(path or config.SETTINGS_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
    logger.debug("Settings saved → %s", path)
    return path
