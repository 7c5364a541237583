"""
Orchestrator — the plugin object that ties settings, vault, and calendar
together.

  1. load settings   — merge the stored JSON with defaults
  2. activate_view   — "Open Calendar": build the controller once, subscribe
                       it to vault changes, and run the first load
  3. update_settings — persist a change and reload from the new folder
  4. close           — drop vault subscriptions
"""

import logging
from pathlib import Path

from bm_calendar import config
from bm_calendar.services.calendar_view import CalendarController
from bm_calendar.services.settings_store import Settings, load_settings, save_settings
from bm_calendar.services.vault import Vault

logger = logging.getLogger(__name__)

DISPLAY_TEXT = "BW Calendar"


class CalendarPlugin:
    """Top-level plugin that coordinates the calendar services."""

    def __init__(
        self,
        vault_path: Path | None = None,
        settings_path: Path | None = None,
        vault: Vault | None = None,
        controller_factory=CalendarController,
        setup_logging: bool = True,
    ):
        self.settings_path = Path(settings_path or config.SETTINGS_FILE)
        self.vault = vault or Vault(vault_path)
        self.settings = load_settings(self.settings_path)
        self._controller_factory = controller_factory
        self.controller: CalendarController | None = None
        if setup_logging:
            self._setup_logging()
        self._apply_debug_mode()

    def _setup_logging(self) -> None:
        logging.basicConfig(
            level=getattr(logging, config.LOG_LEVEL, logging.INFO),
            format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
            handlers=[
                logging.StreamHandler(),
                logging.FileHandler(config.LOG_FILE),
            ],
        )

    def _apply_debug_mode(self) -> None:
        package_logger = logging.getLogger("bm_calendar")
        if self.settings.debug_mode:
            package_logger.setLevel(logging.DEBUG)
        else:
            package_logger.setLevel(logging.NOTSET)

    # ── View lifecycle ────────────────────────────────────────────────

    def activate_view(self) -> CalendarController:
        """Open (or reveal) the calendar; the first call loads the events."""
        if self.controller is None:
            logger.info("Opening %s on %s", DISPLAY_TEXT, self.settings.logs_folder)
            self.controller = self._controller_factory(self.vault, self.settings)
            self.controller.subscribe()
            self.controller.reload()
        return self.controller

    def close(self) -> None:
        if self.controller is not None:
            self.controller.unsubscribe()
            self.controller = None

    # ── Settings ──────────────────────────────────────────────────────

    def update_settings(self, **changes) -> Settings:
        """Apply and save a settings change; a new log folder triggers a reload."""
        old = self.settings
        self.settings = old.with_changes(**changes)
        save_settings(self.settings, self.settings_path)
        self._apply_debug_mode()

        if self.controller is not None:
            if self.settings.logs_folder != old.logs_folder:
                self.controller.update_settings(self.settings)
            else:
                self.controller.refresh_settings(self.settings)
        return self.settings
