"""
Vault Watcher — forwards filesystem events under the vault root to the
vault's create / modify / delete / rename notifications.

Directory events and anything inside a dot-folder (``.obsidian``, the
settings folder) are ignored.  A move is reported as ``rename`` with the new
path first and the old path second; moving a file in from a dot-folder or
outside the vault is a create, moving it out is a delete.
"""

import logging
import os
import time
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from bm_calendar.services.vault import Vault, VaultFile

logger = logging.getLogger(__name__)


class VaultEventHandler(FileSystemEventHandler):
    """Translates watchdog events into vault notifications."""

    def __init__(self, vault: Vault):
        super().__init__()
        self.vault = vault

    def vault_path(self, raw_path) -> str | None:
        """Vault-relative path for *raw_path*, or None when it isn't watched."""
        full = Path(os.path.abspath(os.fsdecode(raw_path)))
        try:
            rel = full.relative_to(self.vault.root)
        except ValueError:
            return None
        if not rel.parts or any(part.startswith(".") for part in rel.parts[:-1]):
            return None
        return rel.as_posix()

    def _trigger(self, name: str, raw_path) -> None:
        path = self.vault_path(raw_path)
        if path is not None:
            logger.debug("Vault %s: %s", name, path)
            self.vault.trigger(name, VaultFile(path=path))

    def on_created(self, event):
        if not event.is_directory:
            self._trigger("create", event.src_path)

    def on_modified(self, event):
        if not event.is_directory:
            self._trigger("modify", event.src_path)

    def on_deleted(self, event):
        if not event.is_directory:
            self._trigger("delete", event.src_path)

    def on_moved(self, event):
        if event.is_directory:
            return
        old_path = self.vault_path(event.src_path)
        new_path = self.vault_path(event.dest_path)
        if old_path is not None and new_path is not None:
            logger.debug("Vault rename: %s → %s", old_path, new_path)
            self.vault.trigger("rename", VaultFile(path=new_path), old_path)
        elif new_path is not None:
            self.vault.trigger("create", VaultFile(path=new_path))
        elif old_path is not None:
            self.vault.trigger("delete", VaultFile(path=old_path))


class VaultWatcher:
    """Runs a watchdog observer over the whole vault."""

    def __init__(self, vault: Vault):
        self.vault = vault
        self.handler = VaultEventHandler(vault)
        self.observer = None

    def start(self) -> None:
        if self.observer is not None:
            return
        self.observer = Observer()
        self.observer.schedule(self.handler, str(self.vault.root), recursive=True)
        self.observer.daemon = True
        self.observer.start()
        logger.info("Watching vault %s", self.vault.root)

    def stop(self) -> None:
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join(timeout=5)
        self.observer = None
        logger.info("Vault watcher stopped.")

    def watch(self) -> None:
        """Block until interrupted; the observer delivers events meanwhile."""
        self.start()
        try:
            while True:
                time.sleep(1)
        finally:
            self.stop()
