"""
Vault — the storage collaborator the calendar reads its logs through.

  - Resolving vault-relative paths to files and folders
  - Listing folder children and reading note text
  - Opening a note in the user's editor
  - Dispatching create / modify / delete / rename notifications to subscribers
"""

import logging
import os
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from bm_calendar import config

logger = logging.getLogger(__name__)

VAULT_EVENTS = ("create", "modify", "delete", "rename")


def normalize_path(path: str) -> str:
    """
    Normalise a vault-relative path: forward slashes only, no repeated or
    leading/trailing slashes.  The vault root is ``"/"``.
    """
    path = path.replace("\\", "/").replace("\u00a0", " ")
    path = re.sub(r"/+", "/", path).strip("/")
    return path or "/"


@dataclass
class VaultFile:
    """A markdown (or other) file inside the vault."""
    path: str

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def basename(self) -> str:
        name = self.name
        return name.rsplit(".", 1)[0] if "." in name else name

    @property
    def extension(self) -> str:
        name = self.name
        return name.rsplit(".", 1)[1] if "." in name else ""


@dataclass
class VaultFolder:
    """A folder inside the vault with its direct children."""
    path: str
    children: list = field(default_factory=list)

    @property
    def name(self) -> str:
        return "" if self.path == "/" else self.path.rsplit("/", 1)[-1]


def _default_opener(file_path: Path) -> None:
    editor = os.environ.get("EDITOR")
    if editor:
        cmd = [editor]
        if "code" in editor.lower() or "subl" in editor.lower():
            cmd.append("--wait")
        subprocess.Popen([*cmd, str(file_path)])
    elif sys.platform == "win32":
        os.startfile(str(file_path))  # type: ignore[attr-defined]
    elif sys.platform == "darwin":
        subprocess.Popen(["open", str(file_path)])
    elif shutil.which("xdg-open"):
        subprocess.Popen(["xdg-open", str(file_path)])
    else:
        raise RuntimeError("No editor configured; set $EDITOR")


class Vault:
    """Read-only view of a vault directory plus its change-event hub."""

    def __init__(
        self,
        root: Path | None = None,
        opener: Callable[[Path], None] | None = None,
    ):
        self.root = Path(root or config.VAULT_PATH).resolve()
        self.opener = opener or _default_opener
        self._handlers: dict[str, list[Callable]] = {e: [] for e in VAULT_EVENTS}

    # ── Lookup ────────────────────────────────────────────────────────

    def absolute_path(self, path: str) -> Path | None:
        """Map a vault path to disk, refusing anything outside the vault."""
        path = normalize_path(path)
        if path == "/":
            return self.root
        full = (self.root / path).resolve()
        try:
            full.relative_to(self.root)
        except ValueError:
            return None
        return full

    def get_abstract_file_by_path(self, path: str) -> VaultFile | VaultFolder | None:
        path = normalize_path(path)
        full = self.absolute_path(path)
        if full is None or not full.exists():
            return None
        if full.is_dir():
            return VaultFolder(path=path, children=self._list_children(path, full))
        return VaultFile(path=path)

    def _list_children(self, path: str, full: Path) -> list:
        children = []
        for entry in sorted(full.iterdir(), key=lambda p: p.name):
            child_path = entry.name if path == "/" else f"{path}/{entry.name}"
            if entry.is_dir():
                # Children of nested folders are resolved on demand.
                children.append(VaultFolder(path=child_path))
            else:
                children.append(VaultFile(path=child_path))
        return children

    def iter_files(self):
        """Yield ``(VaultFile, absolute path)`` for every file, skipping dot-folders."""
        for full in sorted(self.root.rglob("*")):
            rel = full.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts[:-1]):
                continue
            if full.is_file():
                yield VaultFile(path=rel.as_posix()), full

    # ── Reading & opening ─────────────────────────────────────────────

    def read(self, file: VaultFile) -> str:
        full = self.absolute_path(file.path)
        if full is None:
            raise FileNotFoundError(file.path)
        return full.read_text(encoding="utf-8")

    def open_file(self, file: VaultFile) -> None:
        full = self.absolute_path(file.path)
        if full is None:
            raise FileNotFoundError(file.path)
        logger.info("Opening %s", full)
        self.opener(full)

    # ── Events ────────────────────────────────────────────────────────

    def on(self, event: str, callback: Callable) -> None:
        if event not in self._handlers:
            raise ValueError(f"Unknown vault event: {event}")
        self._handlers[event].append(callback)

    def off(self, event: str, callback: Callable) -> None:
        handlers = self._handlers.get(event, [])
        if callback in handlers:
            handlers.remove(callback)

    def trigger(self, event: str, file: VaultFile, *args) -> None:
        """Call every subscriber of *event*; one failing handler doesn't stop the rest."""
        for callback in list(self._handlers.get(event, [])):
            try:
                callback(file, *args)
            except Exception:
                logger.exception("Vault %s handler failed for %s", event, file.path)

    def subscriber_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))
