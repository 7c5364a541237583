from __future__ import annotations

from pathlib import Path

FEELING_GOOD = '---\ntime: 2026-02-14T15:19:02-08:00\nnotes: "Feeling good."'


def write_vault(root: Path, files: dict[str, str]) -> Path:
    """Create *files* (vault-relative path → text) under *root*."""
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


class RecordingOpener:
    def __init__(self) -> None:
        self.opened: list[Path] = []

    def __call__(self, path: Path) -> None:
        self.opened.append(path)
