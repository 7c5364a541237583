"""
Log Parser — turns a folder of dated markdown logs into an event map.

Each file is named ``YYYY-MM-DD.md`` and holds zero or more blocks separated
by lines consisting solely of ``---``.  A block becomes an event when it has
a ``time:`` line; an optional ``notes:`` line carries free text:

    ---
    time: 2026-02-14T15:19:02-08:00
    notes: "Feeling good."

Parsing runs in two stages:
  1. split_blocks  — file text → trimmed, non-empty blocks
  2. parse_block   — block → ParsedRecord | SkippedBlock
"""

import logging
import re
from dataclasses import dataclass, field

from bm_calendar.services.vault import Vault, VaultFile, VaultFolder, normalize_path

logger = logging.getLogger(__name__)

DATE_BASENAME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})$")
SEPARATOR_RE = re.compile(r"^---[ \t]*\r?$", re.MULTILINE)
TIME_RE = re.compile(r"^time:\s*(.*)$", re.IGNORECASE)
NOTES_RE = re.compile(r"^notes:\s*(.*)$", re.IGNORECASE)
TIME_LABEL_RE = re.compile(r"^time:\s*", re.IGNORECASE)
QUOTED_RE = re.compile(r'^"(.*)"$', re.DOTALL)


class LogFolderError(Exception):
    """The configured log folder can't be scanned."""

    def __init__(self, folder: str, message: str):
        super().__init__(message)
        self.folder = folder


class FolderNotFoundError(LogFolderError):
    def __init__(self, folder: str):
        super().__init__(
            folder, f'Folder not found: "{folder}". Please check your settings.'
        )


class NotAFolderError(LogFolderError):
    def __init__(self, folder: str):
        super().__init__(folder, f'Path is not a folder: "{folder}".')


@dataclass(frozen=True)
class EventRecord:
    """One logged occurrence."""
    time: str
    notes: str
    original_date: str  # YYYY-MM-DD, from the file name

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "notes": self.notes,
            "originalDate": self.original_date,
        }


@dataclass(frozen=True)
class ParsedRecord:
    record: EventRecord


@dataclass(frozen=True)
class SkippedBlock:
    reason: str
    text: str


@dataclass
class LoadResult:
    """Outcome of scanning a log folder."""
    folder: str
    events: dict[str, list[EventRecord]] = field(default_factory=dict)
    files_scanned: int = 0
    files_skipped: list[str] = field(default_factory=list)
    blocks_skipped: int = 0


# ── Block-level parsing ───────────────────────────────────────────────


def split_blocks(content: str) -> list[str]:
    """Split file text on ``---`` lines; returns trimmed, non-empty blocks."""
    blocks = (block.strip() for block in SEPARATOR_RE.split(content))
    return [block for block in blocks if block]


def clean_time(value: str) -> str:
    """Trim a time value and drop one doubled ``time:`` label."""
    return TIME_LABEL_RE.sub("", value.strip(), count=1)


def clean_notes(value: str) -> str:
    """Trim a notes value and strip one layer of surrounding double quotes."""
    value = value.strip()
    match = QUOTED_RE.match(value)
    return match.group(1) if match else value


def parse_block(block: str, date_str: str) -> ParsedRecord | SkippedBlock:
    """
    Scan a block line by line for ``time:`` and ``notes:`` fields.

    A later line for the same field replaces an earlier one.  Lines that
    match neither field are ignored.
    """
    time = ""
    notes = ""
    for line in block.split("\n"):
        line = line.rstrip("\r")
        time_match = TIME_RE.match(line)
        if time_match:
            time = clean_time(time_match.group(1))
            continue
        notes_match = NOTES_RE.match(line)
        if notes_match:
            notes = clean_notes(notes_match.group(1))

    if not time:
        return SkippedBlock(reason="no time field", text=block)
    return ParsedRecord(EventRecord(time=time, notes=notes, original_date=date_str))


def parse_log_content(content: str, date_str: str) -> tuple[list[EventRecord], list[SkippedBlock]]:
    """Parse one file's text; records keep block order."""
    records: list[EventRecord] = []
    skipped: list[SkippedBlock] = []
    for block in split_blocks(content):
        result = parse_block(block, date_str)
        if isinstance(result, ParsedRecord):
            records.append(result.record)
        else:
            skipped.append(result)
    return records, skipped


def date_from_basename(basename: str) -> str | None:
    match = DATE_BASENAME_RE.match(basename)
    return match.group(1) if match else None


# ── Folder scanning ───────────────────────────────────────────────────


def load_events(vault: Vault, folder_path: str) -> LoadResult:
    """
    Read every ``YYYY-MM-DD.md`` file in *folder_path* and build the event map.

    Raises FolderNotFoundError / NotAFolderError when the folder can't be
    scanned.  Files that don't fit the naming scheme, and blocks without a
    time, are skipped and only reported at DEBUG level.
    """
    logger.debug("Loading events from %s", folder_path)
    folder = vault.get_abstract_file_by_path(normalize_path(folder_path))
    if folder is None:
        raise FolderNotFoundError(folder_path)
    if not isinstance(folder, VaultFolder):
        raise NotAFolderError(folder_path)

    result = LoadResult(folder=folder_path)
    files = [
        f for f in folder.children
        if isinstance(f, VaultFile) and f.extension == "md"
    ]
    logger.debug("Found %d markdown files in folder.", len(files))

    for file in files:
        date_str = date_from_basename(file.basename)
        if date_str is None:
            logger.debug("Skipping file (doesn't match YYYY-MM-DD): %s", file.basename)
            result.files_skipped.append(file.path)
            continue

        try:
            content = vault.read(file)
        except (OSError, UnicodeDecodeError):
            logger.exception("Failed to read %s", file.path)
            result.files_skipped.append(file.path)
            continue

        result.files_scanned += 1
        logger.debug("Parsing %s, content length: %d", file.basename, len(content))
        records, skipped = parse_log_content(content, date_str)
        result.blocks_skipped += len(skipped)

        if records:
            logger.debug("Found %d events for %s", len(records), date_str)
            result.events[date_str] = records
        else:
            logger.debug("No valid events found in %s", file.basename)

    logger.info(
        "Loaded %d event(s) across %d day(s) from %s",
        sum(len(v) for v in result.events.values()),
        len(result.events),
        folder_path,
    )
    return result
