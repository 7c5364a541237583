from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

from bm_calendar.services.log_parser import (
    EventRecord,
    FolderNotFoundError,
    NotAFolderError,
    ParsedRecord,
    SkippedBlock,
    date_from_basename,
    load_events,
    parse_block,
    parse_log_content,
    split_blocks,
)
from bm_calendar.services.vault import Vault
from tests.helpers import FEELING_GOOD, write_vault


class TestSplitBlocks(unittest.TestCase):
    def test_splits_on_separator_lines_and_drops_empty_blocks(self) -> None:
        content = "---\ntime: a\n---\n\n---\ntime: b\nnotes: x\n"
        self.assertEqual(["time: a", "time: b\nnotes: x"], split_blocks(content))

    def test_longer_dash_runs_are_not_separators(self) -> None:
        self.assertEqual(["time: a\n----\nnotes: b"], split_blocks("time: a\n----\nnotes: b"))

    def test_tolerates_crlf_and_trailing_spaces(self) -> None:
        content = "---  \r\ntime: a\r\n---\r\ntime: b\r\n"
        self.assertEqual(2, len(split_blocks(content)))

    def test_content_without_separator_is_one_block(self) -> None:
        self.assertEqual(["time: a"], split_blocks("\n  time: a  \n"))

    def test_empty_content(self) -> None:
        self.assertEqual([], split_blocks(""))
        self.assertEqual([], split_blocks("---\n---\n"))


class TestParseBlock(unittest.TestCase):
    def test_quoted_notes_are_unwrapped(self) -> None:
        result = parse_block('time: 2026-02-14T15:19:02-08:00\nnotes: "Feeling good."', "2026-02-14")
        self.assertIsInstance(result, ParsedRecord)
        self.assertEqual(
            EventRecord(
                time="2026-02-14T15:19:02-08:00",
                notes="Feeling good.",
                original_date="2026-02-14",
            ),
            result.record,
        )

    def test_only_one_layer_of_quotes_is_stripped(self) -> None:
        result = parse_block('time: 08:00\nnotes: ""nested" quote"', "2026-02-14")
        self.assertEqual('"nested" quote', result.record.notes)

    def test_unquoted_notes_kept_as_is(self) -> None:
        result = parse_block("time: 08:00\nnotes:   plain text  ", "2026-02-14")
        self.assertEqual("plain text", result.record.notes)

    def test_doubled_time_label_is_tolerated(self) -> None:
        result = parse_block("time: time: 2026-02-14T07:00:00Z", "2026-02-14")
        self.assertEqual("2026-02-14T07:00:00Z", result.record.time)

    def test_field_names_are_case_insensitive(self) -> None:
        result = parse_block('TIME: 09:30\nNotes: "ok"', "2026-02-14")
        self.assertEqual(("09:30", "ok"), (result.record.time, result.record.notes))

    def test_block_without_time_is_skipped_even_with_notes(self) -> None:
        result = parse_block('notes: "orphan"', "2026-02-14")
        self.assertIsInstance(result, SkippedBlock)
        self.assertEqual('notes: "orphan"', result.text)

    def test_empty_time_value_is_skipped(self) -> None:
        self.assertIsInstance(parse_block("time:   \nnotes: x", "2026-02-14"), SkippedBlock)

    def test_notes_default_to_empty_and_other_lines_ignored(self) -> None:
        result = parse_block("mood: fine\ntime: later today\nsomething else", "2026-02-14")
        self.assertEqual("later today", result.record.time)
        self.assertEqual("", result.record.notes)

    def test_malformed_time_preserved_verbatim(self) -> None:
        result = parse_block("time: around noon-ish", "2026-02-14")
        self.assertEqual("around noon-ish", result.record.time)

    def test_only_newlines_end_a_line(self) -> None:
        result = parse_block('time: 07:00\x0cam\nnotes: "slept badly"', "2026-02-14")
        self.assertEqual("07:00\x0cam", result.record.time)
        self.assertEqual("slept badly", result.record.notes)


class TestParseLogContent(unittest.TestCase):
    def test_keeps_block_order_and_only_blocks_with_time(self) -> None:
        content = "\n".join(
            [
                "---",
                "time: first",
                "---",
                'notes: "no time here"',
                "---",
                "time: second",
                'notes: "b"',
                "---",
                "time: third",
            ]
        )
        records, skipped = parse_log_content(content, "2026-01-02")
        self.assertEqual(["first", "second", "third"], [r.time for r in records])
        self.assertEqual(1, len(skipped))
        self.assertTrue(all(r.original_date == "2026-01-02" for r in records))


class TestDateFromBasename(unittest.TestCase):
    def test_matches_exact_date_names_only(self) -> None:
        self.assertEqual("2026-02-14", date_from_basename("2026-02-14"))
        self.assertIsNone(date_from_basename("not-a-date"))
        self.assertIsNone(date_from_basename("2026-02-14 copy"))
        self.assertIsNone(date_from_basename("26-02-14"))


class TestLoadEvents(unittest.TestCase):
    def test_builds_event_map_from_dated_files(self) -> None:
        with TemporaryDirectory() as tmp:
            root = write_vault(
                Path(tmp),
                {
                    "Logs/BM/2026-02-14.md": FEELING_GOOD,
                    "Logs/BM/2026-02-15.md": "---\ntime: a\n---\ntime: b\n",
                    "Logs/BM/not-a-date.md": "---\ntime: x\n",
                    "Logs/BM/2026-02-16.txt": "---\ntime: x\n",
                    "Logs/BM/2026-02-17.md": 'notes: "no time"\n',
                    "Logs/BM/nested/2026-02-18.md": "---\ntime: x\n",
                },
            )
            result = load_events(Vault(root), "Logs/BM")

            self.assertEqual(["2026-02-14", "2026-02-15"], sorted(result.events))
            self.assertEqual("Feeling good.", result.events["2026-02-14"][0].notes)
            self.assertEqual(["a", "b"], [r.time for r in result.events["2026-02-15"]])
            self.assertIn("Logs/BM/not-a-date.md", result.files_skipped)
            self.assertEqual(3, result.files_scanned)
            self.assertEqual(1, result.blocks_skipped)

    def test_not_a_date_file_contributes_nothing(self) -> None:
        with TemporaryDirectory() as tmp:
            root = write_vault(Path(tmp), {"Logs/BM/not-a-date.md": FEELING_GOOD})
            self.assertEqual({}, load_events(Vault(root), "Logs/BM").events)

    def test_reloading_unchanged_folder_is_idempotent(self) -> None:
        with TemporaryDirectory() as tmp:
            root = write_vault(
                Path(tmp),
                {"Logs/BM/2026-02-14.md": FEELING_GOOD, "Logs/BM/2026-02-01.md": "time: x"},
            )
            vault = Vault(root)
            self.assertEqual(load_events(vault, "Logs/BM").events, load_events(vault, "Logs/BM").events)

    def test_folder_path_is_normalized(self) -> None:
        with TemporaryDirectory() as tmp:
            root = write_vault(Path(tmp), {"Logs/BM/2026-02-14.md": FEELING_GOOD})
            self.assertIn("2026-02-14", load_events(Vault(root), "/Logs//BM/").events)

    def test_missing_folder_raises(self) -> None:
        with TemporaryDirectory() as tmp:
            with self.assertRaises(FolderNotFoundError) as ctx:
                load_events(Vault(Path(tmp)), "Logs/Nope")
            self.assertEqual(
                'Folder not found: "Logs/Nope". Please check your settings.', str(ctx.exception)
            )

    def test_file_path_is_not_a_folder(self) -> None:
        with TemporaryDirectory() as tmp:
            root = write_vault(Path(tmp), {"Logs/BM": "just a file"})
            with self.assertRaises(NotAFolderError) as ctx:
                load_events(Vault(root), "Logs/BM")
            self.assertEqual('Path is not a folder: "Logs/BM".', str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
