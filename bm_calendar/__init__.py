"""
BM Calendar — month-grid calendar over dated markdown log files.

Reads one markdown file per day (``YYYY-MM-DD.md``) from a log folder inside
a vault, parses ``---``-separated event blocks with ``time:`` / ``notes:``
fields, and renders a calendar with per-day counts and a detail panel.
The calendar reloads whenever a file under the log folder changes.
"""
