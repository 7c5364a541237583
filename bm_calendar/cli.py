"""
CLI entry point for BM Calendar.

Usage:
  python -m bm_calendar show [--month YYYY-MM]   # Print the month grid
  python -m bm_calendar day 2026-02-14           # Month grid + that day's events
  python -m bm_calendar open 2026-02-14          # Open the day's log in $EDITOR
  python -m bm_calendar watch                    # Re-render whenever the logs change
  python -m bm_calendar serve                    # Side-panel web app
  python -m bm_calendar settings --logs-folder Logs/BM --debug
"""

import argparse
import re
import sys
from datetime import date
from pathlib import Path

from bm_calendar import config
from bm_calendar.orchestrator import CalendarPlugin
from bm_calendar.services.calendar_state import check_month
from bm_calendar.services.calendar_view import render_text
from bm_calendar.services.vault_watcher import VaultWatcher

MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def _month_arg(value: str) -> tuple[int, int]:
    match = MONTH_RE.match(value)
    if not match:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}")
    try:
        return check_month(int(match.group(1)), int(match.group(2)))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _date_arg(value: str) -> str:
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bm-calendar",
        description="Month calendar over dated markdown event logs.",
    )
    parser.add_argument(
        "--vault",
        type=Path,
        default=None,
        help="Path to the vault (overrides BM_VAULT_PATH env var).",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings JSON file (overrides BM_SETTINGS_FILE env var).",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print the calendar for a month.")
    show.add_argument("--month", type=_month_arg, default=None, help="YYYY-MM (default: current).")

    day = sub.add_parser("day", help="Print a month with one day's events selected.")
    day.add_argument("date", type=_date_arg)

    open_cmd = sub.add_parser("open", help="Open the log file for a day.")
    open_cmd.add_argument("date", type=_date_arg)

    sub.add_parser("watch", help="Re-render the calendar whenever the log folder changes.")

    serve = sub.add_parser("serve", help="Run the side-panel web app.")
    serve.add_argument("--host", default=config.WEB_HOST)
    serve.add_argument("--port", type=int, default=config.WEB_PORT)

    settings = sub.add_parser("settings", help="Show or change settings.")
    settings.add_argument("--logs-folder", default=None, help="Folder holding the daily logs.")
    settings.add_argument(
        "--debug",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show debug information in the calendar and logs.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    plugin = CalendarPlugin(vault_path=args.vault, settings_path=args.settings)

    if args.command == "settings":
        changes = {}
        if args.logs_folder is not None:
            changes["logs_folder"] = args.logs_folder
        if args.debug is not None:
            changes["debug_mode"] = args.debug
        settings = plugin.update_settings(**changes) if changes else plugin.settings
        print(f"Logs folder: {settings.logs_folder}")
        print(f"Debug mode:  {'on' if settings.debug_mode else 'off'}")
        return 0

    if args.command == "serve":
        from bm_calendar.web import create_app

        app = create_app(plugin, watch=True)
        app.run(host=args.host, port=args.port)
        return 0

    controller = plugin.activate_view()

    if args.command == "show":
        if args.month:
            controller.set_month(*args.month)

    elif args.command == "day":
        d = date.fromisoformat(args.date)
        controller.set_month(d.year, d.month)
        controller.select_date(args.date)

    elif args.command == "open":
        if controller.state.error:
            print(controller.state.error, file=sys.stderr)
            return 1
        if not controller.open_file(args.date):
            print(f"Error: no log file for {args.date}", file=sys.stderr)
            return 1
        return 0

    elif args.command == "watch":
        print(render_text(controller.view()))
        controller.add_listener(lambda view: print("\n" + render_text(view)))
        print("\nWatching the vault (Ctrl+C to stop)…")
        try:
            VaultWatcher(plugin.vault).watch()
        except KeyboardInterrupt:
            print("\nStopped.")
        finally:
            plugin.close()
        return 0

    view = controller.view()
    if view.error:
        print(view.error, file=sys.stderr)
        return 1
    print(render_text(view))
    return 0


if __name__ == "__main__":
    sys.exit(main())
