"""Flask routes for the calendar side panel.

Provides:
- The HTML month view
- JSON endpoints for navigation, day selection, and opening a day's log
- Reading and updating the plugin settings
"""

import re

from flask import Blueprint, current_app, jsonify, render_template, request

from bm_calendar.services.calendar_view import WEEKDAYS

calendar_bp = Blueprint("calendar", __name__)

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def _plugin():
    return current_app.extensions["bm_calendar"]


def _controller():
    return _plugin().activate_view()


# ─── Page ──────────────────────────────────────────────────────────────

@calendar_bp.route("/")
def calendar_page():
    """Render the month grid and, when a day is selected, its events."""
    view = _controller().view()
    return render_template(
        "calendar.html",
        view=view,
        weekdays=WEEKDAYS,
        settings=_plugin().settings,
    )


# ─── Calendar API ─────────────────────────────────────────────────────

@calendar_bp.route("/api/calendar", methods=["GET"])
def get_calendar():
    """Current view as JSON.  ``?month=YYYY-MM`` navigates first."""
    controller = _controller()
    month = request.args.get("month")
    if month:
        match = MONTH_RE.match(month)
        if not match:
            return jsonify({"error": "month must be YYYY-MM"}), 400
        try:
            controller.set_month(int(match.group(1)), int(match.group(2)))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
    return jsonify(controller.view().to_dict())


@calendar_bp.route("/api/calendar/month", methods=["POST"])
def change_month():
    data = request.get_json(silent=True) or {}
    offset = data.get("offset")
    if not isinstance(offset, int) or isinstance(offset, bool):
        return jsonify({"error": "Missing integer 'offset' field"}), 400
    controller = _controller()
    try:
        controller.change_month(offset)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(controller.view().to_dict())


@calendar_bp.route("/api/calendar/today", methods=["POST"])
def jump_to_today():
    controller = _controller()
    controller.jump_to_today()
    return jsonify(controller.view().to_dict())


@calendar_bp.route("/api/calendar/select", methods=["POST"])
def select_date():
    data = request.get_json(silent=True) or {}
    day = data.get("date")
    if not isinstance(day, str) or not DATE_RE.match(day):
        return jsonify({"error": "Missing 'date' field (YYYY-MM-DD)"}), 400
    controller = _controller()
    controller.select_date(day)
    return jsonify(controller.view().to_dict())


@calendar_bp.route("/api/calendar/reload", methods=["POST"])
def reload_calendar():
    controller = _controller()
    controller.reload()
    return jsonify(controller.view().to_dict())


@calendar_bp.route("/api/open", methods=["POST"])
def open_file():
    """Open the selected (or given) day's log file in the editor."""
    data = request.get_json(silent=True) or {}
    controller = _controller()
    day = data.get("date") or controller.state.selected_date
    if not isinstance(day, str) or not DATE_RE.match(day):
        return jsonify({"error": "No date selected"}), 400
    if not controller.open_file(day):
        return jsonify({"error": f"File not found: {controller.log_file_path(day)}"}), 404
    return jsonify({"opened": controller.log_file_path(day)})


# ─── Settings API ─────────────────────────────────────────────────────

@calendar_bp.route("/api/settings", methods=["GET"])
def get_settings():
    return jsonify(_plugin().settings.to_dict())


@calendar_bp.route("/api/settings", methods=["PUT"])
def update_settings():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a JSON object"}), 400

    changes = {}
    if "logsFolder" in data:
        if not isinstance(data["logsFolder"], str):
            return jsonify({"error": "'logsFolder' must be a string"}), 400
        changes["logs_folder"] = data["logsFolder"]
    if "debugMode" in data:
        if not isinstance(data["debugMode"], bool):
            return jsonify({"error": "'debugMode' must be a boolean"}), 400
        changes["debug_mode"] = data["debugMode"]

    settings = _plugin().update_settings(**changes)
    return jsonify(settings.to_dict())
