from flask import Flask
from flask_cors import CORS

from bm_calendar.services.vault_watcher import VaultWatcher


def create_app(plugin=None, config_class=None, watch=False):
    app = Flask(__name__)

    if config_class:
        app.config.from_object(config_class)
    else:
        from bm_calendar.config import Config
        app.config.from_object(Config)
    # Keep date keys in calendar order in JSON responses.
    app.json.sort_keys = False

    if plugin is None:
        from bm_calendar.orchestrator import CalendarPlugin
        plugin = CalendarPlugin()
    plugin.activate_view()
    app.extensions["bm_calendar"] = plugin

    CORS(app)

    from bm_calendar.web.routes import calendar_bp
    app.register_blueprint(calendar_bp)

    if watch:
        watcher = VaultWatcher(plugin.vault)
        watcher.start()
        app.extensions["bm_calendar_watcher"] = watcher

    return app
