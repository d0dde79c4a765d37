# ============================================================================
#                                 GAME FINDER
#                          LIBRARY DISCOVERY SERVICE
# ============================================================================
# Serves the local game catalog. It manages:
# 1.  Flask API: library listing, scan trigger, manual entries.
# 2.  SQLite library: persisted scan results plus manual games.
# 3.  Background scans: one at a time, off the request thread.
# 4.  Asset cache: Steam header artwork and extracted icons.
# ============================================================================

import sys
import os
import time
import logging
import threading
import urllib.parse
from flask import Flask, jsonify, request, send_from_directory
from flask_cors import CORS

from config import (CONFIG_FILENAME, ScanConfig, initialize_environment,
                    load_config, save_config)
from game import PLACEHOLDER_ASSET
from game_scanner import GameScanner
from library import GameLibrary


# ============================================================================
# [1] DIRECTORY & PATHING CONFIGURATION
# ============================================================================

SERVER_PORT = int(os.environ.get("GAMEFINDER_PORT", "5000"))
DEFAULT_USERNAME = "Gamer"


# ============================================================================
# [2] LOGGING INFRASTRUCTURE
# ============================================================================

def setup_master_logging(log_file=None):
    """
    Configures the global logging system: a UTF-8 log file in the data
    directory plus the standard output stream.
    """
    log_format = '%(asctime)s - [%(levelname)s] - %(name)s - %(message)s'
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(level=logging.INFO, format=log_format, handlers=handlers)

    # Silence third-party noise
    logging.getLogger('werkzeug').setLevel(logging.ERROR)
    logging.getLogger('urllib3').setLevel(logging.ERROR)


logger = logging.getLogger("GameFinder_Core")


# ============================================================================
# [3] SCAN COORDINATION
# ============================================================================

class ScanState:
    """Tracks the single in-flight scan. A second trigger is refused, not queued."""

    def __init__(self):
        self._lock = threading.Lock()
        self.cancel_event = threading.Event()
        self.running = False
        self.last_count = None
        self.last_error = None
        self.finished_at = None

    def try_begin(self) -> bool:
        if not self._lock.acquire(blocking=False):
            return False
        self.running = True
        self.cancel_event.clear()
        return True

    def end(self, count=None, error=None):
        self.running = False
        self.last_count = count
        self.last_error = error
        self.finished_at = time.time()
        self._lock.release()

    def to_dict(self) -> dict:
        return {
            "running": self.running,
            "last_count": self.last_count,
            "last_error": self.last_error,
            "finished_at": self.finished_at,
        }


def scan_library_task(app):
    """Runs one scan and swaps the results into the library. Caller holds the scan slot."""
    state = app.extensions['scan_state']
    count, error = None, None
    try:
        scanner = build_scanner(app)
        scanned = scanner.scan(cancel_event=state.cancel_event)
        if state.cancel_event.is_set():
            # A partial scan must not wipe the stored library
            logger.info("[Scanner] Scan cancelled, library left untouched.")
        else:
            count = app.extensions['library'].set_scanned_games(scanned)
            logger.info(f"[Scanner] Processed {len(scanned)} entries.")
    except Exception as e:
        # The scan itself only fails on environment errors (disk full and the like)
        logger.exception(f"[Scanner] Scan failed: {e}")
        error = str(e)
    finally:
        state.end(count, error)


def start_background_scan(app) -> bool:
    state = app.extensions['scan_state']
    if not state.try_begin():
        return False
    threading.Thread(target=scan_library_task, args=(app,), daemon=True).start()
    return True


def build_scanner(app) -> GameScanner:
    config = load_config(app.config['CONFIG_FILE'])
    scan_config = ScanConfig.from_config(config, app.config['DATA_DIR'])
    return app.extensions.get('scanner_factory', GameScanner)(scan_config)


# ============================================================================
# [4] APPLICATION FACTORY & ROUTES
# ============================================================================

def create_app(data_dir=None, scanner_factory=None) -> Flask:
    data_dir = data_dir or initialize_environment()
    app = Flask(__name__)
    app.config['DATA_DIR'] = data_dir
    app.config['CONFIG_FILE'] = os.path.join(data_dir, CONFIG_FILENAME)
    app.config['DATABASE_FILE'] = os.path.join(data_dir, 'library.db')
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    app.extensions['library'] = GameLibrary(app.config['DATABASE_FILE'])
    app.extensions['scan_state'] = ScanState()
    if scanner_factory is not None:
        app.extensions['scanner_factory'] = scanner_factory

    def library() -> GameLibrary:
        return app.extensions['library']

    def scan_config() -> ScanConfig:
        return ScanConfig.from_config(load_config(app.config['CONFIG_FILE']), data_dir)

    def serialize(entry) -> dict:
        d = entry.to_dict()
        asset = entry.game.visual_asset
        if asset and asset != PLACEHOLDER_ASSET:
            cache = os.path.basename(os.path.dirname(asset))
            d['cover_url'] = f"/api/covers/{cache}/{urllib.parse.quote(os.path.basename(asset))}"
        else:
            d['cover_url'] = None
        return d

    @app.route('/api/games')
    def route_api_get_games():
        """Endpoint for full library serialization."""
        category = request.args.get('category')
        return jsonify([serialize(e) for e in library().get_by_category(category)])

    @app.route('/api/refresh', methods=['POST'])
    def route_api_manual_refresh():
        """Manual trigger for the library scanning background task."""
        if not start_background_scan(app):
            return jsonify({"status": "busy", "message": "A scan is already running."}), 409
        return jsonify({"status": "success"})

    @app.route('/api/scan/status')
    def route_api_scan_status():
        return jsonify(app.extensions['scan_state'].to_dict())

    @app.route('/api/scan/cancel', methods=['POST'])
    def route_api_scan_cancel():
        app.extensions['scan_state'].cancel_event.set()
        return jsonify({"status": "success"})

    @app.route('/api/add_game', methods=['POST'])
    def api_add_manual_game():
        """Adds a manually selected executable to the library."""
        data = request.get_json(silent=True) or {}
        name = (data.get('name') or '').strip()
        path = (data.get('path') or '').strip()
        category = data.get('category') or "Manual"

        if not name or not path:
            return jsonify({"status": "error", "message": "Game Title and Path are required."}), 400

        try:
            scanner = build_scanner(app)
            icon = scanner.assets.extract_icon(name, path)
            entry = library().add_manual_game(name, path, icon, category)
        except Exception as e:
            logger.error(f"[ManualAdd] Failed to save {name}: {e}")
            return jsonify({"status": "error", "message": str(e)}), 500
        return jsonify({"status": "success", "game": serialize(entry)})

    @app.route('/api/delete_game', methods=['POST'])
    def api_delete_game():
        data = request.get_json(silent=True) or {}
        target = data.get('launch_target')
        if not target:
            return jsonify({"status": "error", "message": "launch_target is required."}), 400
        if not library().remove_game(target):
            return jsonify({"status": "error", "message": "Game not found."}), 404
        return jsonify({"status": "success"})

    @app.route('/api/favorite', methods=['POST'])
    def api_set_favorite():
        data = request.get_json(silent=True) or {}
        target = data.get('launch_target')
        if not target:
            return jsonify({"status": "error", "message": "launch_target is required."}), 400
        if not library().set_favorite(target, bool(data.get('favorite', True))):
            return jsonify({"status": "error", "message": "Game not found."}), 404
        return jsonify({"status": "success"})

    @app.route('/api/covers/<cache>/<path:filename>')
    def serve_cached_cover(cache, filename):
        """Serves cached covers with long-lived browser caching."""
        cfg = scan_config()
        folders = {os.path.basename(cfg.artwork_dir): cfg.artwork_dir,
                   os.path.basename(cfg.icon_dir): cfg.icon_dir}
        if cache not in folders:
            return jsonify({"status": "error"}), 404
        response = send_from_directory(folders[cache], filename)
        response.headers['Cache-Control'] = 'public, max-age=31536000, immutable'
        return response

    @app.route('/api/user')
    def route_api_user():
        scanner = build_scanner(app)
        return jsonify({"username": scanner.account_name() or DEFAULT_USERNAME})

    @app.route('/api/settings', methods=['GET', 'POST'])
    def api_handle_settings():
        config = load_config(app.config['CONFIG_FILE'])
        if request.method == 'POST':
            data = request.get_json(silent=True) or {}
            for key in ("auto_scan_on_startup", "fetch_timeout", "shortcut_dirs",
                        "extra_relevant_titles", "extra_excluded_launchers"):
                if key in data:
                    config[key] = data[key]
            save_config(app.config['CONFIG_FILE'], config)
            return jsonify({"status": "success", "settings": config})
        return jsonify(config)

    @app.route('/api/cache/clear', methods=['POST'])
    def api_clear_cache():
        """Deletes the icon and artwork caches; the next scan rebuilds them."""
        try:
            scanner = build_scanner(app)
            scanner.assets.clear()
        except OSError as e:
            logger.error(f"[Cache] Failed to clear cache: {e}")
            return jsonify({"status": "error", "message": f"Failed to clear cache: {e}"}), 500
        return jsonify({"status": "success", "message": "Icon cache has been cleared. Re-scan to download fresh icons."})

    return app


def auto_scan_if_needed(app) -> bool:
    """Kicks off a scan at startup when enabled and the library is still empty."""
    config = load_config(app.config['CONFIG_FILE'])
    if config.get("auto_scan_on_startup") and not app.extensions['library'].all_games():
        logger.info("[Engine] Library empty. Launching auto-scan...")
        return start_background_scan(app)
    return False


# ============================================================================
# [5] APPLICATION LIFECYCLE
# ============================================================================

if __name__ == '__main__':
    data_dir = initialize_environment()
    setup_master_logging(os.path.join(data_dir, 'app_runtime.log'))
    flask_app = create_app(data_dir)
    auto_scan_if_needed(flask_app)
    flask_app.run(host='127.0.0.1', port=SERVER_PORT, use_reloader=False)
