# config.py
import os
import sys
import json
import math
import logging
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass

from asset_cache import STEAM_HEADER_URL, FETCH_TIMEOUT
from shortcut_scanner import (EXCLUDED_LAUNCHERS, LAUNCHER_BRANDS, RELEVANT_TITLES,
                              default_shortcut_dirs)

logger = logging.getLogger("Config")

APP_NAME = "Game Finder"
CONFIG_FILENAME = "config.json"
ICON_CACHE_DIRNAME = "IconCache"
ARTWORK_CACHE_DIRNAME = "SteamArt"
STEAM_LAUNCH_TEMPLATE = "steam://run/{appid}"

DEFAULT_CONFIG = {
    "auto_scan_on_startup": False,
    "fetch_timeout": FETCH_TIMEOUT,
    "shortcut_dirs": [],          # empty: the four standard Windows locations
    "extra_relevant_titles": [],
    "extra_excluded_launchers": [],
}


def initialize_environment() -> str:
    """
    Picks (and creates) the folder holding config, library and caches.
    GAMEFINDER_DATA_DIR overrides the per-user default.
    """
    path = os.environ.get("GAMEFINDER_DATA_DIR")
    if not path:
        if os.name == 'nt':
            path = os.path.join(os.getenv('LOCALAPPDATA', os.path.expanduser('~')), APP_NAME)
        else:
            path = os.path.expanduser(f'~/{APP_NAME}')

    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        print(f"CRITICAL: Failed to create data directory: {e}")
        sys.exit(1)
    return path


def load_config(config_file: str) -> Dict:
    """Reads config.json, writing the defaults first when it does not exist."""
    config = dict(DEFAULT_CONFIG)
    try:
        if os.path.exists(config_file):
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if isinstance(data, dict):
                config.update(data)
        else:
            save_config(config_file, config)
    except (OSError, ValueError) as e:
        logger.error(f"[Config] Failure reading config: {e}")
    return config


def save_config(config_file: str, config: Dict) -> None:
    try:
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=4)
    except OSError as e:
        logger.error(f"[Config] Failure writing config: {e}")


def _string_list(value) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [v for v in value if isinstance(v, str) and v.strip()]


@dataclass
class ScanConfig:
    """Everything a scan needs, handed to GameScanner explicitly."""
    artwork_dir: str
    icon_dir: str
    cdn_template: str = STEAM_HEADER_URL
    launch_template: str = STEAM_LAUNCH_TEMPLATE
    fetch_timeout: float = FETCH_TIMEOUT
    shortcut_dirs: Optional[List[str]] = None
    relevant_titles: Tuple[str, ...] = RELEVANT_TITLES
    excluded_launchers: Tuple[str, ...] = tuple(sorted(EXCLUDED_LAUNCHERS))
    launcher_brands: Tuple[str, ...] = LAUNCHER_BRANDS

    def resolved_shortcut_dirs(self) -> List[str]:
        if self.shortcut_dirs is None:
            return default_shortcut_dirs()
        return list(self.shortcut_dirs)

    @classmethod
    def for_data_dir(cls, data_dir: str, **overrides) -> 'ScanConfig':
        return cls(
            artwork_dir=os.path.join(data_dir, ARTWORK_CACHE_DIRNAME),
            icon_dir=os.path.join(data_dir, ICON_CACHE_DIRNAME),
            **overrides
        )

    @classmethod
    def from_config(cls, config: Dict, data_dir: str) -> 'ScanConfig':
        """The JSON config can only extend the built-in lists, never shrink them."""
        try:
            timeout = float(config.get("fetch_timeout", FETCH_TIMEOUT))
        except (TypeError, ValueError):
            timeout = FETCH_TIMEOUT
        if not math.isfinite(timeout) or timeout <= 0:
            timeout = FETCH_TIMEOUT

        return cls.for_data_dir(
            data_dir,
            fetch_timeout=timeout,
            shortcut_dirs=_string_list(config.get("shortcut_dirs")) or None,
            relevant_titles=RELEVANT_TITLES + tuple(_string_list(config.get("extra_relevant_titles"))),
            excluded_launchers=tuple(sorted(EXCLUDED_LAUNCHERS)) + tuple(
                _string_list(config.get("extra_excluded_launchers"))),
        )
