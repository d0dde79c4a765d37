# game_scanner.py
import logging
import threading
from typing import List, Optional

from game import DiscoveredGame, SourceCategory, PLACEHOLDER_ASSET
from config import ScanConfig
from asset_cache import AssetCache
from exe_resolver import resolve_main_executable
from shortcut_scanner import ShortcutScanner
from steam_locator import SteamLocator
from steam_scanner import SteamCatalogScanner, SteamTitle

logger = logging.getLogger("GameScanner")


class GameScanner:
    """
    Steam library first, then desktop/start-menu shortcuts. Every call builds
    a fresh list; nothing is kept between scans.
    """

    def __init__(self, config: ScanConfig,
                 locator: Optional[SteamLocator] = None,
                 catalog: Optional[SteamCatalogScanner] = None,
                 shortcuts: Optional[ShortcutScanner] = None,
                 assets: Optional[AssetCache] = None):
        self.config = config
        self.locator = locator or SteamLocator()
        self.catalog = catalog or SteamCatalogScanner()
        self.shortcuts = shortcuts or ShortcutScanner(
            folders=config.resolved_shortcut_dirs(),
            relevant_titles=config.relevant_titles,
            excluded_launchers=config.excluded_launchers,
            launcher_brands=config.launcher_brands,
        )
        self.assets = assets or AssetCache(
            artwork_dir=config.artwork_dir,
            icon_dir=config.icon_dir,
            cdn_template=config.cdn_template,
            timeout=config.fetch_timeout,
        )

    def scan(self, cancel_event: Optional[threading.Event] = None) -> List[DiscoveredGame]:
        logger.info("--- STARTING GAME SCAN ---")

        store_games = self._find_steam_games(cancel_event)
        # Shortcuts go last so a Steam title beats its own .lnk
        existing_names = {g.title.casefold() for g in store_games}
        shortcut_games = self._find_shortcut_games(existing_names, cancel_event)

        unique_games = self._deduplicate_games(store_games + shortcut_games)
        logger.info(f"--- SCAN COMPLETE. Found {len(unique_games)} games. ---")
        return unique_games

    def _deduplicate_games(self, games: List[DiscoveredGame]) -> List[DiscoveredGame]:
        """First entry per case-insensitive launch target wins; order is kept."""
        seen = set()
        unique = []
        for g in games:
            if g.identity in seen:
                logger.debug(f"[Scanner] Duplicate launch target dropped: {g.launch_target}")
                continue
            seen.add(g.identity)
            unique.append(g)
        return unique

    # --- STEAM ---
    def _find_steam_games(self, cancel_event: Optional[threading.Event]) -> List[DiscoveredGame]:
        install_root = self.locator.locate_install_root()
        if not install_root:
            return []

        libraries = self.locator.enumerate_library_folders(install_root)
        logger.info(f"[Steam] Scanning {len(libraries)} library folder(s).")

        games = []
        for outcome in self.catalog.scan(libraries, cancel_event):
            if not outcome.ok:
                continue
            if cancel_event is not None and cancel_event.is_set():
                break
            games.append(self._steam_game(outcome.value))
        return games

    def _steam_game(self, title: SteamTitle) -> DiscoveredGame:
        exe = resolve_main_executable(title.library_path, title.install_dir)
        visual = self.assets.resolve_asset(title.name, title.app_id, exe)
        return DiscoveredGame(
            title=title.name,
            launch_target=title.launch_target(self.config.launch_template),
            visual_asset=visual or PLACEHOLDER_ASSET,
            source=SourceCategory.STEAM,
        )

    # --- SHORTCUTS ---
    def _find_shortcut_games(self, existing_names: set,
                             cancel_event: Optional[threading.Event]) -> List[DiscoveredGame]:
        games = []
        for outcome in self.shortcuts.scan(existing_names, cancel_event):
            if not outcome.ok:
                continue
            path, title = outcome.source, outcome.value
            visual = self.assets.resolve_asset(title, None, path)
            games.append(DiscoveredGame(
                title=title,
                launch_target=path,
                visual_asset=visual or PLACEHOLDER_ASSET,
                source=SourceCategory.SHORTCUT,
            ))
        return games

    def account_name(self) -> Optional[str]:
        return self.locator.resolve_account_name()
