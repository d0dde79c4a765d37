# shortcut_scanner.py
import os
import logging
import threading
from typing import Iterable, List, Optional, Set

from scan_outcome import ScanOutcome, SkipReason

logger = logging.getLogger("ShortcutScanner")

SHORTCUT_EXT = ".lnk"

# Launcher clients themselves are not games.
# Minecraft launchers (Lunar, Prism, Feather...) are deliberately not listed.
EXCLUDED_LAUNCHERS = {
    "steam", "steam client", "steam.exe",
    "epic games launcher", "epic games", "epicgameslauncher",
    "hoyoplay", "hyp",
    "itch", "itch.io",
    "gamejolt", "gamejolt client", "game jolt",
    "gog galaxy", "ubisoft connect", "origin", "ea app",
    "battle.net", "blizzard battle.net",
}

LAUNCHER_BRANDS = (
    "epic", "steam", "hoyo", "itch", "gamejolt", "gog",
    "ubisoft", "origin", "battle.net",
)

# Shortcut titles must contain one of these to count as a game
RELEVANT_TITLES = (
    "League", "Valorant", "Genshin", "Honkai", "Star Rail", "Zenless",
    "Minecraft", "Roblox", "Fortnite", "Apex", "Warzone", "CS2", "Counter-Strike",
    "Overwatch", "Diablo", "World of Warcraft", "Hearthstone",
    "GTA", "Red Dead", "Cyberpunk", "Witcher",
    "Elden Ring", "Dark Souls", "Hollow Knight", "Celeste",
    "Among Us", "Fall Guys", "Rocket League",
    "Lunar", "Prism", "Feather", "MultiMC", "ATLauncher", "Curseforge", "Modrinth",
)


def default_shortcut_dirs() -> List[str]:
    """User desktop, public desktop, user start menu, common start menu."""
    home = os.path.expanduser("~")
    appdata = os.environ.get('APPDATA', os.path.join(home, 'AppData', 'Roaming'))
    public = os.environ.get('PUBLIC', r'C:\Users\Public')
    program_data = os.environ.get('ProgramData', r'C:\ProgramData')
    return [
        os.path.join(home, 'Desktop'),
        os.path.join(public, 'Desktop'),
        os.path.join(appdata, 'Microsoft', 'Windows', 'Start Menu'),
        os.path.join(program_data, 'Microsoft', 'Windows', 'Start Menu'),
    ]


def is_excluded_launcher(name: str, excluded: Iterable[str] = EXCLUDED_LAUNCHERS,
                         brands: Iterable[str] = LAUNCHER_BRANDS) -> bool:
    lower_name = name.lower()
    if lower_name in {e.lower() for e in excluded}:
        return True
    return "launcher" in lower_name and any(b in lower_name for b in brands)


def is_relevant_game(name: str, fragments: Iterable[str] = RELEVANT_TITLES) -> bool:
    lower_name = name.lower()
    return any(f.lower() in lower_name for f in fragments)


def find_shortcuts(folder: str) -> List[str]:
    found = []
    if not os.path.isdir(folder):
        return found
    for root, dirs, files in os.walk(folder):
        dirs.sort()
        for f in sorted(files):
            if f.lower().endswith(SHORTCUT_EXT):
                found.append(os.path.join(root, f))
    return found


class ShortcutScanner:
    def __init__(self, folders: Optional[List[str]] = None,
                 relevant_titles: Iterable[str] = RELEVANT_TITLES,
                 excluded_launchers: Iterable[str] = EXCLUDED_LAUNCHERS,
                 launcher_brands: Iterable[str] = LAUNCHER_BRANDS):
        self.folders = folders if folders is not None else default_shortcut_dirs()
        self.relevant_titles = tuple(relevant_titles)
        self.excluded_launchers = {e.lower() for e in excluded_launchers}
        self.launcher_brands = tuple(launcher_brands)

    def classify(self, shortcut_path: str, existing_titles: Set[str]) -> ScanOutcome:
        """existing_titles must already be casefolded."""
        title = os.path.splitext(os.path.basename(shortcut_path))[0]

        if title.casefold() in existing_titles:
            return ScanOutcome.skipped(shortcut_path, SkipReason.KNOWN_TITLE, title)
        if is_excluded_launcher(title, self.excluded_launchers, self.launcher_brands):
            return ScanOutcome.skipped(shortcut_path, SkipReason.EXCLUDED_LAUNCHER, title)
        if not is_relevant_game(title, self.relevant_titles):
            return ScanOutcome.skipped(shortcut_path, SkipReason.NOT_RELEVANT, title)
        return ScanOutcome.accepted(shortcut_path, title)

    def scan(self, existing_titles: Iterable[str] = (),
             cancel_event: Optional[threading.Event] = None) -> List[ScanOutcome]:
        known = {t.casefold() for t in existing_titles}
        outcomes = []
        for folder in self.folders:
            for shortcut in find_shortcuts(folder):
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("[Shortcuts] Scan cancelled.")
                    return outcomes
                outcomes.append(self.classify(shortcut, known))
        accepted = sum(1 for o in outcomes if o.ok)
        logger.info(f"[Shortcuts] {accepted} relevant of {len(outcomes)} shortcuts.")
        return outcomes
