# steam_locator.py
import os
import logging
from typing import Callable, List, Optional

try:
    import winreg
except ImportError:  # not on Windows: every registry lookup is a miss
    winreg = None

from vdf_lines import iter_pairs, read_lines, unescape_path

logger = logging.getLogger("SteamLocator")

HKLM = "HKEY_LOCAL_MACHINE"
HKCU = "HKEY_CURRENT_USER"

# 64-bit view first, then the plain key
INSTALL_PATH_KEYS = [
    (HKLM, r"SOFTWARE\Wow6432Node\Valve\Steam", "InstallPath"),
    (HKLM, r"SOFTWARE\Valve\Steam", "InstallPath"),
]
ACCOUNT_NAME_KEY = (HKCU, r"SOFTWARE\Valve\Steam", "LastGameNameUsed")

LIBRARY_SUBDIR = "steamapps"
LIBRARY_DECLARATION = "libraryfolders.vdf"
LOGIN_RECORDS = os.path.join("config", "loginusers.vdf")

RegistryReader = Callable[[str, str, str], Optional[str]]


def read_registry_value(hive: str, subkey: str, value_name: str) -> Optional[str]:
    """Reads one string value from the registry. Any failure is a miss."""
    if winreg is None:
        return None
    try:
        root = getattr(winreg, hive)
        with winreg.OpenKey(root, subkey) as key:
            value, _ = winreg.QueryValueEx(key, value_name)
    except OSError as e:
        logger.debug(f"[Registry] {hive}\\{subkey}\\{value_name} unavailable: {e}")
        return None
    return value if isinstance(value, str) and value else None


class SteamLocator:
    def __init__(self, registry_reader: RegistryReader = read_registry_value):
        self.registry_reader = registry_reader

    def locate_install_root(self) -> Optional[str]:
        for hive, subkey, value_name in INSTALL_PATH_KEYS:
            path = self.registry_reader(hive, subkey, value_name)
            if path and os.path.isdir(path):
                logger.info(f"[Steam] Install root: {path}")
                return path
        logger.info("[Steam] No Steam installation found.")
        return None

    def enumerate_library_folders(self, install_root: Optional[str]) -> List[str]:
        """
        The default library under the install root always comes first, then
        every declared library whose steamapps folder actually exists.
        """
        if not install_root:
            return []

        base = os.path.join(install_root, LIBRARY_SUBDIR)
        folders = [base]
        declaration = os.path.join(base, LIBRARY_DECLARATION)
        if not os.path.isfile(declaration):
            return folders

        try:
            lines = read_lines(declaration)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"[Steam] Could not read {declaration}: {e}")
            return folders

        for key, value in iter_pairs(lines):
            if key.lower() != "path":
                continue
            apps_path = os.path.join(unescape_path(value), LIBRARY_SUBDIR)
            if apps_path in folders:
                continue
            if os.path.isdir(apps_path):
                folders.append(apps_path)
            else:
                logger.debug(f"[Steam] Declared library missing on disk: {apps_path}")
        return folders

    def resolve_account_name(self, install_root: Optional[str] = None) -> Optional[str]:
        """
        Picks the persona flagged MostRecent in loginusers.vdf, else the last
        persona in the file, else the registry's last-used name.
        """
        if install_root is None:
            install_root = self.locate_install_root()

        if install_root:
            name = self._account_from_login_records(os.path.join(install_root, LOGIN_RECORDS))
            if name:
                return name

        return self.registry_reader(*ACCOUNT_NAME_KEY)

    def _account_from_login_records(self, path: str) -> Optional[str]:
        if not os.path.isfile(path):
            return None
        try:
            lines = read_lines(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"[Steam] Could not read login records: {e}")
            return None

        last_persona = None
        for key, value in iter_pairs(lines):
            key = key.lower()
            if key == "personaname":
                last_persona = value
            elif key == "mostrecent" and value == "1" and last_persona:
                return last_persona
        return last_persona
