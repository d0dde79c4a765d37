# steam_scanner.py
import os
import glob
import logging
import threading
from typing import Iterable, List, Optional
from dataclasses import dataclass

from scan_outcome import ScanOutcome, SkipReason
from vdf_lines import load_manifest

logger = logging.getLogger("SteamScanner")

MANIFEST_PATTERN = "appmanifest_*.acf"

# Steamworks Common Redistributables
NON_GAME_APP_IDS = {"228980"}
NON_GAME_NAME_MARKERS = ("Steamworks Common",)


@dataclass(frozen=True)
class SteamTitle:
    name: str
    app_id: str
    install_dir: str
    library_path: str

    def launch_target(self, template: str = "steam://run/{appid}") -> str:
        return template.format(appid=self.app_id)


def read_app_manifest(path: str, library_path: str) -> ScanOutcome:
    """Parses one appmanifest into a SteamTitle or a tagged skip."""
    try:
        record = load_manifest(path)
    except (OSError, UnicodeDecodeError) as e:
        return ScanOutcome.skipped(path, SkipReason.UNREADABLE, str(e))

    name = record.get("name", "").strip()
    app_id = record.get("appid", "").strip()
    install_dir = record.get("installdir", "").strip()

    if not (name and app_id and install_dir):
        missing = [k for k, v in (("name", name), ("appid", app_id), ("installdir", install_dir)) if not v]
        return ScanOutcome.skipped(path, SkipReason.MISSING_FIELDS, ", ".join(missing))

    if app_id in NON_GAME_APP_IDS or any(m in name for m in NON_GAME_NAME_MARKERS):
        return ScanOutcome.skipped(path, SkipReason.NON_GAME, name)

    return ScanOutcome.accepted(path, SteamTitle(name, app_id, install_dir, library_path))


class SteamCatalogScanner:
    def scan(self, library_folders: Iterable[str],
             cancel_event: Optional[threading.Event] = None) -> List[ScanOutcome]:
        outcomes = []
        for library in library_folders:
            if not os.path.isdir(library):
                continue
            for manifest in sorted(glob.glob(os.path.join(glob.escape(library), MANIFEST_PATTERN))):
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("[Steam] Scan cancelled.")
                    return outcomes
                outcome = read_app_manifest(manifest, library)
                if not outcome.ok:
                    logger.debug(f"[Steam] Skipped {os.path.basename(manifest)}: {outcome.reason.value} {outcome.detail}")
                outcomes.append(outcome)
        return outcomes
