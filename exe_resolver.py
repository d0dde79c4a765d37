# exe_resolver.py
import os
import logging
from typing import List, Optional

logger = logging.getLogger("ExeResolver")

EXECUTABLE_EXT = ".exe"


def game_root(library_path: str, install_dir: str) -> str:
    return os.path.join(library_path, "common", install_dir)


def list_executables(folder: str) -> List[str]:
    """Top-level executables only, sorted by name."""
    items = []
    try:
        with os.scandir(folder) as entries:
            for entry in entries:
                if entry.name.lower().endswith(EXECUTABLE_EXT) and entry.is_file():
                    items.append(entry.path)
    except OSError as e:
        logger.debug(f"[ExeResolver] Cannot list {folder}: {e}")
        return []
    return sorted(items, key=lambda p: os.path.basename(p).lower())


def _file_size(path: str) -> int:
    try:
        return os.path.getsize(path)
    except OSError:
        return -1


def pick_main_executable(executables: List[str], install_dir: str) -> Optional[str]:
    """
    An exe whose name contains the install folder name wins; otherwise the
    biggest one, since installers and uninstallers tend to be small.
    """
    if not executables:
        return None

    wanted = install_dir.replace(" ", "").lower()
    if wanted:
        for exe in executables:
            stem = os.path.splitext(os.path.basename(exe))[0]
            if wanted in stem.replace(" ", "").lower():
                return exe

    return max(executables, key=_file_size)


def resolve_main_executable(library_path: str, install_dir: str) -> Optional[str]:
    root = game_root(library_path, install_dir)
    if not os.path.isdir(root):
        return None
    return pick_main_executable(list_executables(root), install_dir)
