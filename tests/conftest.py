from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from steam_locator import HKLM  # noqa: E402


def write_manifest(library: Path, appid: str, name: str, installdir: str) -> Path:
    library.mkdir(parents=True, exist_ok=True)
    path = library / f"appmanifest_{appid}.acf"
    path.write_text(
        '"AppState"\n'
        '{\n'
        f'\t"appid"\t\t"{appid}"\n'
        '\t"Universe"\t\t"1"\n'
        f'\t"name"\t\t"{name}"\n'
        '\t"StateFlags"\t\t"4"\n'
        f'\t"installdir"\t\t"{installdir}"\n'
        '}\n',
        encoding="utf-8",
    )
    return path


def write_sized(path: Path, size: int) -> Path:
    """Sparse file with the given logical size."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    return path


def fake_registry(values: dict):
    def reader(hive, subkey, value_name):
        return values.get((hive, subkey, value_name))
    return reader


@pytest.fixture
def steam_root(tmp_path: Path) -> Path:
    root = tmp_path / "Steam"
    (root / "steamapps").mkdir(parents=True)
    return root


@pytest.fixture
def steam_registry(steam_root: Path):
    return fake_registry({(HKLM, r"SOFTWARE\Wow6432Node\Valve\Steam", "InstallPath"): str(steam_root)})
