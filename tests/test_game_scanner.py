from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from asset_cache import AssetCache
from config import ScanConfig
from conftest import fake_registry, write_manifest, write_sized
from game import PLACEHOLDER_ASSET, SourceCategory
from game_scanner import GameScanner
from icon_provider import NullIconProvider
from steam_locator import SteamLocator


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"L\x00\x00\x00")
    return path


@pytest.fixture
def desktop(tmp_path: Path) -> Path:
    folder = tmp_path / "Desktop"
    folder.mkdir()
    return folder


def make_scanner(tmp_path: Path, registry, shortcut_dirs) -> GameScanner:
    config = ScanConfig.for_data_dir(str(tmp_path / "data"), shortcut_dirs=[str(d) for d in shortcut_dirs])
    assets = AssetCache(config.artwork_dir, config.icon_dir, icon_providers=[NullIconProvider()])
    return GameScanner(config, locator=SteamLocator(registry), assets=assets)


@pytest.fixture(autouse=True)
def no_network():
    with patch("asset_cache.requests.get", return_value=Mock(ok=False, status_code=404, content=b"")) as get:
        yield get


def test_store_then_shortcuts(tmp_path: Path, steam_root: Path, steam_registry, desktop: Path) -> None:
    apps = steam_root / "steamapps"
    write_manifest(apps, "730", "Counter-Strike 2", "Counter-Strike Global Offensive")
    write_manifest(apps, "228980", "Steamworks Common Redistributables", "Steamworks Shared")
    write_sized(apps / "common" / "Counter-Strike Global Offensive" / "cs2.exe", 1024)
    touch(desktop / "Counter-Strike 2.lnk")
    touch(desktop / "League of Legends.lnk")
    touch(desktop / "Epic Games Launcher.lnk")

    games = make_scanner(tmp_path, steam_registry, [desktop]).scan()

    assert [(g.title, g.source) for g in games] == [
        ("Counter-Strike 2", SourceCategory.STEAM),
        ("League of Legends", SourceCategory.SHORTCUT),
    ]
    assert games[0].launch_target == "steam://run/730"
    assert games[1].launch_target == str(desktop / "League of Legends.lnk")
    assert all(g.visual_asset == PLACEHOLDER_ASSET for g in games)


def test_no_steam_still_returns_shortcuts(tmp_path: Path, desktop: Path) -> None:
    touch(desktop / "League of Legends.lnk")
    touch(desktop / "Minecraft.lnk")

    games = make_scanner(tmp_path, fake_registry({}), [desktop]).scan()

    assert sorted(g.title for g in games) == ["League of Legends", "Minecraft"]
    assert all(g.source is SourceCategory.SHORTCUT for g in games)


def test_no_duplicate_launch_targets(tmp_path: Path, steam_root: Path, steam_registry, desktop: Path) -> None:
    extra = tmp_path / "SteamLibrary"
    (extra / "steamapps").mkdir(parents=True)
    (steam_root / "steamapps" / "libraryfolders.vdf").write_text(f'"path" "{extra}"\n', encoding="utf-8")
    write_manifest(steam_root / "steamapps", "620", "Portal 2", "Portal 2")
    write_manifest(extra / "steamapps", "620", "Portal 2", "Portal 2")
    touch(desktop / "Fortnite.lnk")

    # Same folder listed twice yields the same shortcut paths twice
    games = make_scanner(tmp_path, steam_registry, [desktop, desktop]).scan()

    targets = [g.launch_target.casefold() for g in games]
    assert len(targets) == len(set(targets)) == 2


def test_steam_artwork_is_used(tmp_path: Path, steam_root: Path, steam_registry, no_network) -> None:
    write_manifest(steam_root / "steamapps", "620", "Portal 2", "Portal 2")
    no_network.return_value = Mock(ok=True, status_code=200, content=b"jpeg")

    games = make_scanner(tmp_path, steam_registry, []).scan()

    assert games[0].visual_asset == str(tmp_path / "data" / "SteamArt" / "Portal 2_620.jpg")


def test_cancelled_scan_returns_empty(tmp_path: Path, steam_root: Path, steam_registry, desktop: Path) -> None:
    write_manifest(steam_root / "steamapps", "620", "Portal 2", "Portal 2")
    touch(desktop / "League of Legends.lnk")
    cancel = threading.Event()
    cancel.set()

    assert make_scanner(tmp_path, steam_registry, [desktop]).scan(cancel) == []


def test_account_name(tmp_path: Path, steam_root: Path, steam_registry) -> None:
    (steam_root / "config").mkdir()
    (steam_root / "config" / "loginusers.vdf").write_text('"PersonaName" "Gordon"\n', encoding="utf-8")
    assert make_scanner(tmp_path, steam_registry, []).account_name() == "Gordon"
