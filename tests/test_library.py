from __future__ import annotations

from pathlib import Path

import pytest

from game import DiscoveredGame, PLACEHOLDER_ASSET, SourceCategory
from library import GameLibrary


@pytest.fixture
def library(tmp_path: Path) -> GameLibrary:
    return GameLibrary(str(tmp_path / "library.db"))


def scanned():
    return [
        DiscoveredGame("Portal 2", "steam://run/620", "/cache/Portal 2_620.jpg", SourceCategory.STEAM),
        DiscoveredGame("League of Legends", r"C:\Users\me\Desktop\League of Legends.lnk"),
    ]


def test_scanned_games_are_categorized(library: GameLibrary) -> None:
    assert library.set_scanned_games(scanned()) == 2
    entries = library.all_games()
    assert [(e.game.title, e.category) for e in entries] == [("Portal 2", "Steam"), ("League of Legends", "All")]
    assert [e.game.title for e in library.get_by_category("steam")] == ["Portal 2"]
    assert len(library.get_by_category("All")) == 2


def test_rescan_keeps_manual_games(library: GameLibrary) -> None:
    library.set_scanned_games(scanned())
    library.add_manual_game("Old Game", r"D:\Games\old.exe")
    library.set_scanned_games(scanned()[:1])

    entries = library.all_games()
    assert [e.game.title for e in entries] == ["Portal 2", "Old Game"]
    manual = entries[1]
    assert manual.is_manual and manual.category == "Manual"
    assert manual.game.source is SourceCategory.MANUAL
    assert manual.game.visual_asset == PLACEHOLDER_ASSET


def test_manual_entry_shadows_scanned_duplicate(library: GameLibrary) -> None:
    library.add_manual_game("My Portal", "STEAM://RUN/620")
    library.set_scanned_games(scanned())
    titles = [e.game.title for e in library.all_games()]
    assert titles == ["League of Legends", "My Portal"]


def test_favorite_survives_rescan(library: GameLibrary) -> None:
    library.set_scanned_games(scanned())
    assert library.set_favorite("steam://run/620", True)
    library.set_scanned_games(scanned())
    assert [e.game.title for e in library.get_by_category("Favorites")] == ["Portal 2"]

    assert library.set_favorite("steam://run/620", False)
    assert library.get_by_category("Favorites") == []
    assert library.get_by_category("Steam")[0].favorite is False


def test_remove_is_case_insensitive(library: GameLibrary) -> None:
    library.set_scanned_games(scanned())
    assert library.remove_game("STEAM://RUN/620")
    assert not library.remove_game("steam://run/620")
    assert [e.game.title for e in library.all_games()] == ["League of Legends"]


def test_set_favorite_unknown(library: GameLibrary) -> None:
    assert library.set_favorite("steam://run/1", True) is False
