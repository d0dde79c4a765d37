from __future__ import annotations

from pathlib import Path

from conftest import fake_registry
from steam_locator import HKCU, HKLM, SteamLocator

LOGIN_USERS = '''"users"
{
	"76561190000000001"
	{
		"AccountName"		"alpha"
		"PersonaName"		"A"
		"MostRecent"		"0"
	}
	"76561190000000002"
	{
		"AccountName"		"bravo"
		"PersonaName"		"B"
		"MostRecent"		"1"
	}
	"76561190000000003"
	{
		"PersonaName"		"C"
		"MostRecent"		"0"
	}
}
'''


def test_locate_prefers_64bit_key(tmp_path: Path) -> None:
    wow = tmp_path / "wow"
    plain = tmp_path / "plain"
    wow.mkdir()
    plain.mkdir()
    locator = SteamLocator(fake_registry({
        (HKLM, r"SOFTWARE\Wow6432Node\Valve\Steam", "InstallPath"): str(wow),
        (HKLM, r"SOFTWARE\Valve\Steam", "InstallPath"): str(plain),
    }))
    assert locator.locate_install_root() == str(wow)


def test_locate_skips_missing_directory(tmp_path: Path) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()
    locator = SteamLocator(fake_registry({
        (HKLM, r"SOFTWARE\Wow6432Node\Valve\Steam", "InstallPath"): str(tmp_path / "gone"),
        (HKLM, r"SOFTWARE\Valve\Steam", "InstallPath"): str(plain),
    }))
    assert locator.locate_install_root() == str(plain)


def test_locate_not_found() -> None:
    assert SteamLocator(fake_registry({})).locate_install_root() is None


def test_library_folders_base_only(steam_root: Path) -> None:
    folders = SteamLocator(fake_registry({})).enumerate_library_folders(str(steam_root))
    assert folders == [str(steam_root / "steamapps")]


def test_library_folders_filters_and_dedups(steam_root: Path, tmp_path: Path) -> None:
    extra = tmp_path / "SteamLibrary"
    (extra / "steamapps").mkdir(parents=True)
    missing = tmp_path / "Unplugged"
    (steam_root / "steamapps" / "libraryfolders.vdf").write_text(
        '"libraryfolders"\n{\n'
        f'\t"0"\n\t{{\n\t\t"path"\t\t"{steam_root}"\n\t}}\n'
        f'\t"1"\n\t{{\n\t\t"path"\t\t"{extra}"\n\t\t"label"\t\t""\n\t}}\n'
        f'\t"2"\n\t{{\n\t\t"path"\t\t"{missing}"\n\t}}\n'
        f'\t"3"\n\t{{\n\t\t"path"\t\t"{extra}"\n\t}}\n'
        '}\n',
        encoding="utf-8",
    )
    folders = SteamLocator(fake_registry({})).enumerate_library_folders(str(steam_root))
    assert folders == [str(steam_root / "steamapps"), str(extra / "steamapps")]


def test_library_folders_without_root() -> None:
    assert SteamLocator(fake_registry({})).enumerate_library_folders(None) == []


def test_account_name_most_recent(steam_root: Path) -> None:
    (steam_root / "config").mkdir()
    (steam_root / "config" / "loginusers.vdf").write_text(LOGIN_USERS, encoding="utf-8")
    assert SteamLocator(fake_registry({})).resolve_account_name(str(steam_root)) == "B"


def test_account_name_falls_back_to_last_persona(steam_root: Path) -> None:
    (steam_root / "config").mkdir()
    (steam_root / "config" / "loginusers.vdf").write_text(
        LOGIN_USERS.replace('"MostRecent"\t\t"1"', '"MostRecent"\t\t"0"'), encoding="utf-8")
    assert SteamLocator(fake_registry({})).resolve_account_name(str(steam_root)) == "C"


def test_account_name_most_recent_before_any_persona(steam_root: Path) -> None:
    (steam_root / "config").mkdir()
    (steam_root / "config" / "loginusers.vdf").write_text(
        '"MostRecent" "1"\n"PersonaName" "Late"\n', encoding="utf-8")
    assert SteamLocator(fake_registry({})).resolve_account_name(str(steam_root)) == "Late"


def test_account_name_registry_fallback(steam_root: Path) -> None:
    locator = SteamLocator(fake_registry({
        (HKCU, r"SOFTWARE\Valve\Steam", "LastGameNameUsed"): "RegistryUser",
    }))
    assert locator.resolve_account_name(str(steam_root)) == "RegistryUser"


def test_account_name_not_found() -> None:
    assert SteamLocator(fake_registry({})).resolve_account_name() is None
