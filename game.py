# game.py
from enum import Enum
from typing import Optional
from dataclasses import dataclass, asdict

# Stand-in for "no cached image"; the UI swaps in its bundled artwork.
PLACEHOLDER_ASSET = "builtin:placeholder"


class SourceCategory(str, Enum):
    STEAM = "Steam"
    SHORTCUT = "Shortcut"
    MANUAL = "Manual"


@dataclass
class DiscoveredGame:
    title: str
    launch_target: str
    visual_asset: str = PLACEHOLDER_ASSET
    source: SourceCategory = SourceCategory.SHORTCUT

    def __post_init__(self):
        if self.title:
            self.title = self.title.strip()
        if not self.title or not self.launch_target:
            raise ValueError("DiscoveredGame needs both a title and a launch target")
        if not self.visual_asset:
            self.visual_asset = PLACEHOLDER_ASSET
        self.source = SourceCategory(self.source)

    @property
    def identity(self) -> str:
        # Launch target is the dedup key, compared case-insensitively
        return self.launch_target.casefold()

    def to_dict(self) -> dict:
        d = asdict(self)
        d['source'] = self.source.value
        return d


@dataclass
class LibraryEntry:
    """A catalog row as persisted by the library store."""
    game: DiscoveredGame
    category: str = "All"
    is_manual: bool = False
    favorite: bool = False

    def to_dict(self) -> dict:
        d = self.game.to_dict()
        d.update({
            "category": self.category,
            "is_manual": self.is_manual,
            "favorite": self.favorite,
        })
        return d


def category_for(game: DiscoveredGame, launch_prefix: Optional[str] = "steam://") -> str:
    """Scanned entries launched through the store protocol land in 'Steam'."""
    if launch_prefix and game.launch_target.lower().startswith(launch_prefix):
        return "Steam"
    return "All"
