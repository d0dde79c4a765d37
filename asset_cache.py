# asset_cache.py
import os
import re
import shutil
import logging
from typing import List, Optional

import requests

from icon_provider import IconProvider, LARGE_ICON_SIZE, default_icon_providers

logger = logging.getLogger("AssetCache")

STEAM_HEADER_URL = "https://cdn.cloudflare.steamstatic.com/steam/apps/{appid}/header.jpg"
FETCH_TIMEOUT = 5

INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def safe_filename(title: str) -> str:
    return INVALID_FILENAME_CHARS.sub('_', title)


class AssetCache:
    """
    One image per title, on disk, forever. A file that already sits at the
    cache path is returned as-is; clearing the directories is the only way to
    get a fresh one.
    """

    def __init__(self, artwork_dir: str, icon_dir: str,
                 cdn_template: str = STEAM_HEADER_URL,
                 timeout: float = FETCH_TIMEOUT,
                 icon_providers: Optional[List[IconProvider]] = None):
        self.artwork_dir = artwork_dir
        self.icon_dir = icon_dir
        self.cdn_template = cdn_template
        self.timeout = timeout
        self.icon_providers = icon_providers if icon_providers is not None else default_icon_providers()

    def artwork_path(self, title: str, app_id: Optional[str]) -> Optional[str]:
        if not app_id:
            return None
        return os.path.join(self.artwork_dir, f"{safe_filename(title)}_{app_id}.jpg")

    def icon_path(self, title: str, app_id: Optional[str] = None) -> str:
        stem = safe_filename(title)
        if app_id:
            stem = f"{stem}_{app_id}"
        return os.path.join(self.icon_dir, f"{stem}.png")

    def cached(self, title: str, app_id: Optional[str] = None) -> Optional[str]:
        for path in (self.artwork_path(title, app_id), self.icon_path(title, app_id)):
            if path and os.path.isfile(path):
                return path
        return None

    def resolve_asset(self, title: str, app_id: Optional[str] = None,
                      exe_path: Optional[str] = None) -> Optional[str]:
        """
        Cached file, else store artwork (needs app_id), else an icon pulled
        from exe_path. None means the caller should show its placeholder.
        """
        hit = self.cached(title, app_id)
        if hit:
            return hit

        if app_id:
            fetched = self.fetch_artwork(title, app_id)
            if fetched:
                return fetched

        if exe_path:
            return self.extract_icon(title, exe_path, app_id)
        return None

    def fetch_artwork(self, title: str, app_id: str) -> Optional[str]:
        url = self.cdn_template.format(appid=app_id)
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"[Covers] Artwork fetch failed for {title}: {e}")
            return None

        if not 200 <= response.status_code < 300 or not response.content:
            logger.info(f"[Covers] No artwork for {title} (HTTP {response.status_code})")
            return None

        path = self.artwork_path(title, app_id)
        os.makedirs(self.artwork_dir, exist_ok=True)
        with open(path, 'wb') as f:
            f.write(response.content)
        logger.info(f"[Covers] Successfully cached: {title}")
        return path

    def extract_icon(self, title: str, exe_path: str, app_id: Optional[str] = None) -> Optional[str]:
        if not os.path.isfile(exe_path):
            return None

        path = self.icon_path(title, app_id)
        if os.path.isfile(path):
            return path

        for provider in self.icon_providers:
            try:
                image = provider.render(exe_path, LARGE_ICON_SIZE)
            except Exception as e:
                logger.debug(f"[Icons] {provider.name} failed on {exe_path}: {e}")
                continue
            if image is None:
                continue

            if image.width > LARGE_ICON_SIZE or image.height > LARGE_ICON_SIZE:
                image.thumbnail((LARGE_ICON_SIZE, LARGE_ICON_SIZE))
            os.makedirs(self.icon_dir, exist_ok=True)
            image.save(path, 'PNG')
            logger.info(f"[Icons] Cached icon for {title} via {provider.name}")
            return path

        logger.debug(f"[Icons] No icon could be extracted for {title}")
        return None

    def clear(self) -> None:
        """Drops both cache directories wholesale."""
        for folder in (self.icon_dir, self.artwork_dir):
            if os.path.isdir(folder):
                shutil.rmtree(folder)
                logger.info(f"[Cache] Cleared {folder}")
