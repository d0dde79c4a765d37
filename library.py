# library.py
import sqlite3
import logging
import threading
from typing import Iterable, List, Optional

from game import DiscoveredGame, LibraryEntry, SourceCategory, category_for

logger = logging.getLogger("Library")

ALL_CATEGORY = "All"
FAVORITES_CATEGORY = "Favorites"


class GameLibrary:
    """
    Persistent catalog. Scans replace the scanned rows wholesale while
    manually added games survive every rescan.
    """

    def __init__(self, database_file: str):
        self.database_file = database_file
        self._lock = threading.Lock()
        self.init_db()

    def get_db_connection(self):
        conn = sqlite3.connect(self.database_file, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self):
        conn = self.get_db_connection()
        try:
            conn.execute('''CREATE TABLE IF NOT EXISTS games (
                    launch_target TEXT PRIMARY KEY COLLATE NOCASE,
                    title TEXT NOT NULL,
                    visual_asset TEXT,
                    source TEXT,
                    category TEXT DEFAULT 'All',
                    is_manual BOOLEAN DEFAULT 0,
                    favorite BOOLEAN DEFAULT 0,
                    position INTEGER DEFAULT 0
                )''')
            conn.commit()
        finally:
            conn.close()
        logger.info("[Database] Library schema initialized.")

    def _row_to_entry(self, r) -> LibraryEntry:
        game = DiscoveredGame(
            title=r['title'],
            launch_target=r['launch_target'],
            visual_asset=r['visual_asset'],
            source=r['source'],
        )
        return LibraryEntry(game=game, category=r['category'],
                            is_manual=bool(r['is_manual']), favorite=bool(r['favorite']))

    def all_games(self) -> List[LibraryEntry]:
        conn = self.get_db_connection()
        try:
            rows = conn.execute("SELECT * FROM games ORDER BY is_manual, position, rowid").fetchall()
        finally:
            conn.close()
        return [self._row_to_entry(r) for r in rows]

    def get_by_category(self, category: Optional[str]) -> List[LibraryEntry]:
        entries = self.all_games()
        if not category or category == ALL_CATEGORY:
            return entries
        wanted = category.casefold()
        return [e for e in entries if e.category.casefold() == wanted]

    def set_scanned_games(self, scanned: Iterable[DiscoveredGame]) -> int:
        """Swaps in a fresh scan. Manual rows and their launch targets are kept."""
        with self._lock:
            conn = self.get_db_connection()
            try:
                manual = {r['launch_target'].casefold() for r in
                          conn.execute("SELECT launch_target FROM games WHERE is_manual = 1")}
                favorites = {r['launch_target'].casefold() for r in
                             conn.execute("SELECT launch_target FROM games WHERE favorite = 1 AND is_manual = 0")}
                conn.execute("DELETE FROM games WHERE is_manual = 0")

                count = 0
                for position, g in enumerate(scanned):
                    if g.identity in manual:
                        continue
                    favorite = g.identity in favorites
                    category = FAVORITES_CATEGORY if favorite else category_for(g)
                    conn.execute('''
                        INSERT INTO games (launch_target, title, visual_asset, source, category, is_manual, favorite, position)
                        VALUES (?, ?, ?, ?, ?, 0, ?, ?)
                        ON CONFLICT(launch_target) DO NOTHING
                    ''', (g.launch_target, g.title, g.visual_asset, g.source.value, category, favorite, position))
                    count += 1
                conn.commit()
            finally:
                conn.close()
        logger.info(f"[Library] Stored {count} scanned entries.")
        return count

    def add_manual_game(self, title: str, path: str, visual_asset: Optional[str] = None,
                        category: str = "Manual") -> LibraryEntry:
        game = DiscoveredGame(title=title, launch_target=path,
                              visual_asset=visual_asset, source=SourceCategory.MANUAL)
        with self._lock:
            conn = self.get_db_connection()
            try:
                conn.execute('''
                    INSERT INTO games (launch_target, title, visual_asset, source, category, is_manual)
                    VALUES (?, ?, ?, ?, ?, 1)
                    ON CONFLICT(launch_target) DO UPDATE SET
                        title = excluded.title,
                        visual_asset = excluded.visual_asset,
                        source = excluded.source,
                        category = excluded.category,
                        is_manual = 1
                ''', (game.launch_target, game.title, game.visual_asset, game.source.value, category))
                conn.commit()
            finally:
                conn.close()
        logger.info(f"[Library] Manually registered: {title}")
        return LibraryEntry(game=game, category=category, is_manual=True)

    def remove_game(self, launch_target: str) -> bool:
        with self._lock:
            conn = self.get_db_connection()
            try:
                cur = conn.execute("DELETE FROM games WHERE launch_target = ?", (launch_target,))
                conn.commit()
                return cur.rowcount > 0
            finally:
                conn.close()

    def set_favorite(self, launch_target: str, favorite: bool) -> bool:
        with self._lock:
            conn = self.get_db_connection()
            try:
                row = conn.execute("SELECT * FROM games WHERE launch_target = ?", (launch_target,)).fetchone()
                if row is None:
                    return False
                if favorite:
                    category = FAVORITES_CATEGORY
                elif row['is_manual']:
                    category = "Manual"
                else:
                    category = category_for(self._row_to_entry(row).game)
                conn.execute("UPDATE games SET favorite = ?, category = ? WHERE launch_target = ?",
                             (favorite, category, launch_target))
                conn.commit()
                return True
            finally:
                conn.close()
