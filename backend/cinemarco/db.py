import json
import sqlite3
from contextlib import contextmanager
from typing import Any

from .config import DB_PATH


def init_db() -> None:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(DB_PATH) as conn:
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS friends (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                nickname TEXT,
                avatar_url TEXT,
                created_at TEXT NOT NULL
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS tags (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                color TEXT,
                description TEXT,
                created_at TEXT NOT NULL
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS collections (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT,
                cover_image_path TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS library_entries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                media_type TEXT NOT NULL,
                tmdb_id INTEGER NOT NULL,
                title TEXT NOT NULL,
                release_date TEXT,
                poster_url TEXT,
                total_episodes INTEGER,
                watch_status TEXT NOT NULL DEFAULT 'not_started',
                personal_rating INTEGER,
                is_favorite INTEGER NOT NULL DEFAULT 0,
                notes TEXT,
                date_added TEXT NOT NULL
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS collection_items (
                collection_id INTEGER NOT NULL REFERENCES collections(id) ON DELETE CASCADE,
                entry_id INTEGER NOT NULL REFERENCES library_entries(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                notes TEXT,
                PRIMARY KEY (collection_id, entry_id)
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS entry_friends (
                entry_id INTEGER NOT NULL REFERENCES library_entries(id) ON DELETE CASCADE,
                friend_id INTEGER NOT NULL REFERENCES friends(id) ON DELETE CASCADE,
                PRIMARY KEY (entry_id, friend_id)
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS entry_tags (
                entry_id INTEGER NOT NULL REFERENCES library_entries(id) ON DELETE CASCADE,
                tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
                PRIMARY KEY (entry_id, tag_id)
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS movie_watch_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                entry_id INTEGER NOT NULL REFERENCES library_entries(id) ON DELETE CASCADE,
                watched_date TEXT NOT NULL,
                name TEXT,
                created_at TEXT NOT NULL
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS session_friends (
                session_id INTEGER NOT NULL REFERENCES movie_watch_sessions(id) ON DELETE CASCADE,
                friend_id INTEGER NOT NULL REFERENCES friends(id) ON DELETE CASCADE,
                PRIMARY KEY (session_id, friend_id)
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS episode_progress (
                entry_id INTEGER NOT NULL REFERENCES library_entries(id) ON DELETE CASCADE,
                season_number INTEGER NOT NULL,
                episode_number INTEGER NOT NULL,
                is_watched INTEGER NOT NULL,
                watched_date TEXT,
                PRIMARY KEY (entry_id, season_number, episode_number)
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS tracked_contributors (
                id TEXT PRIMARY KEY,
                tmdb_person_id INTEGER NOT NULL UNIQUE,
                name TEXT NOT NULL,
                profile_path TEXT,
                known_for_department TEXT,
                notes TEXT,
                created_at TEXT NOT NULL
            )
            '''
        )
        conn.execute(
            '''
            CREATE TABLE IF NOT EXISTS tmdb_cache (
                cache_key TEXT PRIMARY KEY,
                cache_value TEXT NOT NULL,
                expires_at TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            '''
        )
        conn.execute('CREATE INDEX IF NOT EXISTS idx_tmdb_cache_expires ON tmdb_cache(expires_at)')
        conn.commit()


@contextmanager
def get_conn() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute('PRAGMA foreign_keys = ON')
    try:
        yield conn
    finally:
        conn.close()


def set_setting(key: str, value: Any) -> None:
    payload = json.dumps(value)
    with get_conn() as conn:
        conn.execute(
            'INSERT INTO settings(key, value) VALUES(?, ?) ON CONFLICT(key) DO UPDATE SET value = excluded.value',
            (key, payload),
        )
        conn.commit()


def get_setting(key: str, default: Any = None) -> Any:
    with get_conn() as conn:
        row = conn.execute('SELECT value FROM settings WHERE key = ?', (key,)).fetchone()
        if not row:
            return default
        return json.loads(row['value'])


def clear_settings(keys: list[str]) -> None:
    with get_conn() as conn:
        conn.executemany('DELETE FROM settings WHERE key = ?', [(k,) for k in keys])
        conn.commit()
