from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, UTC, timedelta
from typing import Any

from .db import get_conn
from .domain import (
    AddEntryRequest,
    CacheEntry,
    CacheStats,
    ClearCacheResult,
    Collection,
    CollectionId,
    CreateCollectionRequest,
    CreateFriendRequest,
    CreateMovieWatchSessionRequest,
    CreateTagRequest,
    EntryId,
    EpisodeProgressRequest,
    Friend,
    FriendId,
    LibraryEntry,
    MovieWatchSession,
    SessionId,
    Tag,
    TagId,
    TrackContributorRequest,
    TrackedContributor,
    TrackedContributorId,
    UpdateCollectionRequest,
    UpdateFriendRequest,
    UpdateMovieWatchSessionRequest,
    UpdateTagRequest,
)
from .utils import trimmed_or_none

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    pass


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _required_name(name: str | None, what: str) -> str:
    cleaned = (name or '').strip()
    if not cleaned:
        raise ValueError(f'{what} name is required')
    return cleaned


def _ids(conn: sqlite3.Connection, sql: str, params: tuple[Any, ...]) -> list[int]:
    return [int(row[0]) for row in conn.execute(sql, params).fetchall()]


# Friends

def list_friends() -> list[Friend]:
    with get_conn() as conn:
        rows = conn.execute('SELECT * FROM friends ORDER BY name COLLATE NOCASE').fetchall()
    return [Friend.model_validate(dict(row)) for row in rows]


def get_friend(friend_id: FriendId) -> Friend:
    with get_conn() as conn:
        row = conn.execute('SELECT * FROM friends WHERE id = ?', (friend_id,)).fetchone()
    if not row:
        raise NotFoundError(f'Friend {friend_id} not found')
    return Friend.model_validate(dict(row))


def create_friend(request: CreateFriendRequest) -> Friend:
    name = _required_name(request.name, 'Friend')
    with get_conn() as conn:
        cursor = conn.execute(
            'INSERT INTO friends(name, nickname, created_at) VALUES(?, ?, ?)',
            (name, trimmed_or_none(request.nickname), _now()),
        )
        conn.commit()
        friend_id = FriendId(int(cursor.lastrowid))
    return get_friend(friend_id)


def update_friend(request: UpdateFriendRequest) -> Friend:
    current = get_friend(request.id)
    provided = request.model_fields_set
    name = _required_name(request.name, 'Friend') if request.name is not None else current.name
    nickname = trimmed_or_none(request.nickname) if 'nickname' in provided else current.nickname
    if request.avatar_url is None:
        avatar_url = current.avatar_url
    else:
        avatar_url = request.avatar_url or None
    with get_conn() as conn:
        conn.execute(
            'UPDATE friends SET name = ?, nickname = ?, avatar_url = ? WHERE id = ?',
            (name, nickname, avatar_url, request.id),
        )
        conn.commit()
    return get_friend(request.id)


def delete_friend(friend_id: FriendId) -> None:
    with get_conn() as conn:
        cursor = conn.execute('DELETE FROM friends WHERE id = ?', (friend_id,))
        conn.commit()
    if cursor.rowcount == 0:
        raise NotFoundError(f'Friend {friend_id} not found')


# Tags

def list_tags() -> list[Tag]:
    with get_conn() as conn:
        rows = conn.execute('SELECT * FROM tags ORDER BY name COLLATE NOCASE').fetchall()
    return [Tag.model_validate(dict(row)) for row in rows]


def get_tag(tag_id: TagId) -> Tag:
    with get_conn() as conn:
        row = conn.execute('SELECT * FROM tags WHERE id = ?', (tag_id,)).fetchone()
    if not row:
        raise NotFoundError(f'Tag {tag_id} not found')
    return Tag.model_validate(dict(row))


def create_tag(request: CreateTagRequest) -> Tag:
    name = _required_name(request.name, 'Tag')
    with get_conn() as conn:
        cursor = conn.execute(
            'INSERT INTO tags(name, color, description, created_at) VALUES(?, ?, ?, ?)',
            (name, trimmed_or_none(request.color), trimmed_or_none(request.description), _now()),
        )
        conn.commit()
        tag_id = TagId(int(cursor.lastrowid))
    return get_tag(tag_id)


def update_tag(request: UpdateTagRequest) -> Tag:
    current = get_tag(request.id)
    provided = request.model_fields_set
    name = _required_name(request.name, 'Tag') if request.name is not None else current.name
    color = trimmed_or_none(request.color) if 'color' in provided else current.color
    description = trimmed_or_none(request.description) if 'description' in provided else current.description
    with get_conn() as conn:
        conn.execute(
            'UPDATE tags SET name = ?, color = ?, description = ? WHERE id = ?',
            (name, color, description, request.id),
        )
        conn.commit()
    return get_tag(request.id)


def delete_tag(tag_id: TagId) -> None:
    with get_conn() as conn:
        cursor = conn.execute('DELETE FROM tags WHERE id = ?', (tag_id,))
        conn.commit()
    if cursor.rowcount == 0:
        raise NotFoundError(f'Tag {tag_id} not found')


# Collections

_COLLECTION_SELECT = '''
    SELECT c.*, (
        SELECT COUNT(*) FROM collection_items ci WHERE ci.collection_id = c.id
    ) AS item_count
    FROM collections c
'''


def list_collections() -> list[Collection]:
    with get_conn() as conn:
        rows = conn.execute(f'{_COLLECTION_SELECT} ORDER BY c.name COLLATE NOCASE').fetchall()
    return [Collection.model_validate(dict(row)) for row in rows]


def get_collection(collection_id: CollectionId) -> Collection:
    with get_conn() as conn:
        row = conn.execute(f'{_COLLECTION_SELECT} WHERE c.id = ?', (collection_id,)).fetchone()
    if not row:
        raise NotFoundError(f'Collection {collection_id} not found')
    return Collection.model_validate(dict(row))


def create_collection(request: CreateCollectionRequest) -> Collection:
    name = _required_name(request.name, 'Collection')
    now = _now()
    with get_conn() as conn:
        cursor = conn.execute(
            'INSERT INTO collections(name, description, created_at, updated_at) VALUES(?, ?, ?, ?)',
            (name, trimmed_or_none(request.description), now, now),
        )
        conn.commit()
        collection_id = CollectionId(int(cursor.lastrowid))
    return get_collection(collection_id)


def update_collection(request: UpdateCollectionRequest) -> Collection:
    current = get_collection(request.id)
    name = _required_name(request.name, 'Collection') if request.name is not None else current.name
    if 'description' in request.model_fields_set:
        description = trimmed_or_none(request.description)
    else:
        description = current.description
    with get_conn() as conn:
        conn.execute(
            'UPDATE collections SET name = ?, description = ?, updated_at = ? WHERE id = ?',
            (name, description, _now(), request.id),
        )
        conn.commit()
    return get_collection(request.id)


def delete_collection(collection_id: CollectionId) -> None:
    with get_conn() as conn:
        cursor = conn.execute('DELETE FROM collections WHERE id = ?', (collection_id,))
        conn.commit()
    if cursor.rowcount == 0:
        raise NotFoundError(f'Collection {collection_id} not found')


def add_collection_item(collection_id: CollectionId, entry_id: EntryId, notes: str | None = None) -> Collection:
    get_collection(collection_id)
    get_entry(entry_id)
    with get_conn() as conn:
        row = conn.execute(
            'SELECT COALESCE(MAX(position), -1) + 1 AS next_position FROM collection_items WHERE collection_id = ?',
            (collection_id,),
        ).fetchone()
        conn.execute(
            '''
            INSERT INTO collection_items(collection_id, entry_id, position, notes)
            VALUES(?, ?, ?, ?)
            ON CONFLICT(collection_id, entry_id) DO UPDATE SET notes = excluded.notes
            ''',
            (collection_id, entry_id, int(row['next_position']), trimmed_or_none(notes)),
        )
        conn.execute('UPDATE collections SET updated_at = ? WHERE id = ?', (_now(), collection_id))
        conn.commit()
    return get_collection(collection_id)


# Library entries

def _entry_from_row(conn: sqlite3.Connection, row: sqlite3.Row) -> LibraryEntry:
    payload = dict(row)
    payload['is_favorite'] = bool(payload['is_favorite'])
    payload['friends'] = _ids(conn, 'SELECT friend_id FROM entry_friends WHERE entry_id = ? ORDER BY friend_id', (row['id'],))
    payload['tags'] = _ids(conn, 'SELECT tag_id FROM entry_tags WHERE entry_id = ? ORDER BY tag_id', (row['id'],))
    return LibraryEntry.model_validate(payload)


def list_entries() -> list[LibraryEntry]:
    with get_conn() as conn:
        rows = conn.execute('SELECT * FROM library_entries ORDER BY date_added DESC, id DESC').fetchall()
        return [_entry_from_row(conn, row) for row in rows]


def get_entry(entry_id: EntryId) -> LibraryEntry:
    with get_conn() as conn:
        row = conn.execute('SELECT * FROM library_entries WHERE id = ?', (entry_id,)).fetchone()
        if not row:
            raise NotFoundError(f'Entry {entry_id} not found')
        return _entry_from_row(conn, row)


def add_entry(request: AddEntryRequest) -> LibraryEntry:
    title = _required_name(request.title, 'Entry')
    with get_conn() as conn:
        cursor = conn.execute(
            '''
            INSERT INTO library_entries(
                media_type, tmdb_id, title, release_date, poster_url, total_episodes, date_added
            )
            VALUES(?, ?, ?, ?, ?, ?, ?)
            ''',
            (
                request.media_type,
                request.tmdb_id,
                title,
                request.release_date.isoformat() if request.release_date else None,
                request.poster_url,
                request.total_episodes,
                _now(),
            ),
        )
        entry_id = EntryId(int(cursor.lastrowid))
        conn.executemany(
            'INSERT OR IGNORE INTO entry_friends(entry_id, friend_id) VALUES(?, ?)',
            [(entry_id, friend_id) for friend_id in request.friends],
        )
        conn.commit()
    return get_entry(entry_id)


def delete_entry(entry_id: EntryId) -> None:
    with get_conn() as conn:
        cursor = conn.execute('DELETE FROM library_entries WHERE id = ?', (entry_id,))
        conn.commit()
    if cursor.rowcount == 0:
        raise NotFoundError(f'Entry {entry_id} not found')


def entries_for_friend(friend_id: FriendId) -> list[LibraryEntry]:
    """Entries linked to a friend directly or through a shared watch session."""
    get_friend(friend_id)
    with get_conn() as conn:
        rows = conn.execute(
            '''
            SELECT DISTINCT e.*
            FROM library_entries e
            LEFT JOIN entry_friends ef ON ef.entry_id = e.id
            LEFT JOIN movie_watch_sessions s ON s.entry_id = e.id
            LEFT JOIN session_friends sf ON sf.session_id = s.id
            WHERE ef.friend_id = ? OR sf.friend_id = ?
            ORDER BY e.date_added DESC, e.id DESC
            ''',
            (friend_id, friend_id),
        ).fetchall()
        return [_entry_from_row(conn, row) for row in rows]


def set_episode_progress(entry_id: EntryId, request: EpisodeProgressRequest) -> LibraryEntry:
    entry = get_entry(entry_id)
    if entry.media_type != 'series':
        raise ValueError('Episode progress only applies to series')
    watched_date = request.watched_date.isoformat() if request.watched_date else None
    with get_conn() as conn:
        conn.execute(
            '''
            INSERT INTO episode_progress(entry_id, season_number, episode_number, is_watched, watched_date)
            VALUES(?, ?, ?, ?, ?)
            ON CONFLICT(entry_id, season_number, episode_number)
            DO UPDATE SET is_watched = excluded.is_watched, watched_date = excluded.watched_date
            ''',
            (entry_id, request.season_number, request.episode_number, 1 if request.is_watched else 0, watched_date),
        )
        conn.commit()
    return get_entry(entry_id)


def _series_status(watched: int, total: int | None) -> str:
    if total and watched >= total:
        return 'completed'
    if watched > 0:
        return 'in_progress'
    return 'not_started'


def recalculate_series_watch_status() -> int:
    """Recompute every series' watch status from its episode progress.

    Abandoned series are left alone. Returns the number of series whose
    status changed.
    """
    changed = 0
    with get_conn() as conn:
        rows = conn.execute(
            '''
            SELECT e.id, e.watch_status, e.total_episodes, (
                SELECT COUNT(*) FROM episode_progress p
                WHERE p.entry_id = e.id AND p.is_watched = 1
            ) AS watched
            FROM library_entries e
            WHERE e.media_type = 'series' AND e.watch_status != 'abandoned'
            '''
        ).fetchall()
        for row in rows:
            status = _series_status(int(row['watched']), row['total_episodes'])
            if status == row['watch_status']:
                continue
            conn.execute('UPDATE library_entries SET watch_status = ? WHERE id = ?', (status, row['id']))
            changed += 1
        conn.commit()
    logger.info('Recalculated watch status: %s series changed', changed)
    return changed


# Movie watch sessions

def _session_from_row(conn: sqlite3.Connection, row: sqlite3.Row) -> MovieWatchSession:
    payload = dict(row)
    payload['friends'] = _ids(conn, 'SELECT friend_id FROM session_friends WHERE session_id = ? ORDER BY friend_id', (row['id'],))
    return MovieWatchSession.model_validate(payload)


def get_movie_session(session_id: SessionId) -> MovieWatchSession:
    with get_conn() as conn:
        row = conn.execute('SELECT * FROM movie_watch_sessions WHERE id = ?', (session_id,)).fetchone()
        if not row:
            raise NotFoundError(f'Session {session_id} not found')
        return _session_from_row(conn, row)


def sessions_for_entry(entry_id: EntryId) -> list[MovieWatchSession]:
    with get_conn() as conn:
        rows = conn.execute(
            'SELECT * FROM movie_watch_sessions WHERE entry_id = ? ORDER BY watched_date DESC, id DESC',
            (entry_id,),
        ).fetchall()
        return [_session_from_row(conn, row) for row in rows]


def _refresh_entry_watched(conn: sqlite3.Connection, entry_id: EntryId) -> None:
    conn.execute(
        '''
        UPDATE library_entries SET watch_status = 'completed'
        WHERE id = ? AND media_type = 'movie' AND watch_status != 'abandoned'
        ''',
        (entry_id,),
    )


def create_movie_session(request: CreateMovieWatchSessionRequest) -> MovieWatchSession:
    entry = get_entry(request.entry_id)
    if entry.media_type != 'movie':
        raise ValueError('Watch sessions here are for movies only')
    with get_conn() as conn:
        cursor = conn.execute(
            'INSERT INTO movie_watch_sessions(entry_id, watched_date, name, created_at) VALUES(?, ?, ?, ?)',
            (request.entry_id, request.watched_date.isoformat(), trimmed_or_none(request.name), _now()),
        )
        session_id = SessionId(int(cursor.lastrowid))
        conn.executemany(
            'INSERT OR IGNORE INTO session_friends(session_id, friend_id) VALUES(?, ?)',
            [(session_id, friend_id) for friend_id in request.friends],
        )
        _refresh_entry_watched(conn, request.entry_id)
        conn.commit()
    return get_movie_session(session_id)


def update_movie_session(request: UpdateMovieWatchSessionRequest) -> MovieWatchSession:
    get_movie_session(request.session_id)
    with get_conn() as conn:
        conn.execute(
            'UPDATE movie_watch_sessions SET watched_date = ?, name = ? WHERE id = ?',
            (request.watched_date.isoformat(), trimmed_or_none(request.name), request.session_id),
        )
        conn.execute('DELETE FROM session_friends WHERE session_id = ?', (request.session_id,))
        conn.executemany(
            'INSERT OR IGNORE INTO session_friends(session_id, friend_id) VALUES(?, ?)',
            [(request.session_id, friend_id) for friend_id in request.friends],
        )
        conn.commit()
    return get_movie_session(request.session_id)


# Tracked contributors

def list_tracked_contributors() -> list[TrackedContributor]:
    with get_conn() as conn:
        rows = conn.execute('SELECT * FROM tracked_contributors ORDER BY name COLLATE NOCASE').fetchall()
    return [TrackedContributor.model_validate(dict(row)) for row in rows]


def track_contributor(request: TrackContributorRequest) -> TrackedContributor:
    name = _required_name(request.name, 'Contributor')
    with get_conn() as conn:
        existing = conn.execute(
            'SELECT id FROM tracked_contributors WHERE tmdb_person_id = ?',
            (request.tmdb_person_id,),
        ).fetchone()
        tracked_id = existing['id'] if existing else uuid.uuid4().hex
        conn.execute(
            '''
            INSERT INTO tracked_contributors(
                id, tmdb_person_id, name, profile_path, known_for_department, notes, created_at
            )
            VALUES(?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                profile_path = excluded.profile_path,
                known_for_department = excluded.known_for_department,
                notes = excluded.notes
            ''',
            (
                tracked_id,
                request.tmdb_person_id,
                name,
                request.profile_path,
                request.known_for_department,
                trimmed_or_none(request.notes),
                _now(),
            ),
        )
        conn.commit()
        row = conn.execute('SELECT * FROM tracked_contributors WHERE id = ?', (tracked_id,)).fetchone()
    return TrackedContributor.model_validate(dict(row))


def untrack_contributor(tracked_id: TrackedContributorId) -> None:
    with get_conn() as conn:
        cursor = conn.execute('DELETE FROM tracked_contributors WHERE id = ?', (tracked_id,))
        conn.commit()
    if cursor.rowcount == 0:
        raise NotFoundError(f'Tracked contributor {tracked_id} not found')


# TMDB response cache

def cache_get(cache_key: str) -> Any | None:
    with get_conn() as conn:
        row = conn.execute(
            'SELECT cache_value FROM tmdb_cache WHERE cache_key = ? AND expires_at > ?',
            (cache_key, _now()),
        ).fetchone()
    if not row:
        return None
    return json.loads(row['cache_value'])


def cache_set(cache_key: str, payload: Any, ttl_hours: float) -> None:
    now = datetime.now(UTC)
    expires_at = (now + timedelta(hours=ttl_hours)).isoformat()
    with get_conn() as conn:
        conn.execute(
            '''
            INSERT INTO tmdb_cache(cache_key, cache_value, expires_at, created_at)
            VALUES(?, ?, ?, ?)
            ON CONFLICT(cache_key) DO UPDATE SET
                cache_value = excluded.cache_value,
                expires_at = excluded.expires_at,
                created_at = excluded.created_at
            ''',
            (cache_key, json.dumps(payload), expires_at, now.isoformat()),
        )
        conn.commit()


def cache_entries() -> list[CacheEntry]:
    with get_conn() as conn:
        rows = conn.execute(
            '''
            SELECT cache_key, expires_at, LENGTH(CAST(cache_value AS BLOB)) AS size_bytes
            FROM tmdb_cache
            ORDER BY expires_at
            '''
        ).fetchall()
    return [CacheEntry.model_validate(dict(row)) for row in rows]


def cache_stats() -> CacheStats:
    now = datetime.now(UTC)
    entries_by_type: dict[str, int] = {}
    total_size = 0
    expired = 0
    for entry in cache_entries():
        kind = entry.cache_key.split(':', 1)[0]
        entries_by_type[kind] = entries_by_type.get(kind, 0) + 1
        total_size += entry.size_bytes
        if entry.expires_at <= now:
            expired += 1
    return CacheStats(
        total_entries=sum(entries_by_type.values()),
        total_size_bytes=total_size,
        expired_entries=expired,
        entries_by_type=entries_by_type,
    )


def _clear_cache(where: str, params: tuple[Any, ...]) -> ClearCacheResult:
    with get_conn() as conn:
        row = conn.execute(
            f'''
            SELECT COUNT(*) AS entries, COALESCE(SUM(LENGTH(CAST(cache_value AS BLOB))), 0) AS size
            FROM tmdb_cache {where}
            ''',
            params,
        ).fetchone()
        conn.execute(f'DELETE FROM tmdb_cache {where}', params)
        conn.commit()
    result = ClearCacheResult(entries_removed=int(row['entries']), bytes_freed=int(row['size']))
    logger.info('Cleared %s cache entries (%s bytes)', result.entries_removed, result.bytes_freed)
    return result


def clear_expired_cache() -> ClearCacheResult:
    return _clear_cache('WHERE expires_at <= ?', (_now(),))


def clear_all_cache() -> ClearCacheResult:
    return _clear_cache('', ())
