from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from cinemarco import db
from cinemarco.domain import Collection, Friend, LibraryEntry, MovieWatchSession, Tag


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    monkeypatch.setattr(db, 'DB_PATH', tmp_path / 'cinemarco.db')
    db.init_db()
    return db.DB_PATH


@pytest.fixture
def api_client(temp_db):
    from fastapi.testclient import TestClient

    from cinemarco.main import app

    with TestClient(app, base_url='http://localhost') as client:
        yield client


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def make_friend(friend_id: int = 1, name: str = 'Alice', nickname: str | None = None) -> Friend:
    return Friend(id=friend_id, name=name, nickname=nickname, created_at=NOW)


def make_tag(tag_id: int = 1, name: str = 'Comfort', color: str | None = None) -> Tag:
    return Tag(id=tag_id, name=name, color=color, created_at=NOW)


def make_collection(collection_id: int = 1, name: str = 'Nolan', item_count: int = 0) -> Collection:
    return Collection(id=collection_id, name=name, item_count=item_count, created_at=NOW, updated_at=NOW)


def make_entry(entry_id: int = 1, title: str = 'Heat', media_type: str = 'movie', **fields) -> LibraryEntry:
    return LibraryEntry(id=entry_id, media_type=media_type, tmdb_id=900 + entry_id, title=title,
                        date_added=NOW, **fields)


def make_session(session_id: int = 1, entry_id: int = 1, friends: list[int] | None = None) -> MovieWatchSession:
    return MovieWatchSession(id=session_id, entry_id=entry_id, watched_date=date(2024, 4, 30),
                             friends=friends or [], created_at=NOW)
