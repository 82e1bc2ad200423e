"""Entity records and request payloads shared by the API and the client core.

Identifiers are distinct types so a ``FriendId`` cannot be handed to an
operation that expects a ``TagId``.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Literal, NewType

from pydantic import BaseModel, ConfigDict, Field

FriendId = NewType('FriendId', int)
TagId = NewType('TagId', int)
CollectionId = NewType('CollectionId', int)
EntryId = NewType('EntryId', int)
SessionId = NewType('SessionId', int)
TmdbPersonId = NewType('TmdbPersonId', int)
TrackedContributorId = NewType('TrackedContributorId', str)

MediaType = Literal['movie', 'series']
WatchStatus = Literal['not_started', 'in_progress', 'completed', 'abandoned']

RATING_LABELS = {
    5: 'Outstanding',
    4: 'Entertaining',
    3: 'Decent',
    2: 'Meh',
    1: 'Waste',
}


class Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class Friend(Record):
    id: FriendId
    name: str
    nickname: str | None = None
    avatar_url: str | None = None
    created_at: datetime


class Tag(Record):
    id: TagId
    name: str
    color: str | None = None
    description: str | None = None
    created_at: datetime


class Collection(Record):
    id: CollectionId
    name: str
    description: str | None = None
    cover_image_path: str | None = None
    item_count: int = 0
    created_at: datetime
    updated_at: datetime


class LibraryEntry(Record):
    id: EntryId
    media_type: MediaType
    tmdb_id: int
    title: str
    release_date: date | None = None
    poster_url: str | None = None
    total_episodes: int | None = None
    watch_status: WatchStatus = 'not_started'
    personal_rating: int | None = None
    is_favorite: bool = False
    notes: str | None = None
    date_added: datetime
    friends: list[FriendId] = Field(default_factory=list)
    tags: list[TagId] = Field(default_factory=list)


class MovieWatchSession(Record):
    id: SessionId
    entry_id: EntryId
    watched_date: date
    friends: list[FriendId] = Field(default_factory=list)
    name: str | None = None
    created_at: datetime


class TrackedContributor(Record):
    id: TrackedContributorId
    tmdb_person_id: TmdbPersonId
    name: str
    profile_path: str | None = None
    known_for_department: str | None = None
    notes: str | None = None
    created_at: datetime


class CacheEntry(Record):
    cache_key: str
    expires_at: datetime
    size_bytes: int


class CacheStats(Record):
    total_entries: int
    total_size_bytes: int
    expired_entries: int
    entries_by_type: dict[str, int] = Field(default_factory=dict)


class ClearCacheResult(Record):
    entries_removed: int
    bytes_freed: int


class TmdbSearchResult(Record):
    tmdb_id: int
    media_type: MediaType
    title: str
    release_date: date | None = None
    overview: str | None = None
    poster_url: str | None = None


class TmdbDetails(Record):
    tmdb_id: int
    media_type: MediaType
    title: str
    release_date: date | None = None
    overview: str | None = None
    runtime: int | None = None
    total_episodes: int | None = None
    poster_url: str | None = None


class CreateFriendRequest(BaseModel):
    name: str
    nickname: str | None = None


class UpdateFriendRequest(BaseModel):
    id: FriendId
    name: str | None = None
    nickname: str | None = None
    # None keeps the avatar, '' removes it
    avatar_url: str | None = None


class CreateTagRequest(BaseModel):
    name: str
    color: str | None = None
    description: str | None = None


class UpdateTagRequest(BaseModel):
    id: TagId
    name: str | None = None
    color: str | None = None
    description: str | None = None


class CreateCollectionRequest(BaseModel):
    name: str
    description: str | None = None


class UpdateCollectionRequest(BaseModel):
    id: CollectionId
    name: str | None = None
    description: str | None = None


class AddEntryRequest(BaseModel):
    media_type: MediaType
    tmdb_id: int
    title: str
    release_date: date | None = None
    poster_url: str | None = None
    total_episodes: int | None = None
    friends: list[FriendId] = Field(default_factory=list)


class CreateMovieWatchSessionRequest(BaseModel):
    entry_id: EntryId
    watched_date: date
    friends: list[FriendId] = Field(default_factory=list)
    name: str | None = None


class UpdateMovieWatchSessionRequest(BaseModel):
    session_id: SessionId
    watched_date: date
    friends: list[FriendId] = Field(default_factory=list)
    name: str | None = None


class TrackContributorRequest(BaseModel):
    tmdb_person_id: TmdbPersonId
    name: str
    profile_path: str | None = None
    known_for_department: str | None = None
    notes: str | None = None


class EpisodeProgressRequest(BaseModel):
    season_number: int
    episode_number: int
    is_watched: bool = True
    watched_date: date | None = None
