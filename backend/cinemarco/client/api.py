"""Capability-scoped API records for the screens, plus the backends behind them.

Each screen receives a record listing exactly the operations it uses. The
records are built once by ``build_apis`` from a backend object; ``HttpApi``
talks to the JSON API over HTTP and ``LocalApi`` calls the repository in
process. Both expose the same method names.

Operations that create or update an entity return ``Ok``/``Err``; listing and
deleting raise on failure. The command dispatcher folds both styles into the
same ``Result`` channel.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import requests
from pydantic import BaseModel

from .. import repository, tmdb_client
from ..config import API_BASE_URL, HTTP_TIMEOUT_SECONDS
from ..domain import (
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
    Friend,
    FriendId,
    LibraryEntry,
    MovieWatchSession,
    Tag,
    TagId,
    TmdbDetails,
    TrackedContributor,
    TrackedContributorId,
    UpdateCollectionRequest,
    UpdateFriendRequest,
    UpdateMovieWatchSessionRequest,
    UpdateTagRequest,
)
from .result import Err, Ok, Result


M = TypeVar('M', bound=BaseModel)


@dataclass(frozen=True)
class LibraryApi:
    get_all: Callable[[], list[LibraryEntry]]


@dataclass(frozen=True)
class EntryDetailApi:
    get_entry: Callable[[EntryId], LibraryEntry]
    get_sessions: Callable[[EntryId], list[MovieWatchSession]]
    get_friends: Callable[[], list[Friend]]
    get_details: Callable[[LibraryEntry], TmdbDetails]


@dataclass(frozen=True)
class FriendsApi:
    get_all: Callable[[], list[Friend]]


@dataclass(frozen=True)
class TagsApi:
    get_all: Callable[[], list[Tag]]


@dataclass(frozen=True)
class CollectionsApi:
    get_all: Callable[[], list[Collection]]


@dataclass(frozen=True)
class ContributorsApi:
    get_all: Callable[[], list[TrackedContributor]]
    untrack: Callable[[TrackedContributorId], Result[None]]


@dataclass(frozen=True)
class FriendDetailApi:
    get_entries: Callable[[FriendId], list[LibraryEntry]]
    update_friend: Callable[[UpdateFriendRequest], Result[Friend]]


@dataclass(frozen=True)
class CacheApi:
    get_entries: Callable[[], list[CacheEntry]]
    get_stats: Callable[[], CacheStats]
    clear_all: Callable[[], ClearCacheResult]
    clear_expired: Callable[[], ClearCacheResult]
    recalculate_series_watch_status: Callable[[], int]


@dataclass(frozen=True)
class FriendSaveApi:
    create: Callable[[CreateFriendRequest], Result[Friend]]
    update: Callable[[UpdateFriendRequest], Result[Friend]]


@dataclass(frozen=True)
class TagSaveApi:
    create: Callable[[CreateTagRequest], Result[Tag]]
    update: Callable[[UpdateTagRequest], Result[Tag]]


@dataclass(frozen=True)
class CollectionSaveApi:
    create: Callable[[CreateCollectionRequest], Result[Collection]]
    update: Callable[[UpdateCollectionRequest], Result[Collection]]


@dataclass(frozen=True)
class MovieSessionApi:
    create_session: Callable[[CreateMovieWatchSessionRequest], Result[MovieWatchSession]]
    update_session: Callable[[UpdateMovieWatchSessionRequest], Result[MovieWatchSession]]
    create_friend: Callable[[CreateFriendRequest], Result[Friend]]


@dataclass(frozen=True)
class DeleteApi:
    friend: Callable[[FriendId], None]
    tag: Callable[[TagId], None]
    entry: Callable[[EntryId], None]
    collection: Callable[[CollectionId], None]


@dataclass(frozen=True)
class Apis:
    library: LibraryApi
    entry_detail: EntryDetailApi
    friends: FriendsApi
    tags: TagsApi
    collections: CollectionsApi
    contributors: ContributorsApi
    friend_detail: FriendDetailApi
    cache: CacheApi
    friend_save: FriendSaveApi
    tag_save: TagSaveApi
    collection_save: CollectionSaveApi
    movie_session: MovieSessionApi
    delete: DeleteApi


def build_apis(backend: Any) -> Apis:
    return Apis(
        library=LibraryApi(get_all=backend.get_entries),
        entry_detail=EntryDetailApi(
            get_entry=backend.get_entry,
            get_sessions=backend.get_entry_sessions,
            get_friends=backend.get_friends,
            get_details=backend.get_tmdb_details,
        ),
        friends=FriendsApi(get_all=backend.get_friends),
        tags=TagsApi(get_all=backend.get_tags),
        collections=CollectionsApi(get_all=backend.get_collections),
        contributors=ContributorsApi(
            get_all=backend.get_tracked_contributors,
            untrack=backend.untrack_contributor,
        ),
        friend_detail=FriendDetailApi(
            get_entries=backend.get_friend_entries,
            update_friend=backend.update_friend,
        ),
        cache=CacheApi(
            get_entries=backend.get_cache_entries,
            get_stats=backend.get_cache_stats,
            clear_all=backend.clear_all_cache,
            clear_expired=backend.clear_expired_cache,
            recalculate_series_watch_status=backend.recalculate_series_watch_status,
        ),
        friend_save=FriendSaveApi(create=backend.create_friend, update=backend.update_friend),
        tag_save=TagSaveApi(create=backend.create_tag, update=backend.update_tag),
        collection_save=CollectionSaveApi(create=backend.create_collection, update=backend.update_collection),
        movie_session=MovieSessionApi(
            create_session=backend.create_movie_session,
            update_session=backend.update_movie_session,
            create_friend=backend.create_friend,
        ),
        delete=DeleteApi(
            friend=backend.delete_friend,
            tag=backend.delete_tag,
            entry=backend.delete_entry,
            collection=backend.delete_collection,
        ),
    )


class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f'HTTP {response.status_code}'
    if isinstance(payload, dict) and payload.get('detail'):
        detail = payload['detail']
        return detail if isinstance(detail, str) else str(detail)
    return f'HTTP {response.status_code}'


class HttpApi:
    def __init__(self, base_url: str = API_BASE_URL, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, payload: BaseModel | None = None) -> Any:
        body = payload.model_dump(mode='json', exclude_unset=True) if payload is not None else None
        response = self.session.request(
            method,
            f'{self.base_url}/api{path}',
            json=body,
            timeout=HTTP_TIMEOUT_SECONDS,
        )
        if not response.ok:
            raise ApiError(_detail(response), response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _list(self, path: str, model: type[M]) -> list[M]:
        return [model.model_validate(item) for item in self._request('GET', path)]

    def _result(self, method: str, path: str, payload: BaseModel, model: type[M]) -> Result[M]:
        try:
            return Ok(model.model_validate(self._request(method, path, payload)))
        except ApiError as exc:
            if exc.status_code is not None and 400 <= exc.status_code < 500:
                return Err(str(exc))
            raise

    def get_friends(self) -> list[Friend]:
        return self._list('/friends', Friend)

    def create_friend(self, request: CreateFriendRequest) -> Result[Friend]:
        return self._result('POST', '/friends', request, Friend)

    def update_friend(self, request: UpdateFriendRequest) -> Result[Friend]:
        return self._result('PUT', f'/friends/{request.id}', request, Friend)

    def delete_friend(self, friend_id: FriendId) -> None:
        self._request('DELETE', f'/friends/{friend_id}')

    def get_friend_entries(self, friend_id: FriendId) -> list[LibraryEntry]:
        return self._list(f'/friends/{friend_id}/entries', LibraryEntry)

    def get_tags(self) -> list[Tag]:
        return self._list('/tags', Tag)

    def create_tag(self, request: CreateTagRequest) -> Result[Tag]:
        return self._result('POST', '/tags', request, Tag)

    def update_tag(self, request: UpdateTagRequest) -> Result[Tag]:
        return self._result('PUT', f'/tags/{request.id}', request, Tag)

    def delete_tag(self, tag_id: TagId) -> None:
        self._request('DELETE', f'/tags/{tag_id}')

    def get_collections(self) -> list[Collection]:
        return self._list('/collections', Collection)

    def create_collection(self, request: CreateCollectionRequest) -> Result[Collection]:
        return self._result('POST', '/collections', request, Collection)

    def update_collection(self, request: UpdateCollectionRequest) -> Result[Collection]:
        return self._result('PUT', f'/collections/{request.id}', request, Collection)

    def delete_collection(self, collection_id: CollectionId) -> None:
        self._request('DELETE', f'/collections/{collection_id}')

    def get_entries(self) -> list[LibraryEntry]:
        return self._list('/entries', LibraryEntry)

    def get_entry(self, entry_id: EntryId) -> LibraryEntry:
        return LibraryEntry.model_validate(self._request('GET', f'/entries/{entry_id}'))

    def get_entry_sessions(self, entry_id: EntryId) -> list[MovieWatchSession]:
        return self._list(f'/entries/{entry_id}/movie-sessions', MovieWatchSession)

    def delete_entry(self, entry_id: EntryId) -> None:
        self._request('DELETE', f'/entries/{entry_id}')

    def get_tmdb_details(self, entry: LibraryEntry) -> TmdbDetails:
        return TmdbDetails.model_validate(self._request('GET', f'/tmdb/{entry.media_type}/{entry.tmdb_id}'))

    def create_movie_session(self, request: CreateMovieWatchSessionRequest) -> Result[MovieWatchSession]:
        return self._result('POST', '/movie-sessions', request, MovieWatchSession)

    def update_movie_session(self, request: UpdateMovieWatchSessionRequest) -> Result[MovieWatchSession]:
        return self._result('PUT', f'/movie-sessions/{request.session_id}', request, MovieWatchSession)

    def get_tracked_contributors(self) -> list[TrackedContributor]:
        return self._list('/contributors', TrackedContributor)

    def untrack_contributor(self, tracked_id: TrackedContributorId) -> Result[None]:
        try:
            self._request('DELETE', f'/contributors/{tracked_id}')
        except ApiError as exc:
            return Err(str(exc))
        return Ok(None)

    def get_cache_entries(self) -> list[CacheEntry]:
        return self._list('/cache/entries', CacheEntry)

    def get_cache_stats(self) -> CacheStats:
        return CacheStats.model_validate(self._request('GET', '/cache/stats'))

    def clear_all_cache(self) -> ClearCacheResult:
        return ClearCacheResult.model_validate(self._request('POST', '/cache/clear-all'))

    def clear_expired_cache(self) -> ClearCacheResult:
        return ClearCacheResult.model_validate(self._request('POST', '/cache/clear-expired'))

    def recalculate_series_watch_status(self) -> int:
        payload = self._request('POST', '/maintenance/recalculate-series-status')
        return int(payload['updated'])


def _local_result(fn: Callable[..., Any], *args: Any) -> Result[Any]:
    try:
        return Ok(fn(*args))
    except (ValueError, repository.NotFoundError) as exc:
        return Err(str(exc))


class LocalApi:
    """In-process backend over the repository, used by the server-rendered pages."""

    def get_friends(self) -> list[Friend]:
        return repository.list_friends()

    def create_friend(self, request: CreateFriendRequest) -> Result[Friend]:
        return _local_result(repository.create_friend, request)

    def update_friend(self, request: UpdateFriendRequest) -> Result[Friend]:
        return _local_result(repository.update_friend, request)

    def delete_friend(self, friend_id: FriendId) -> None:
        repository.delete_friend(friend_id)

    def get_friend_entries(self, friend_id: FriendId) -> list[LibraryEntry]:
        return repository.entries_for_friend(friend_id)

    def get_tags(self) -> list[Tag]:
        return repository.list_tags()

    def create_tag(self, request: CreateTagRequest) -> Result[Tag]:
        return _local_result(repository.create_tag, request)

    def update_tag(self, request: UpdateTagRequest) -> Result[Tag]:
        return _local_result(repository.update_tag, request)

    def delete_tag(self, tag_id: TagId) -> None:
        repository.delete_tag(tag_id)

    def get_collections(self) -> list[Collection]:
        return repository.list_collections()

    def create_collection(self, request: CreateCollectionRequest) -> Result[Collection]:
        return _local_result(repository.create_collection, request)

    def update_collection(self, request: UpdateCollectionRequest) -> Result[Collection]:
        return _local_result(repository.update_collection, request)

    def delete_collection(self, collection_id: CollectionId) -> None:
        repository.delete_collection(collection_id)

    def get_entries(self) -> list[LibraryEntry]:
        return repository.list_entries()

    def get_entry(self, entry_id: EntryId) -> LibraryEntry:
        return repository.get_entry(entry_id)

    def get_entry_sessions(self, entry_id: EntryId) -> list[MovieWatchSession]:
        return repository.sessions_for_entry(entry_id)

    def delete_entry(self, entry_id: EntryId) -> None:
        repository.delete_entry(entry_id)

    def get_tmdb_details(self, entry: LibraryEntry) -> TmdbDetails:
        if entry.media_type == 'movie':
            return tmdb_client.get_movie_details(entry.tmdb_id)
        return tmdb_client.get_series_details(entry.tmdb_id)

    def create_movie_session(self, request: CreateMovieWatchSessionRequest) -> Result[MovieWatchSession]:
        return _local_result(repository.create_movie_session, request)

    def update_movie_session(self, request: UpdateMovieWatchSessionRequest) -> Result[MovieWatchSession]:
        return _local_result(repository.update_movie_session, request)

    def get_tracked_contributors(self) -> list[TrackedContributor]:
        return repository.list_tracked_contributors()

    def untrack_contributor(self, tracked_id: TrackedContributorId) -> Result[None]:
        return _local_result(repository.untrack_contributor, tracked_id)

    def get_cache_entries(self) -> list[CacheEntry]:
        return repository.cache_entries()

    def get_cache_stats(self) -> CacheStats:
        return repository.cache_stats()

    def clear_all_cache(self) -> ClearCacheResult:
        return repository.clear_all_cache()

    def clear_expired_cache(self) -> ClearCacheResult:
        return repository.clear_expired_cache()

    def recalculate_series_watch_status(self) -> int:
        return repository.recalculate_series_watch_status()
