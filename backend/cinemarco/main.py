from __future__ import annotations

import html as html_lib
import logging
from typing import Any, Callable, Literal, TypeVar

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
from requests import RequestException
from starlette.middleware.trustedhost import TrustedHostMiddleware

from . import repository
from .client import shell
from .client.api import LocalApi, build_apis
from .client.html import to_html
from .client.routing import (
    CacheRoute,
    CollectionsRoute,
    ContributorsRoute,
    FriendDetailRoute,
    FriendsRoute,
    LibraryRoute,
    MovieDetailRoute,
    Route,
    SeriesDetailRoute,
    TagsRoute,
)
from .client.runtime import Program
from .config import APP_NAME, APP_VERSION, HOST, TMDB_API_KEY
from .db import clear_settings, init_db, set_setting
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
    TmdbDetails,
    TmdbSearchResult,
    TrackContributorRequest,
    TrackedContributor,
    TrackedContributorId,
    UpdateCollectionRequest,
    UpdateFriendRequest,
    UpdateMovieWatchSessionRequest,
    UpdateTagRequest,
)
from .tmdb_client import (
    TMDbError,
    TMDbNotConfiguredError,
    get_movie_details,
    get_series_details,
    get_tmdb_api_key,
    search_movies,
    search_person,
    search_series,
)

app = FastAPI(title=APP_NAME, version=APP_VERSION)
logger = logging.getLogger(__name__)
trusted_hosts = {'127.0.0.1', 'localhost', '::1'}
if HOST and HOST not in {'0.0.0.0', '::'}:
    trusted_hosts.add(HOST)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=sorted(trusted_hosts))

T = TypeVar('T')


@app.middleware('http')
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers.setdefault('X-Content-Type-Options', 'nosniff')
    response.headers.setdefault('X-Frame-Options', 'DENY')
    response.headers.setdefault('Referrer-Policy', 'no-referrer')
    response.headers.setdefault(
        'Permissions-Policy',
        'camera=(), microphone=(), geolocation=()',
    )
    return response


class TMDbKeyPayload(BaseModel):
    api_key: str


class CollectionItemPayload(BaseModel):
    entry_id: EntryId
    notes: str | None = None


def _call(fn: Callable[..., T], *args: Any) -> T:
    try:
        return fn(*args)
    except repository.NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _check_id(path_id: Any, body_id: Any, what: str) -> None:
    if path_id != body_id:
        raise HTTPException(status_code=400, detail=f'{what} id in path and body do not match')


@app.on_event('startup')
def startup() -> None:
    init_db()


@app.get('/api/health')
def health() -> dict[str, str]:
    return {'status': 'ok'}


@app.get('/api/friends')
def list_friends() -> list[Friend]:
    return repository.list_friends()


@app.post('/api/friends')
def create_friend(payload: CreateFriendRequest) -> Friend:
    return _call(repository.create_friend, payload)


@app.get('/api/friends/{friend_id}')
def get_friend(friend_id: int) -> Friend:
    return _call(repository.get_friend, FriendId(friend_id))


@app.put('/api/friends/{friend_id}')
def update_friend(friend_id: int, payload: UpdateFriendRequest) -> Friend:
    _check_id(friend_id, payload.id, 'Friend')
    return _call(repository.update_friend, payload)


@app.delete('/api/friends/{friend_id}')
def delete_friend(friend_id: int) -> dict[str, bool]:
    _call(repository.delete_friend, FriendId(friend_id))
    return {'ok': True}


@app.get('/api/friends/{friend_id}/entries')
def friend_entries(friend_id: int) -> list[LibraryEntry]:
    _call(repository.get_friend, FriendId(friend_id))
    return repository.entries_for_friend(FriendId(friend_id))


@app.get('/api/tags')
def list_tags() -> list[Tag]:
    return repository.list_tags()


@app.post('/api/tags')
def create_tag(payload: CreateTagRequest) -> Tag:
    return _call(repository.create_tag, payload)


@app.put('/api/tags/{tag_id}')
def update_tag(tag_id: int, payload: UpdateTagRequest) -> Tag:
    _check_id(tag_id, payload.id, 'Tag')
    return _call(repository.update_tag, payload)


@app.delete('/api/tags/{tag_id}')
def delete_tag(tag_id: int) -> dict[str, bool]:
    _call(repository.delete_tag, TagId(tag_id))
    return {'ok': True}


@app.get('/api/collections')
def list_collections() -> list[Collection]:
    return repository.list_collections()


@app.post('/api/collections')
def create_collection(payload: CreateCollectionRequest) -> Collection:
    return _call(repository.create_collection, payload)


@app.put('/api/collections/{collection_id}')
def update_collection(collection_id: int, payload: UpdateCollectionRequest) -> Collection:
    _check_id(collection_id, payload.id, 'Collection')
    return _call(repository.update_collection, payload)


@app.delete('/api/collections/{collection_id}')
def delete_collection(collection_id: int) -> dict[str, bool]:
    _call(repository.delete_collection, CollectionId(collection_id))
    return {'ok': True}


@app.post('/api/collections/{collection_id}/items')
def add_collection_item(collection_id: int, payload: CollectionItemPayload) -> Collection:
    return _call(repository.add_collection_item, CollectionId(collection_id), payload.entry_id, payload.notes)


@app.get('/api/entries')
def list_entries() -> list[LibraryEntry]:
    return repository.list_entries()


@app.post('/api/entries')
def add_entry(payload: AddEntryRequest) -> LibraryEntry:
    return _call(repository.add_entry, payload)


@app.get('/api/entries/{entry_id}')
def get_entry(entry_id: int) -> LibraryEntry:
    return _call(repository.get_entry, EntryId(entry_id))


@app.delete('/api/entries/{entry_id}')
def delete_entry(entry_id: int) -> dict[str, bool]:
    _call(repository.delete_entry, EntryId(entry_id))
    return {'ok': True}


@app.put('/api/entries/{entry_id}/episodes')
def set_episode_progress(entry_id: int, payload: EpisodeProgressRequest) -> LibraryEntry:
    return _call(repository.set_episode_progress, EntryId(entry_id), payload)


@app.get('/api/entries/{entry_id}/movie-sessions')
def entry_sessions(entry_id: int) -> list[MovieWatchSession]:
    _call(repository.get_entry, EntryId(entry_id))
    return repository.sessions_for_entry(EntryId(entry_id))


@app.post('/api/movie-sessions')
def create_movie_session(payload: CreateMovieWatchSessionRequest) -> MovieWatchSession:
    return _call(repository.create_movie_session, payload)


@app.put('/api/movie-sessions/{session_id}')
def update_movie_session(session_id: int, payload: UpdateMovieWatchSessionRequest) -> MovieWatchSession:
    _check_id(session_id, payload.session_id, 'Session')
    return _call(repository.update_movie_session, payload)


@app.get('/api/movie-sessions/{session_id}')
def get_movie_session(session_id: int) -> MovieWatchSession:
    return _call(repository.get_movie_session, SessionId(session_id))


@app.get('/api/contributors')
def list_contributors() -> list[TrackedContributor]:
    return repository.list_tracked_contributors()


@app.post('/api/contributors')
def track_contributor(payload: TrackContributorRequest) -> TrackedContributor:
    return _call(repository.track_contributor, payload)


@app.delete('/api/contributors/{tracked_id}')
def untrack_contributor(tracked_id: str) -> dict[str, bool]:
    _call(repository.untrack_contributor, TrackedContributorId(tracked_id))
    return {'ok': True}


@app.get('/api/cache/entries')
def cache_entries() -> list[CacheEntry]:
    return repository.cache_entries()


@app.get('/api/cache/stats')
def cache_stats() -> CacheStats:
    return repository.cache_stats()


@app.post('/api/cache/clear-expired')
def clear_expired_cache() -> ClearCacheResult:
    return repository.clear_expired_cache()


@app.post('/api/cache/clear-all')
def clear_all_cache() -> ClearCacheResult:
    return repository.clear_all_cache()


@app.post('/api/maintenance/recalculate-series-status')
def recalculate_series_status() -> dict[str, int]:
    return {'updated': repository.recalculate_series_watch_status()}


@app.get('/api/tmdb/search')
def tmdb_search(
    query: str = Query(min_length=1),
    media_type: Literal['movie', 'series'] = 'movie',
) -> list[TmdbSearchResult]:
    search = search_movies if media_type == 'movie' else search_series
    try:
        return search(query)
    except TMDbNotConfiguredError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (TMDbError, RequestException) as exc:
        logger.warning('TMDb search failed for %r: %s', query, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.get('/api/tmdb/person')
def tmdb_person(name: str = Query(min_length=1), department: str = 'Acting') -> dict[str, Any]:
    try:
        person = search_person(name, department)
    except TMDbNotConfiguredError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (TMDbError, RequestException) as exc:
        logger.warning('TMDb person lookup failed for %r: %s', name, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if person is None:
        raise HTTPException(status_code=404, detail='Person not found on TMDb')
    return person


@app.get('/api/tmdb/{media_type}/{tmdb_id}')
def tmdb_details(media_type: Literal['movie', 'series'], tmdb_id: int) -> TmdbDetails:
    fetch = get_movie_details if media_type == 'movie' else get_series_details
    try:
        return fetch(tmdb_id)
    except TMDbNotConfiguredError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (TMDbError, RequestException) as exc:
        logger.warning('TMDb %s details failed for %s: %s', media_type, tmdb_id, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.get('/api/tmdb/key')
def tmdb_key_status() -> dict[str, Any]:
    active = get_tmdb_api_key()
    source = 'none'
    if active:
        source = 'env' if active == TMDB_API_KEY else 'local'
    return {'tmdb_configured': bool(active), 'tmdb_source': source}


@app.post('/api/tmdb/key')
def set_tmdb_key(payload: TMDbKeyPayload) -> dict[str, Any]:
    key = payload.api_key.strip()
    if not key:
        raise HTTPException(status_code=400, detail='TMDb API key cannot be empty')
    set_setting('tmdb_api_key', key)
    return {'ok': True, 'tmdb_configured': True, 'tmdb_source': 'local'}


@app.delete('/api/tmdb/key')
def clear_tmdb_key() -> dict[str, Any]:
    clear_settings(['tmdb_api_key'])
    return {'ok': True, 'tmdb_configured': bool(TMDB_API_KEY), 'tmdb_source': 'env' if TMDB_API_KEY else 'none'}


UI_ROUTES: dict[str, Route] = {
    'library': LibraryRoute(),
    'friends': FriendsRoute(),
    'tags': TagsRoute(),
    'collections': CollectionsRoute(),
    'contributors': ContributorsRoute(),
    'cache': CacheRoute(),
}


def _document(title: str, body: str) -> str:
    return (
        '<!doctype html>'
        f'<html lang="en"><head><meta charset="utf-8"><title>{html_lib.escape(title)} - {APP_NAME}</title></head>'
        f'<body>{body}</body></html>'
    )


async def render_route(route: Route) -> str:
    """Run the app shell on ``route`` against the local database until it settles."""
    apis = build_apis(LocalApi())
    program = Program(
        shell.init(route),
        lambda msg, model: shell.update(apis, msg, model),
        view=shell.view,
    )
    await program.run_until_idle()
    markup = to_html(program.render())
    program.stop()
    return markup


@app.get('/ui/friends/{friend_id}', response_class=HTMLResponse)
async def ui_friend_detail(friend_id: int) -> HTMLResponse:
    friend = _call(repository.get_friend, FriendId(friend_id))
    body = await render_route(FriendDetailRoute(friend.id, friend.name))
    return HTMLResponse(_document(friend.name, body))


@app.get('/ui/entries/{entry_id}', response_class=HTMLResponse)
async def ui_entry_detail(entry_id: int) -> HTMLResponse:
    entry = _call(repository.get_entry, EntryId(entry_id))
    route = MovieDetailRoute(entry.id) if entry.media_type == 'movie' else SeriesDetailRoute(entry.id)
    body = await render_route(route)
    return HTMLResponse(_document(entry.title, body))


@app.get('/ui/{page}', response_class=HTMLResponse)
async def ui_page(page: str) -> HTMLResponse:
    route = UI_ROUTES.get(page)
    if route is None:
        raise HTTPException(status_code=404, detail='Page not found')
    body = await render_route(route)
    return HTMLResponse(_document(page.capitalize(), body))
