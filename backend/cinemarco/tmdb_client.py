from __future__ import annotations

import logging
import threading
import time
from typing import Any

import requests

from .config import HTTP_TIMEOUT_SECONDS, TMDB_API_KEY, TMDB_CACHE_HOURS, TMDB_IMAGE_BASE
from .db import get_setting
from .domain import TmdbDetails, TmdbSearchResult
from .repository import cache_get, cache_set
from .utils import normalize_title, parse_year

TMDB_BASE = 'https://api.themoviedb.org/3'
MIN_REQUEST_INTERVAL_SECONDS = 0.25
RATE_LIMIT_RETRY_SECONDS = 1.0

logger = logging.getLogger(__name__)
_rate_lock = threading.Lock()
_last_request_at = 0.0


class TMDbNotConfiguredError(RuntimeError):
    pass


class TMDbError(RuntimeError):
    pass


def get_tmdb_api_key() -> str:
    override = get_setting('tmdb_api_key', '')
    if isinstance(override, str) and override.strip():
        return override.strip()
    return TMDB_API_KEY


def _wait_for_rate_limit() -> None:
    global _last_request_at
    with _rate_lock:
        elapsed = time.monotonic() - _last_request_at
        if elapsed < MIN_REQUEST_INTERVAL_SECONDS:
            time.sleep(MIN_REQUEST_INTERVAL_SECONDS - elapsed)
        _last_request_at = time.monotonic()


def _tmdb_get(path: str, cache_key: str, cache_kind: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    cached = cache_get(cache_key)
    if cached is not None:
        return cached

    api_key = get_tmdb_api_key()
    if not api_key:
        raise TMDbNotConfiguredError('TMDB_API_KEY is missing in .env')

    query = {'api_key': api_key}
    if params:
        query.update(params)

    _wait_for_rate_limit()
    response = requests.get(f'{TMDB_BASE}{path}', params=query, timeout=HTTP_TIMEOUT_SECONDS)
    if response.status_code == 429:
        logger.info('TMDb rate limited on %s, retrying once', path)
        time.sleep(RATE_LIMIT_RETRY_SECONDS)
        _wait_for_rate_limit()
        response = requests.get(f'{TMDB_BASE}{path}', params=query, timeout=HTTP_TIMEOUT_SECONDS)
    if response.status_code == 404:
        raise TMDbError('Not found on TMDb')
    if not response.ok:
        raise TMDbError(f'TMDb API error: {response.status_code}')

    payload = response.json()
    cache_set(cache_key, payload, TMDB_CACHE_HOURS[cache_kind])
    return payload


def _image_url(path: str | None) -> str | None:
    return f'{TMDB_IMAGE_BASE}{path}' if path else None


def _search_result(item: dict[str, Any], media_type: str) -> TmdbSearchResult | None:
    tmdb_id = item.get('id')
    if media_type == 'movie':
        title = item.get('title') or item.get('original_title')
        release = item.get('release_date') or None
    else:
        title = item.get('name') or item.get('original_name')
        release = item.get('first_air_date') or None
    if tmdb_id is None or not title:
        return None
    return TmdbSearchResult(
        tmdb_id=int(tmdb_id),
        media_type=media_type,
        title=title,
        release_date=release if parse_year(release) else None,
        overview=item.get('overview') or None,
        poster_url=_image_url(item.get('poster_path')),
    )


def _search(kind: str, media_type: str, query: str) -> list[TmdbSearchResult]:
    text = query.strip()
    if not text:
        return []
    payload = _tmdb_get(
        f'/search/{kind}',
        f'search:{kind}:{text.lower()}',
        'search',
        {'query': text, 'include_adult': 'false'},
    )
    items: list[TmdbSearchResult] = []
    for item in payload.get('results', []):
        result = _search_result(item, media_type)
        if result is not None:
            items.append(result)
    return items


def search_movies(query: str) -> list[TmdbSearchResult]:
    return _search('movie', 'movie', query)


def search_series(query: str) -> list[TmdbSearchResult]:
    return _search('tv', 'series', query)


def get_movie_details(movie_id: int) -> TmdbDetails:
    payload = _tmdb_get(f'/movie/{movie_id}', f'movie:{movie_id}', 'movie', {'append_to_response': 'credits'})
    release = payload.get('release_date') or None
    return TmdbDetails(
        tmdb_id=int(payload.get('id') or movie_id),
        media_type='movie',
        title=payload.get('title') or payload.get('original_title') or '',
        release_date=release if parse_year(release) else None,
        overview=payload.get('overview') or None,
        runtime=payload.get('runtime'),
        poster_url=_image_url(payload.get('poster_path')),
    )


def get_series_details(series_id: int) -> TmdbDetails:
    payload = _tmdb_get(f'/tv/{series_id}', f'tv:{series_id}', 'tv', {'append_to_response': 'credits'})
    first_air = payload.get('first_air_date') or None
    return TmdbDetails(
        tmdb_id=int(payload.get('id') or series_id),
        media_type='series',
        title=payload.get('name') or payload.get('original_name') or '',
        release_date=first_air if parse_year(first_air) else None,
        overview=payload.get('overview') or None,
        total_episodes=payload.get('number_of_episodes'),
        poster_url=_image_url(payload.get('poster_path')),
    )


def search_person(name: str, preferred_department: str = 'Acting') -> dict[str, Any] | None:
    text = name.strip()
    if not text:
        return None
    payload = _tmdb_get(
        '/search/person',
        f'search:person:{normalize_title(text)}',
        'search',
        {'query': text, 'include_adult': 'false'},
    )
    results = payload.get('results', [])
    if not results:
        return None

    acting_first = sorted(
        results,
        key=lambda p: (1 if p.get('known_for_department') == preferred_department else 0, p.get('popularity', 0)),
        reverse=True,
    )
    person = acting_first[0]
    return {
        'tmdb_person_id': person.get('id'),
        'name': person.get('name'),
        'profile_path': person.get('profile_path'),
        'known_for_department': person.get('known_for_department'),
    }
