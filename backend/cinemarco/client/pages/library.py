"""The library: every tracked movie and series, filtered and sorted locally."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Literal, Sequence, Union

from ...domain import EntryId, LibraryEntry, WatchStatus
from .. import cmd, remote_data
from ..api import LibraryApi
from ..cmd import Cmd, NO_ARG
from ..components import remote_data_view
from ..components.common import button, empty_state
from ..html import Element, h
from ..remote_data import RemoteData
from ..result import Result
from ..signals import NO_OP, NoOp

SortBy = Literal['date_added', 'title', 'year', 'rating']

STATUS_LABELS: dict[WatchStatus, str] = {
    'not_started': 'Not started',
    'in_progress': 'In progress',
    'completed': 'Completed',
    'abandoned': 'Abandoned',
}


@dataclass(frozen=True)
class Filters:
    search_query: str = ''
    # None shows every status
    watch_status: WatchStatus | None = None
    min_rating: int | None = None
    sort_by: SortBy = 'date_added'
    descending: bool = True


@dataclass(frozen=True)
class Model:
    entries: RemoteData[list[LibraryEntry]] = remote_data.NOT_ASKED
    filters: Filters = Filters()
    epoch: int = 0


EMPTY = Model()


@dataclass(frozen=True)
class Load:
    pass


@dataclass(frozen=True)
class Loaded:
    result: Result[list[LibraryEntry]]
    epoch: int


@dataclass(frozen=True)
class SetSearchQuery:
    query: str


@dataclass(frozen=True)
class SetWatchStatusFilter:
    status: WatchStatus | None


@dataclass(frozen=True)
class SetMinRatingFilter:
    rating: int | None


@dataclass(frozen=True)
class SetSortBy:
    sort_by: SortBy


@dataclass(frozen=True)
class ToggleSortDirection:
    pass


@dataclass(frozen=True)
class ClearFilters:
    pass


@dataclass(frozen=True)
class ViewMovieDetail:
    entry_id: EntryId


@dataclass(frozen=True)
class ViewSeriesDetail:
    entry_id: EntryId


@dataclass(frozen=True)
class OpenDeleteModal:
    entry_id: EntryId


Msg = Union[
    Load,
    Loaded,
    SetSearchQuery,
    SetWatchStatusFilter,
    SetMinRatingFilter,
    SetSortBy,
    ToggleSortDirection,
    ClearFilters,
    ViewMovieDetail,
    ViewSeriesDetail,
    OpenDeleteModal,
]


@dataclass(frozen=True)
class NavigateToMovieDetail:
    entry_id: EntryId


@dataclass(frozen=True)
class NavigateToSeriesDetail:
    entry_id: EntryId


@dataclass(frozen=True)
class RequestOpenDeleteModal:
    entry_id: EntryId


Signal = Union[NoOp, NavigateToMovieDetail, NavigateToSeriesDetail, RequestOpenDeleteModal]


def init() -> tuple[Model, Cmd]:
    return EMPTY, cmd.of_msg(Load())


def _with_filters(model: Model, **changes: Any) -> tuple[Model, Cmd, Signal]:
    return replace(model, filters=replace(model.filters, **changes)), cmd.NONE, NO_OP


def update(api: LibraryApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, Load):
        epoch = model.epoch + 1
        fetch = cmd.either(api.get_all, NO_ARG, lambda result: Loaded(result, epoch))
        return replace(model, entries=remote_data.LOADING, epoch=epoch), fetch, NO_OP
    if isinstance(msg, Loaded):
        if msg.epoch != model.epoch:
            return model, cmd.NONE, NO_OP
        return replace(model, entries=remote_data.from_result(msg.result)), cmd.NONE, NO_OP
    if isinstance(msg, SetSearchQuery):
        return _with_filters(model, search_query=msg.query)
    if isinstance(msg, SetWatchStatusFilter):
        return _with_filters(model, watch_status=msg.status)
    if isinstance(msg, SetMinRatingFilter):
        return _with_filters(model, min_rating=msg.rating)
    if isinstance(msg, SetSortBy):
        return _with_filters(model, sort_by=msg.sort_by)
    if isinstance(msg, ToggleSortDirection):
        return _with_filters(model, descending=not model.filters.descending)
    if isinstance(msg, ClearFilters):
        return replace(model, filters=Filters()), cmd.NONE, NO_OP
    if isinstance(msg, ViewMovieDetail):
        return model, cmd.NONE, NavigateToMovieDetail(msg.entry_id)
    if isinstance(msg, ViewSeriesDetail):
        return model, cmd.NONE, NavigateToSeriesDetail(msg.entry_id)
    if isinstance(msg, OpenDeleteModal):
        return model, cmd.NONE, RequestOpenDeleteModal(msg.entry_id)
    raise TypeError(f'Unhandled library page message: {msg!r}')


def _sort_key(sort_by: SortBy) -> Callable[[LibraryEntry], Any]:
    if sort_by == 'title':
        return lambda entry: entry.title.lower()
    if sort_by == 'year':
        return lambda entry: entry.release_date.year if entry.release_date else 0
    if sort_by == 'rating':
        return lambda entry: entry.personal_rating or 0
    return lambda entry: entry.date_added


def filter_entries(entries: Sequence[LibraryEntry], filters: Filters) -> list[LibraryEntry]:
    needle = filters.search_query.strip().lower()
    matches = [
        entry
        for entry in entries
        if (not needle or needle in entry.title.lower())
        and (filters.watch_status is None or entry.watch_status == filters.watch_status)
        and (filters.min_rating is None or (entry.personal_rating or 0) >= filters.min_rating)
    ]
    return sorted(matches, key=_sort_key(filters.sort_by), reverse=filters.descending)


def _entry_card(entry: LibraryEntry, dispatch: Callable[[Any], None]) -> Element:
    to_msg = ViewMovieDetail if entry.media_type == 'movie' else ViewSeriesDetail
    year = entry.release_date.year if entry.release_date else None
    return h(
        'li',
        h(
            'button',
            h('img', src=entry.poster_url, alt=entry.title, loading='lazy') if entry.poster_url else None,
            h('span', entry.title, class_='entry-title'),
            h('span', str(year), class_='entry-year') if year else None,
            type='button',
            on={'click': lambda _: dispatch(to_msg(entry.id))},
        ),
        h('span', STATUS_LABELS[entry.watch_status], class_='badge'),
        button('Delete', lambda _: dispatch(OpenDeleteModal(entry.id)), kind='ghost'),
        class_='entry-card',
        data_entry_id=entry.id,
        data_media_type=entry.media_type,
    )


def _filter_bar(filters: Filters, dispatch: Callable[[Any], None]) -> Element:
    statuses = [h('option', 'All statuses', value='', selected=filters.watch_status is None)]
    statuses.extend(
        h('option', label, value=status, selected=filters.watch_status == status)
        for status, label in STATUS_LABELS.items()
    )
    sorts = [
        h('option', label, value=value, selected=filters.sort_by == value)
        for value, label in (('date_added', 'Date added'), ('title', 'Title'), ('year', 'Year'), ('rating', 'Rating'))
    ]
    return h(
        'div',
        h('input', id='library-search', type='search', value=filters.search_query,
          placeholder='Search library...', class_='input input-bordered',
          on={'input': lambda value: dispatch(SetSearchQuery(value))}),
        h('select', statuses, id='library-status', class_='select select-bordered',
          on={'change': lambda value: dispatch(SetWatchStatusFilter(value or None))}),
        h('select', sorts, id='library-sort', class_='select select-bordered',
          on={'change': lambda value: dispatch(SetSortBy(value))}),
        button('Descending' if filters.descending else 'Ascending', lambda _: dispatch(ToggleSortDirection()),
               element_id='library-direction', kind='ghost'),
        button('Clear', lambda _: dispatch(ClearFilters()), element_id='library-clear', kind='ghost'),
        class_='filter-bar',
    )


def _entry_list(model: Model, entries: list[LibraryEntry], dispatch: Callable[[Any], None]) -> Any:
    if not entries:
        return empty_state('Your library is empty', 'Search TMDB to add movies and series.')
    matches = filter_entries(entries, model.filters)
    return h(
        'div',
        _filter_bar(model.filters, dispatch),
        h('ul', [_entry_card(entry, dispatch) for entry in matches], class_='poster-grid')
        if matches else empty_state('No matches', 'Try clearing the filters.'),
    )


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'section',
        h('header', h('h1', 'Library'), class_='page-header'),
        remote_data_view.with_skeleton_and_context(
            12,
            'Failed to load library',
            model.entries,
            lambda entries: _entry_list(model, entries, dispatch),
        ),
        id='library-page',
    )
