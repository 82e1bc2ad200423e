"""TMDB cache maintenance page."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...domain import CacheEntry, CacheStats, ClearCacheResult
from .. import cmd, remote_data
from ..api import CacheApi
from ..cmd import Cmd, NO_ARG
from ..components import remote_data_view
from ..components.common import button, empty_state
from ..html import Element, h
from ..remote_data import RemoteData
from ..result import Err, Ok, Result
from ..signals import NO_OP, NoOp, ShowNotification


@dataclass(frozen=True)
class Model:
    entries: RemoteData[list[CacheEntry]] = remote_data.NOT_ASKED
    stats: RemoteData[CacheStats] = remote_data.NOT_ASKED
    is_clearing: bool = False
    is_recalculating: bool = False
    epoch: int = 0


EMPTY = Model()


@dataclass(frozen=True)
class Load:
    pass


@dataclass(frozen=True)
class Loaded:
    result: Result[tuple[list[CacheEntry], CacheStats]]
    epoch: int


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class ClearExpired:
    pass


@dataclass(frozen=True)
class Cleared:
    result: Result[ClearCacheResult]


@dataclass(frozen=True)
class RecalculateSeriesWatchStatus:
    pass


@dataclass(frozen=True)
class Recalculated:
    result: Result[int]


Msg = Union[Load, Loaded, ClearAll, ClearExpired, Cleared, RecalculateSeriesWatchStatus, Recalculated]
Signal = Union[NoOp, ShowNotification]


def init() -> tuple[Model, Cmd]:
    return EMPTY, cmd.of_msg(Load())


def format_bytes(size: int) -> str:
    if size < 1024:
        return f'{size} B'
    if size < 1024 * 1024:
        return f'{size / 1024:.1f} KB'
    return f'{size / (1024 * 1024):.1f} MB'


def cleared_message(result: ClearCacheResult) -> str:
    return f'Cleared {result.entries_removed} entries ({result.bytes_freed / 1024:.1f} KB freed)'


def update(api: CacheApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, Load):
        epoch = model.epoch + 1

        def fetch_all() -> tuple[list[CacheEntry], CacheStats]:
            return api.get_entries(), api.get_stats()

        fetch = cmd.either(fetch_all, NO_ARG, lambda result: Loaded(result, epoch))
        loading = replace(model, entries=remote_data.LOADING, stats=remote_data.LOADING, epoch=epoch)
        return loading, fetch, NO_OP
    if isinstance(msg, Loaded):
        if msg.epoch != model.epoch:
            return model, cmd.NONE, NO_OP
        if isinstance(msg.result, Ok):
            entries, stats = msg.result.value
            return replace(model, entries=remote_data.Success(entries), stats=remote_data.Success(stats)), cmd.NONE, NO_OP
        failure = remote_data.Failure(msg.result.error)
        return replace(model, entries=failure, stats=failure), cmd.NONE, NO_OP

    if isinstance(msg, Cleared):
        done = replace(model, is_clearing=False)
        if isinstance(msg.result, Ok):
            return done, cmd.of_msg(Load()), ShowNotification(cleared_message(msg.result.value), True)
        if isinstance(msg.result, Err):
            return done, cmd.NONE, ShowNotification(f'Failed to clear cache: {msg.result.error}', False)
    if isinstance(msg, Recalculated):
        done = replace(model, is_recalculating=False)
        if isinstance(msg.result, Ok):
            message = f'Recalculated watch status for {msg.result.value} series'
            return done, cmd.NONE, ShowNotification(message, True)
        if isinstance(msg.result, Err):
            return done, cmd.NONE, ShowNotification(f'Failed to recalculate: {msg.result.error}', False)

    if isinstance(msg, (ClearAll, ClearExpired)):
        if model.is_clearing:
            return model, cmd.NONE, NO_OP
        op = api.clear_all if isinstance(msg, ClearAll) else api.clear_expired
        return replace(model, is_clearing=True), cmd.either(op, NO_ARG, Cleared), NO_OP
    if isinstance(msg, RecalculateSeriesWatchStatus):
        if model.is_recalculating:
            return model, cmd.NONE, NO_OP
        recalc = cmd.either(api.recalculate_series_watch_status, NO_ARG, Recalculated)
        return replace(model, is_recalculating=True), recalc, NO_OP
    raise TypeError(f'Unhandled cache page message: {msg!r}')


def _stats_view(stats: CacheStats) -> Element:
    by_type = [
        h('li', h('span', kind), h('span', str(count)), class_='cache-type')
        for kind, count in sorted(stats.entries_by_type.items())
    ]
    return h(
        'div',
        h('div', h('span', 'Entries', class_='stat-title'), h('span', str(stats.total_entries), class_='stat-value'),
          class_='stat', id='cache-total-entries'),
        h('div', h('span', 'Size', class_='stat-title'),
          h('span', format_bytes(stats.total_size_bytes), class_='stat-value'), class_='stat', id='cache-total-size'),
        h('div', h('span', 'Expired', class_='stat-title'),
          h('span', str(stats.expired_entries), class_='stat-value'), class_='stat', id='cache-expired'),
        h('ul', by_type, class_='cache-types') if by_type else None,
        class_='stats',
    )


def _entries_view(entries: list[CacheEntry]) -> Any:
    if not entries:
        return empty_state('Cache is empty')
    rows = [
        h(
            'tr',
            h('td', entry.cache_key, class_='font-mono'),
            h('td', entry.expires_at.strftime('%Y-%m-%d %H:%M')),
            h('td', format_bytes(entry.size_bytes)),
        )
        for entry in entries
    ]
    return h(
        'table',
        h('thead', h('tr', h('th', 'Key'), h('th', 'Expires'), h('th', 'Size'))),
        h('tbody', rows),
        class_='table',
        id='cache-entries',
    )


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'section',
        h('header', h('h1', 'Cache'), class_='page-header'),
        remote_data_view.with_context('Failed to load cache stats', model.stats, _stats_view),
        h(
            'div',
            button('Clear Expired', lambda _: dispatch(ClearExpired()), element_id='cache-clear-expired',
                   kind='outline', disabled=model.is_clearing),
            button('Clear All', lambda _: dispatch(ClearAll()), element_id='cache-clear-all', kind='error',
                   disabled=model.is_clearing, busy=model.is_clearing),
            button('Recalculate Series Status', lambda _: dispatch(RecalculateSeriesWatchStatus()),
                   element_id='cache-recalculate', kind='outline', disabled=model.is_recalculating,
                   busy=model.is_recalculating),
            class_='cache-actions',
        ),
        remote_data_view.with_context('Failed to load cache entries', model.entries, _entries_view),
        id='cache-page',
    )
