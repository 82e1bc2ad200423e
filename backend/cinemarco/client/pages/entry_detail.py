"""One library entry: its watch sessions, who was there, and TMDB details.

Movies and series share this page. Only movies carry watch sessions, so the
session actions are inert for a series.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...domain import EntryId, Friend, FriendId, LibraryEntry, MovieWatchSession, TmdbDetails
from .. import cmd, remote_data
from ..api import EntryDetailApi
from ..cmd import Cmd
from ..components import movie_session_modal, remote_data_view
from ..components.common import button, empty_state
from ..html import Element, h
from ..remote_data import RemoteData
from ..result import Ok, Result
from ..signals import NO_OP, NavigateBack, NoOp
from .library import STATUS_LABELS


@dataclass(frozen=True)
class EntryBundle:
    entry: LibraryEntry
    sessions: tuple[MovieWatchSession, ...]
    friends: tuple[Friend, ...]


@dataclass(frozen=True)
class Model:
    entry_id: EntryId
    bundle: RemoteData[EntryBundle] = remote_data.NOT_ASKED
    details: RemoteData[TmdbDetails] = remote_data.NOT_ASKED
    epoch: int = 0


@dataclass(frozen=True)
class Load:
    pass


@dataclass(frozen=True)
class Loaded:
    result: Result[EntryBundle]
    epoch: int


@dataclass(frozen=True)
class DetailsLoaded:
    result: Result[TmdbDetails]
    epoch: int


@dataclass(frozen=True)
class LogSession:
    pass


@dataclass(frozen=True)
class EditSession:
    session: MovieWatchSession


@dataclass(frozen=True)
class OpenDeleteModal:
    pass


@dataclass(frozen=True)
class ViewFriendDetail:
    friend: Friend


@dataclass(frozen=True)
class GoBack:
    pass


Msg = Union[Load, Loaded, DetailsLoaded, LogSession, EditSession, OpenDeleteModal, ViewFriendDetail, GoBack]


@dataclass(frozen=True)
class RequestOpenSessionModal:
    mode: movie_session_modal.Mode
    friends: tuple[Friend, ...]


@dataclass(frozen=True)
class RequestOpenDeleteModal:
    entry_id: EntryId


@dataclass(frozen=True)
class NavigateToFriendDetail:
    friend_id: FriendId
    name: str


Signal = Union[NoOp, RequestOpenSessionModal, RequestOpenDeleteModal, NavigateToFriendDetail, NavigateBack]


def init(entry_id: EntryId) -> tuple[Model, Cmd]:
    return Model(entry_id=entry_id), cmd.of_msg(Load())


def _fetch_bundle(api: EntryDetailApi) -> Callable[[EntryId], EntryBundle]:
    def fetch(entry_id: EntryId) -> EntryBundle:
        entry = api.get_entry(entry_id)
        sessions = api.get_sessions(entry_id) if entry.media_type == 'movie' else []
        return EntryBundle(entry, tuple(sessions), tuple(api.get_friends()))

    return fetch


def _loaded_bundle(model: Model) -> EntryBundle | None:
    if isinstance(model.bundle, remote_data.Success):
        return model.bundle.value
    return None


def update(api: EntryDetailApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, Load):
        epoch = model.epoch + 1
        fetch = cmd.either(_fetch_bundle(api), model.entry_id, lambda result: Loaded(result, epoch))
        return replace(model, bundle=remote_data.LOADING, epoch=epoch), fetch, NO_OP
    if isinstance(msg, Loaded):
        if msg.epoch != model.epoch:
            return model, cmd.NONE, NO_OP
        loaded = replace(model, bundle=remote_data.from_result(msg.result))
        if not isinstance(msg.result, Ok):
            return loaded, cmd.NONE, NO_OP
        # details survive a reload after a session save
        if isinstance(model.details, remote_data.Success):
            return loaded, cmd.NONE, NO_OP
        epoch = msg.epoch
        fetch = cmd.either(api.get_details, msg.result.value.entry, lambda result: DetailsLoaded(result, epoch))
        return replace(loaded, details=remote_data.LOADING), fetch, NO_OP
    if isinstance(msg, DetailsLoaded):
        if msg.epoch != model.epoch:
            return model, cmd.NONE, NO_OP
        return replace(model, details=remote_data.from_result(msg.result)), cmd.NONE, NO_OP
    if isinstance(msg, GoBack):
        return model, cmd.NONE, NavigateBack()
    if isinstance(msg, ViewFriendDetail):
        return model, cmd.NONE, NavigateToFriendDetail(msg.friend.id, msg.friend.name)

    bundle = _loaded_bundle(model)
    if isinstance(msg, OpenDeleteModal):
        return model, cmd.NONE, RequestOpenDeleteModal(model.entry_id)
    if isinstance(msg, (LogSession, EditSession)):
        if bundle is None or bundle.entry.media_type != 'movie':
            return model, cmd.NONE, NO_OP
        if isinstance(msg, LogSession):
            mode: movie_session_modal.Mode = movie_session_modal.CreateMode(model.entry_id)
        else:
            mode = movie_session_modal.EditMode(msg.session)
        return model, cmd.NONE, RequestOpenSessionModal(mode, bundle.friends)
    raise TypeError(f'Unhandled entry detail message: {msg!r}')


def _details(details: TmdbDetails) -> Element:
    facts = [details.release_date.isoformat() if details.release_date else None]
    if details.runtime:
        facts.append(f'{details.runtime} min')
    if details.total_episodes:
        facts.append(f'{details.total_episodes} episodes')
    return h(
        'div',
        h('p', ' · '.join(fact for fact in facts if fact), class_='entry-facts'),
        h('p', details.overview, class_='entry-overview') if details.overview else None,
        class_='entry-details',
    )


def _session_row(
    session: MovieWatchSession,
    friends_by_id: dict[FriendId, Friend],
    dispatch: Callable[[Any], None],
) -> Element:
    present = [friends_by_id[friend_id] for friend_id in session.friends if friend_id in friends_by_id]
    return h(
        'li',
        h('span', session.watched_date.isoformat(), class_='session-date'),
        h('span', session.name, class_='session-name') if session.name else None,
        [
            h('a', friend.name, class_='badge', on={'click': lambda _, f=friend: dispatch(ViewFriendDetail(f))})
            for friend in present
        ],
        button('Edit', lambda _: dispatch(EditSession(session)), kind='ghost'),
        class_='session-row',
        data_session_id=session.id,
    )


def _sessions(bundle: EntryBundle, dispatch: Callable[[Any], None]) -> Element:
    friends_by_id = {friend.id: friend for friend in bundle.friends}
    return h(
        'div',
        h(
            'header',
            h('h2', 'Watch sessions'),
            button('Log session', lambda _: dispatch(LogSession()), element_id='entry-log-session'),
        ),
        h('ul', [_session_row(session, friends_by_id, dispatch) for session in bundle.sessions])
        if bundle.sessions else empty_state('No watch sessions yet', 'Log one when you watch it.'),
        class_='entry-sessions',
    )


def _entry(model: Model, bundle: EntryBundle, dispatch: Callable[[Any], None]) -> Element:
    entry = bundle.entry
    return h(
        'div',
        h(
            'div',
            h('img', src=entry.poster_url, alt=entry.title) if entry.poster_url else None,
            h('h1', entry.title, id='entry-detail-title'),
            h('span', STATUS_LABELS[entry.watch_status], class_='badge'),
            h('span', f'{entry.personal_rating}/10', class_='entry-rating') if entry.personal_rating else None,
            button('Delete', lambda _: dispatch(OpenDeleteModal()), element_id='entry-delete', kind='ghost'),
            class_='entry-hero',
        ),
        remote_data_view.with_context('TMDB details unavailable', model.details, _details),
        _sessions(bundle, dispatch) if entry.media_type == 'movie' else None,
    )


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'section',
        h(
            'header',
            button('Back', lambda _: dispatch(GoBack()), element_id='entry-back', kind='ghost'),
            class_='page-header',
        ),
        remote_data_view.with_spinner(model.bundle, lambda bundle: _entry(model, bundle, dispatch)),
        id='entry-detail-page',
    )
