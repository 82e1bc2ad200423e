"""One friend: the titles watched together, and inline renaming."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...domain import EntryId, Friend, FriendId, LibraryEntry, UpdateFriendRequest
from .. import cmd, remote_data
from ..api import FriendDetailApi
from ..cmd import Cmd
from ..components import remote_data_view
from ..components.common import button, empty_state
from ..html import Element, h
from ..remote_data import RemoteData
from ..result import Err, Ok, Result
from ..signals import NO_OP, NavigateBack, NoOp, ShowNotification


@dataclass(frozen=True)
class Model:
    friend_id: FriendId
    name: str
    entries: RemoteData[list[LibraryEntry]] = remote_data.NOT_ASKED
    # None while not editing
    editing_name: str | None = None
    is_saving: bool = False
    epoch: int = 0


@dataclass(frozen=True)
class Load:
    pass


@dataclass(frozen=True)
class Loaded:
    result: Result[list[LibraryEntry]]
    epoch: int


@dataclass(frozen=True)
class ViewMovieDetail:
    entry_id: EntryId


@dataclass(frozen=True)
class ViewSeriesDetail:
    entry_id: EntryId


@dataclass(frozen=True)
class GoBack:
    pass


@dataclass(frozen=True)
class StartEditingName:
    pass


@dataclass(frozen=True)
class UpdateEditingName:
    name: str


@dataclass(frozen=True)
class SaveFriendName:
    pass


@dataclass(frozen=True)
class CancelEditing:
    pass


@dataclass(frozen=True)
class FriendNameSaved:
    result: Result[Friend]


Msg = Union[
    Load,
    Loaded,
    ViewMovieDetail,
    ViewSeriesDetail,
    GoBack,
    StartEditingName,
    UpdateEditingName,
    SaveFriendName,
    CancelEditing,
    FriendNameSaved,
]


@dataclass(frozen=True)
class NavigateToMovieDetail:
    entry_id: EntryId


@dataclass(frozen=True)
class NavigateToSeriesDetail:
    entry_id: EntryId


@dataclass(frozen=True)
class FriendUpdated:
    friend: Friend


Signal = Union[NoOp, NavigateToMovieDetail, NavigateToSeriesDetail, NavigateBack, FriendUpdated, ShowNotification]


def init(friend_id: FriendId, name: str) -> tuple[Model, Cmd]:
    return Model(friend_id=friend_id, name=name), cmd.of_msg(Load())


def update(api: FriendDetailApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, Load):
        epoch = model.epoch + 1
        fetch = cmd.either(api.get_entries, model.friend_id, lambda result: Loaded(result, epoch))
        return replace(model, entries=remote_data.LOADING, epoch=epoch), fetch, NO_OP
    if isinstance(msg, Loaded):
        if msg.epoch != model.epoch:
            return model, cmd.NONE, NO_OP
        return replace(model, entries=remote_data.from_result(msg.result)), cmd.NONE, NO_OP
    if isinstance(msg, ViewMovieDetail):
        return model, cmd.NONE, NavigateToMovieDetail(msg.entry_id)
    if isinstance(msg, ViewSeriesDetail):
        return model, cmd.NONE, NavigateToSeriesDetail(msg.entry_id)
    if isinstance(msg, GoBack):
        return model, cmd.NONE, NavigateBack()

    if isinstance(msg, FriendNameSaved):
        done = replace(model, editing_name=None, is_saving=False)
        if isinstance(msg.result, Ok):
            friend = msg.result.value
            return replace(done, name=friend.name), cmd.NONE, FriendUpdated(friend)
        if isinstance(msg.result, Err):
            return done, cmd.NONE, ShowNotification(f'Failed to update friend: {msg.result.error}', False)
    if model.is_saving:
        return model, cmd.NONE, NO_OP

    if isinstance(msg, StartEditingName):
        return replace(model, editing_name=model.name), cmd.NONE, NO_OP
    if isinstance(msg, UpdateEditingName):
        if model.editing_name is None:
            return model, cmd.NONE, NO_OP
        return replace(model, editing_name=msg.name), cmd.NONE, NO_OP
    if isinstance(msg, CancelEditing):
        return replace(model, editing_name=None), cmd.NONE, NO_OP
    if isinstance(msg, SaveFriendName):
        if model.editing_name is None:
            return model, cmd.NONE, NO_OP
        name = model.editing_name.strip()
        if not name:
            return replace(model, editing_name=None), cmd.NONE, NO_OP
        request = UpdateFriendRequest(id=model.friend_id, name=name)
        save = cmd.call_api(api.update_friend, request, FriendNameSaved)
        return replace(model, is_saving=True), save, NO_OP
    raise TypeError(f'Unhandled friend detail message: {msg!r}')


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
        class_='entry-card',
        data_entry_id=entry.id,
        data_media_type=entry.media_type,
    )


def _entries(model: Model, entries: list[LibraryEntry], dispatch: Callable[[Any], None]) -> Any:
    if not entries:
        return empty_state('Nothing watched together yet', f'Titles you watch with {model.name} show up here.')
    return h('ul', [_entry_card(entry, dispatch) for entry in entries], class_='poster-grid')


def _title(model: Model, dispatch: Callable[[Any], None]) -> Element:
    if model.editing_name is None:
        return h(
            'div',
            h('h1', model.name, id='friend-detail-name'),
            button('Rename', lambda _: dispatch(StartEditingName()), element_id='friend-detail-rename', kind='ghost'),
            class_='page-title',
        )
    return h(
        'div',
        h('input', id='friend-detail-name-input', type='text', value=model.editing_name,
          class_='input input-bordered', autofocus=True, disabled=model.is_saving,
          on={'input': lambda value: dispatch(UpdateEditingName(value))}),
        button('Save', lambda _: dispatch(SaveFriendName()), element_id='friend-detail-save',
               disabled=model.is_saving, busy=model.is_saving),
        button('Cancel', lambda _: dispatch(CancelEditing()), element_id='friend-detail-cancel', kind='ghost',
               disabled=model.is_saving),
        class_='page-title',
    )


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'section',
        h(
            'header',
            button('Back', lambda _: dispatch(GoBack()), element_id='friend-detail-back', kind='ghost'),
            _title(model, dispatch),
            class_='page-header',
        ),
        remote_data_view.with_skeleton_and_context(
            6,
            'Failed to load entries',
            model.entries,
            lambda entries: _entries(model, entries, dispatch),
        ),
        id='friend-detail-page',
    )
