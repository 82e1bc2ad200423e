"""Create or edit a movie watch session.

The friend selection is kept as a tuple where newly toggled or newly created
friends are placed first; only membership is meaningful to the server.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Sequence, Union

from ...domain import (
    CreateFriendRequest,
    CreateMovieWatchSessionRequest,
    EntryId,
    Friend,
    FriendId,
    MovieWatchSession,
    UpdateMovieWatchSessionRequest,
)
from ...utils import trimmed_or_none
from .. import cmd
from ..api import MovieSessionApi
from ..cmd import Cmd
from ..html import Element, h
from ..result import Err, Ok, Result
from ..signals import CLOSE_REQUESTED, NO_OP, CloseRequested, NoOp
from .common import button, modal, text_input


@dataclass(frozen=True)
class CreateMode:
    entry_id: EntryId


@dataclass(frozen=True)
class EditMode:
    session: MovieWatchSession


Mode = Union[CreateMode, EditMode]


@dataclass(frozen=True)
class Model:
    mode: Mode
    watched_date: date
    selected_friends: tuple[FriendId, ...] = ()
    session_name: str = ''
    new_friend_name: str = ''
    is_submitting: bool = False
    is_adding_friend: bool = False
    error: str | None = None


@dataclass(frozen=True)
class DateChanged:
    value: str


@dataclass(frozen=True)
class SessionNameChanged:
    name: str


@dataclass(frozen=True)
class ToggleFriend:
    friend_id: FriendId


@dataclass(frozen=True)
class NewFriendNameChanged:
    name: str


@dataclass(frozen=True)
class AddNewFriend:
    name: str


@dataclass(frozen=True)
class FriendCreated:
    result: Result[Friend]


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class SubmitResult:
    result: Result[MovieWatchSession]


@dataclass(frozen=True)
class Close:
    pass


Msg = Union[
    DateChanged,
    SessionNameChanged,
    ToggleFriend,
    NewFriendNameChanged,
    AddNewFriend,
    FriendCreated,
    Submit,
    SubmitResult,
    Close,
]


@dataclass(frozen=True)
class Created:
    session: MovieWatchSession


@dataclass(frozen=True)
class Updated:
    session: MovieWatchSession


@dataclass(frozen=True)
class FriendCreatedInline:
    friend: Friend


Signal = Union[NoOp, Created, Updated, FriendCreatedInline, CloseRequested]


def init(mode: Mode, today: date | None = None) -> Model:
    if isinstance(mode, EditMode):
        session = mode.session
        return Model(
            mode=mode,
            watched_date=session.watched_date,
            selected_friends=tuple(session.friends),
            session_name=session.name or '',
        )
    return Model(mode=mode, watched_date=today or date.today())


def toggle(selected: tuple[FriendId, ...], friend_id: FriendId) -> tuple[FriendId, ...]:
    if friend_id in selected:
        return tuple(fid for fid in selected if fid != friend_id)
    return (friend_id, *selected)


def _submit_cmd(api: MovieSessionApi, model: Model) -> Cmd:
    friends = list(model.selected_friends)
    name = trimmed_or_none(model.session_name)
    if isinstance(model.mode, EditMode):
        request = UpdateMovieWatchSessionRequest(
            session_id=model.mode.session.id,
            watched_date=model.watched_date,
            friends=friends,
            name=name,
        )
        return cmd.call_api(api.update_session, request, SubmitResult)
    request = CreateMovieWatchSessionRequest(
        entry_id=model.mode.entry_id,
        watched_date=model.watched_date,
        friends=friends,
        name=name,
    )
    return cmd.call_api(api.create_session, request, SubmitResult)


def update(api: MovieSessionApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, SubmitResult):
        if isinstance(msg.result, Err):
            return replace(model, is_submitting=False, error=msg.result.error), cmd.NONE, NO_OP
        session = msg.result.value
        signal = Updated(session) if isinstance(model.mode, EditMode) else Created(session)
        return replace(model, is_submitting=False), cmd.NONE, signal

    if isinstance(msg, FriendCreated):
        if isinstance(msg.result, Err):
            return replace(model, is_adding_friend=False, error=msg.result.error), cmd.NONE, NO_OP
        friend = msg.result.value
        selected = model.selected_friends
        if friend.id not in selected:
            selected = (friend.id, *selected)
        new_model = replace(model, is_adding_friend=False, new_friend_name='', selected_friends=selected)
        return new_model, cmd.NONE, FriendCreatedInline(friend)

    if model.is_submitting:
        return model, cmd.NONE, NO_OP

    if isinstance(msg, DateChanged):
        try:
            watched = date.fromisoformat(msg.value)
        except ValueError:
            return replace(model, error='Invalid date'), cmd.NONE, NO_OP
        return replace(model, watched_date=watched, error=None), cmd.NONE, NO_OP
    if isinstance(msg, SessionNameChanged):
        return replace(model, session_name=msg.name), cmd.NONE, NO_OP
    if isinstance(msg, ToggleFriend):
        return replace(model, selected_friends=toggle(model.selected_friends, msg.friend_id)), cmd.NONE, NO_OP
    if isinstance(msg, NewFriendNameChanged):
        return replace(model, new_friend_name=msg.name), cmd.NONE, NO_OP
    if isinstance(msg, AddNewFriend):
        name = msg.name.strip()
        if not name or model.is_adding_friend:
            return model, cmd.NONE, NO_OP
        create = cmd.call_api(api.create_friend, CreateFriendRequest(name=name), FriendCreated)
        return replace(model, is_adding_friend=True, error=None), create, NO_OP
    if isinstance(msg, Submit):
        return replace(model, is_submitting=True, error=None), _submit_cmd(api, model), NO_OP
    if isinstance(msg, Close):
        return model, cmd.NONE, CLOSE_REQUESTED
    raise TypeError(f'Unhandled movie session modal message: {msg!r}')


def _friend_chip(friend: Friend, selected: bool, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'button',
        friend.nickname or friend.name,
        type='button',
        class_='badge badge-primary' if selected else 'badge badge-outline',
        data_friend_id=friend.id,
        aria_pressed='true' if selected else 'false',
        on={'click': lambda _: dispatch(ToggleFriend(friend.id))},
    )


def view(model: Model, friends: Sequence[Friend], dispatch: Callable[[Any], None]) -> Element:
    editing = isinstance(model.mode, EditMode)
    return modal(
        'Edit Watch Session' if editing else 'Log Watch Session',
        h(
            'label',
            h('span', 'Date watched', class_='label-text'),
            h(
                'input',
                id='session-date',
                name='session-date',
                type='date',
                value=model.watched_date.isoformat(),
                class_='input input-bordered w-full',
                on={'input': lambda value: dispatch(DateChanged(value))},
            ),
            class_='form-control',
            for_='session-date',
        ),
        text_input('session-name', 'Session name (optional)', model.session_name,
                   lambda value: dispatch(SessionNameChanged(value)), placeholder='e.g. Movie night'),
        h(
            'div',
            h('span', 'Watched with', class_='label-text'),
            h('div', [_friend_chip(f, f.id in model.selected_friends, dispatch) for f in friends],
              class_='friend-chips'),
            text_input('session-new-friend', 'Add new friend', model.new_friend_name,
                       lambda value: dispatch(NewFriendNameChanged(value)), placeholder='Name'),
            button('Add', lambda _: dispatch(AddNewFriend(model.new_friend_name)), element_id='session-add-friend',
                   kind='ghost', disabled=model.is_adding_friend or model.is_submitting,
                   busy=model.is_adding_friend),
            class_='form-control',
        ),
        h('p', model.error, class_='form-error', role='alert') if model.error else None,
        h(
            'div',
            button('Cancel', lambda _: dispatch(Close()), element_id='session-cancel', kind='ghost',
                   disabled=model.is_submitting),
            button('Save' if editing else 'Log Session', lambda _: dispatch(Submit()), element_id='session-submit',
                   disabled=model.is_submitting, busy=model.is_submitting),
            class_='modal-action',
        ),
        can_close=not model.is_submitting,
        on_close=lambda _: dispatch(Close()),
    )
