"""Create/edit friend modal.

``editing`` is None when creating a new friend and holds the friend being
edited otherwise. While a submit is in flight the modal ignores further
submits, field edits and close requests.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...domain import CreateFriendRequest, Friend, UpdateFriendRequest
from ...utils import trimmed_or_none
from .. import cmd
from ..api import FriendSaveApi
from ..cmd import Cmd
from ..html import Element, h
from ..result import Err, Ok, Result
from ..signals import CLOSE_REQUESTED, NO_OP, CloseRequested, NoOp
from .common import button, modal, text_input


@dataclass(frozen=True)
class Model:
    editing: Friend | None = None
    name: str = ''
    nickname: str = ''
    is_submitting: bool = False
    error: str | None = None


EMPTY = Model()


def from_friend(friend: Friend) -> Model:
    return Model(editing=friend, name=friend.name, nickname=friend.nickname or '')


@dataclass(frozen=True)
class NameChanged:
    name: str


@dataclass(frozen=True)
class NicknameChanged:
    nickname: str


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class SubmitResult:
    result: Result[Friend]


@dataclass(frozen=True)
class Close:
    pass


Msg = Union[NameChanged, NicknameChanged, Submit, SubmitResult, Close]


@dataclass(frozen=True)
class Saved:
    friend: Friend


Signal = Union[NoOp, Saved, CloseRequested]


def init(friend: Friend | None = None) -> Model:
    return from_friend(friend) if friend is not None else EMPTY


def _submit_cmd(api: FriendSaveApi, model: Model) -> Cmd:
    name = model.name.strip()
    nickname = trimmed_or_none(model.nickname)
    if model.editing is None:
        return cmd.call_api(api.create, CreateFriendRequest(name=name, nickname=nickname), SubmitResult)
    request = UpdateFriendRequest(id=model.editing.id, name=name, nickname=nickname)
    return cmd.call_api(api.update, request, SubmitResult)


def update(api: FriendSaveApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, SubmitResult):
        if isinstance(msg.result, Ok):
            return replace(model, is_submitting=False), cmd.NONE, Saved(msg.result.value)
        if isinstance(msg.result, Err):
            return replace(model, is_submitting=False, error=msg.result.error), cmd.NONE, NO_OP

    if model.is_submitting:
        return model, cmd.NONE, NO_OP

    if isinstance(msg, NameChanged):
        return replace(model, name=msg.name), cmd.NONE, NO_OP
    if isinstance(msg, NicknameChanged):
        return replace(model, nickname=msg.nickname), cmd.NONE, NO_OP
    if isinstance(msg, Submit):
        if not model.name.strip():
            return replace(model, error='Name is required'), cmd.NONE, NO_OP
        return replace(model, is_submitting=True, error=None), _submit_cmd(api, model), NO_OP
    if isinstance(msg, Close):
        return model, cmd.NONE, CLOSE_REQUESTED
    raise TypeError(f'Unhandled friend modal message: {msg!r}')


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    title = 'Edit Friend' if model.editing is not None else 'Add Friend'
    return modal(
        title,
        text_input(
            'friend-name',
            'Name',
            model.name,
            lambda value: dispatch(NameChanged(value)),
            placeholder='Enter name',
            autofocus=True,
        ),
        text_input(
            'friend-nickname',
            'Nickname (optional)',
            model.nickname,
            lambda value: dispatch(NicknameChanged(value)),
            placeholder='Enter nickname',
        ),
        h('p', model.error, class_='form-error', role='alert') if model.error else None,
        h(
            'div',
            button('Cancel', lambda _: dispatch(Close()), element_id='friend-cancel', kind='ghost',
                   disabled=model.is_submitting),
            button('Save' if model.editing is not None else 'Add Friend', lambda _: dispatch(Submit()),
                   element_id='friend-submit', disabled=model.is_submitting, busy=model.is_submitting),
            class_='modal-action',
        ),
        can_close=not model.is_submitting,
        on_close=lambda _: dispatch(Close()),
    )
