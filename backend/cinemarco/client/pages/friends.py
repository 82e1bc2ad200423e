"""Friends list page.

Opening, editing and deleting friends happens in modals owned by the shell,
so this page only raises requests for them.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Sequence, Union

from ...domain import Friend, FriendId
from .. import cmd, remote_data
from ..api import FriendsApi
from ..cmd import Cmd, NO_ARG
from ..components import remote_data_view
from ..components.common import button, empty_state
from ..html import Element, h
from ..remote_data import RemoteData
from ..result import Result
from ..signals import NO_OP, NoOp


@dataclass(frozen=True)
class Model:
    friends: RemoteData[list[Friend]] = remote_data.NOT_ASKED
    search_query: str = ''
    epoch: int = 0


EMPTY = Model()


@dataclass(frozen=True)
class Load:
    pass


@dataclass(frozen=True)
class Loaded:
    result: Result[list[Friend]]
    epoch: int


@dataclass(frozen=True)
class SetSearchQuery:
    query: str


@dataclass(frozen=True)
class ViewFriendDetail:
    friend: Friend


@dataclass(frozen=True)
class OpenAddModal:
    pass


@dataclass(frozen=True)
class OpenEditModal:
    friend: Friend


@dataclass(frozen=True)
class OpenDeleteModal:
    friend: Friend


Msg = Union[Load, Loaded, SetSearchQuery, ViewFriendDetail, OpenAddModal, OpenEditModal, OpenDeleteModal]


@dataclass(frozen=True)
class NavigateToFriendDetail:
    friend_id: FriendId
    name: str


@dataclass(frozen=True)
class RequestOpenAddModal:
    pass


@dataclass(frozen=True)
class RequestOpenEditModal:
    friend: Friend


@dataclass(frozen=True)
class RequestOpenDeleteModal:
    friend: Friend


Signal = Union[NoOp, NavigateToFriendDetail, RequestOpenAddModal, RequestOpenEditModal, RequestOpenDeleteModal]


def init() -> tuple[Model, Cmd]:
    return EMPTY, cmd.of_msg(Load())


def update(api: FriendsApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, Load):
        epoch = model.epoch + 1
        fetch = cmd.either(api.get_all, NO_ARG, lambda result: Loaded(result, epoch))
        return replace(model, friends=remote_data.LOADING, epoch=epoch), fetch, NO_OP
    if isinstance(msg, Loaded):
        if msg.epoch != model.epoch:
            return model, cmd.NONE, NO_OP
        return replace(model, friends=remote_data.from_result(msg.result)), cmd.NONE, NO_OP
    if isinstance(msg, SetSearchQuery):
        return replace(model, search_query=msg.query), cmd.NONE, NO_OP
    if isinstance(msg, ViewFriendDetail):
        return model, cmd.NONE, NavigateToFriendDetail(msg.friend.id, msg.friend.name)
    if isinstance(msg, OpenAddModal):
        return model, cmd.NONE, RequestOpenAddModal()
    if isinstance(msg, OpenEditModal):
        return model, cmd.NONE, RequestOpenEditModal(msg.friend)
    if isinstance(msg, OpenDeleteModal):
        return model, cmd.NONE, RequestOpenDeleteModal(msg.friend)
    raise TypeError(f'Unhandled friends page message: {msg!r}')


def filter_friends(friends: Sequence[Friend], query: str) -> list[Friend]:
    needle = query.strip().lower()
    if not needle:
        return list(friends)
    return [
        friend
        for friend in friends
        if needle in friend.name.lower() or (friend.nickname and needle in friend.nickname.lower())
    ]


def _friend_card(friend: Friend, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'li',
        h('button', friend.name, type='button', class_='friend-name',
          on={'click': lambda _: dispatch(ViewFriendDetail(friend))}),
        h('span', f'"{friend.nickname}"', class_='friend-nickname') if friend.nickname else None,
        button('Edit', lambda _: dispatch(OpenEditModal(friend)), kind='ghost'),
        button('Delete', lambda _: dispatch(OpenDeleteModal(friend)), kind='ghost'),
        class_='friend-card',
        data_friend_id=friend.id,
    )


def _friend_list(model: Model, friends: list[Friend], dispatch: Callable[[Any], None]) -> Any:
    if not friends:
        return empty_state('No friends yet', 'Add friends to track who you watch with.')
    matches = filter_friends(friends, model.search_query)
    if not matches:
        return empty_state('No matches', f'No friends match "{model.search_query}".')
    return h('ul', [_friend_card(friend, dispatch) for friend in matches], class_='friend-list')


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'section',
        h(
            'header',
            h('h1', 'Friends'),
            button('Add Friend', lambda _: dispatch(OpenAddModal()), element_id='friends-add'),
            class_='page-header',
        ),
        h(
            'input',
            id='friends-search',
            type='search',
            value=model.search_query,
            placeholder='Search friends...',
            class_='input input-bordered',
            on={'input': lambda value: dispatch(SetSearchQuery(value))},
        ),
        remote_data_view.with_context(
            'Failed to load friends',
            model.friends,
            lambda friends: _friend_list(model, friends, dispatch),
        ),
        id='friends-page',
    )
