"""Delete confirmation.

Confirming does not delete anything itself: it raises ``Confirmed`` at once
and the owner issues the delete command.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...domain import Collection, EntryId, Friend, Tag
from .. import cmd
from ..cmd import Cmd
from ..html import Element, h
from ..signals import CANCELLED, NO_OP, Cancelled, NoOp
from .common import button, modal


@dataclass(frozen=True)
class FriendTarget:
    friend: Friend


@dataclass(frozen=True)
class TagTarget:
    tag: Tag


@dataclass(frozen=True)
class EntryTarget:
    entry_id: EntryId


@dataclass(frozen=True)
class CollectionTarget:
    collection: Collection
    item_count: int


DeleteTarget = Union[FriendTarget, TagTarget, EntryTarget, CollectionTarget]


@dataclass(frozen=True)
class Model:
    target: DeleteTarget
    is_submitting: bool = False


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


Msg = Union[Confirm, Cancel]


@dataclass(frozen=True)
class Confirmed:
    target: DeleteTarget


Signal = Union[NoOp, Confirmed, Cancelled]


def init(target: DeleteTarget) -> Model:
    return Model(target=target)


def update(msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if model.is_submitting:
        return model, cmd.NONE, NO_OP
    if isinstance(msg, Confirm):
        return replace(model, is_submitting=True), cmd.NONE, Confirmed(model.target)
    if isinstance(msg, Cancel):
        return model, cmd.NONE, CANCELLED
    raise TypeError(f'Unhandled confirm modal message: {msg!r}')


def describe(target: DeleteTarget) -> tuple[str, str]:
    if isinstance(target, FriendTarget):
        return 'Delete Friend?', f'Are you sure you want to delete "{target.friend.name}"? This cannot be undone.'
    if isinstance(target, TagTarget):
        return 'Delete Tag?', f'Are you sure you want to delete "{target.tag.name}"? This cannot be undone.'
    if isinstance(target, CollectionTarget):
        items = 'item' if target.item_count == 1 else 'items'
        return (
            'Delete Collection?',
            f'Are you sure you want to delete "{target.collection.name}" and its {target.item_count} {items}? '
            'This cannot be undone.',
        )
    return 'Delete Entry?', 'Are you sure you want to delete this entry? This cannot be undone.'


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    title, message = describe(model.target)
    return modal(
        title,
        h('p', message, class_='confirm-message'),
        h(
            'div',
            button('Cancel', lambda _: dispatch(Cancel()), element_id='confirm-cancel', kind='ghost',
                   disabled=model.is_submitting),
            button('Delete', lambda _: dispatch(Confirm()), element_id='confirm-delete', kind='error',
                   disabled=model.is_submitting, busy=model.is_submitting),
            class_='modal-action',
        ),
        can_close=not model.is_submitting,
        on_close=lambda _: dispatch(Cancel()),
    )
