from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...domain import Collection
from .. import cmd, remote_data
from ..api import CollectionsApi
from ..cmd import Cmd, NO_ARG
from ..components import remote_data_view
from ..components.common import button, empty_state
from ..html import Element, h
from ..remote_data import RemoteData
from ..result import Result
from ..signals import NO_OP, NoOp


@dataclass(frozen=True)
class Model:
    collections: RemoteData[list[Collection]] = remote_data.NOT_ASKED
    epoch: int = 0


EMPTY = Model()


@dataclass(frozen=True)
class Load:
    pass


@dataclass(frozen=True)
class Loaded:
    result: Result[list[Collection]]
    epoch: int


@dataclass(frozen=True)
class OpenAddModal:
    pass


@dataclass(frozen=True)
class OpenEditModal:
    collection: Collection


@dataclass(frozen=True)
class OpenDeleteModal:
    collection: Collection


Msg = Union[Load, Loaded, OpenAddModal, OpenEditModal, OpenDeleteModal]


@dataclass(frozen=True)
class RequestOpenAddModal:
    pass


@dataclass(frozen=True)
class RequestOpenEditModal:
    collection: Collection


@dataclass(frozen=True)
class RequestOpenDeleteModal:
    collection: Collection


Signal = Union[NoOp, RequestOpenAddModal, RequestOpenEditModal, RequestOpenDeleteModal]


def init() -> tuple[Model, Cmd]:
    return EMPTY, cmd.of_msg(Load())


def update(api: CollectionsApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, Load):
        epoch = model.epoch + 1
        fetch = cmd.either(api.get_all, NO_ARG, lambda result: Loaded(result, epoch))
        return replace(model, collections=remote_data.LOADING, epoch=epoch), fetch, NO_OP
    if isinstance(msg, Loaded):
        if msg.epoch != model.epoch:
            return model, cmd.NONE, NO_OP
        return replace(model, collections=remote_data.from_result(msg.result)), cmd.NONE, NO_OP
    if isinstance(msg, OpenAddModal):
        return model, cmd.NONE, RequestOpenAddModal()
    if isinstance(msg, OpenEditModal):
        return model, cmd.NONE, RequestOpenEditModal(msg.collection)
    if isinstance(msg, OpenDeleteModal):
        return model, cmd.NONE, RequestOpenDeleteModal(msg.collection)
    raise TypeError(f'Unhandled collections page message: {msg!r}')


def _collection_card(collection: Collection, dispatch: Callable[[Any], None]) -> Element:
    items = 'item' if collection.item_count == 1 else 'items'
    return h(
        'li',
        h('h3', collection.name, class_='collection-name'),
        h('p', collection.description, class_='collection-description') if collection.description else None,
        h('span', f'{collection.item_count} {items}', class_='collection-count'),
        button('Edit', lambda _: dispatch(OpenEditModal(collection)), kind='ghost'),
        button('Delete', lambda _: dispatch(OpenDeleteModal(collection)), kind='ghost'),
        class_='collection-card',
        data_collection_id=collection.id,
    )


def _collection_grid(collections: list[Collection], dispatch: Callable[[Any], None]) -> Any:
    if not collections:
        return empty_state('No collections yet', 'Group movies and series into collections.')
    return h('ul', [_collection_card(c, dispatch) for c in collections], class_='collection-grid')


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'section',
        h(
            'header',
            h('h1', 'Collections'),
            button('New Collection', lambda _: dispatch(OpenAddModal()), element_id='collections-add'),
            class_='page-header',
        ),
        remote_data_view.with_skeleton_and_context(
            6,
            'Failed to load collections',
            model.collections,
            lambda collections: _collection_grid(collections, dispatch),
        ),
        id='collections-page',
    )
