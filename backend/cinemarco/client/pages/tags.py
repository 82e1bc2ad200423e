from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...domain import Tag, TagId
from .. import cmd, remote_data
from ..api import TagsApi
from ..cmd import Cmd, NO_ARG
from ..components import remote_data_view
from ..components.common import button, empty_state
from ..html import Element, h
from ..remote_data import RemoteData
from ..result import Result
from ..signals import NO_OP, NoOp


@dataclass(frozen=True)
class Model:
    tags: RemoteData[list[Tag]] = remote_data.NOT_ASKED
    epoch: int = 0


EMPTY = Model()


@dataclass(frozen=True)
class Load:
    pass


@dataclass(frozen=True)
class Loaded:
    result: Result[list[Tag]]
    epoch: int


@dataclass(frozen=True)
class ViewTagDetail:
    tag_id: TagId


@dataclass(frozen=True)
class OpenAddModal:
    pass


@dataclass(frozen=True)
class OpenEditModal:
    tag: Tag


@dataclass(frozen=True)
class OpenDeleteModal:
    tag: Tag


Msg = Union[Load, Loaded, ViewTagDetail, OpenAddModal, OpenEditModal, OpenDeleteModal]


@dataclass(frozen=True)
class NavigateToTagDetail:
    tag_id: TagId


@dataclass(frozen=True)
class RequestOpenAddModal:
    pass


@dataclass(frozen=True)
class RequestOpenEditModal:
    tag: Tag


@dataclass(frozen=True)
class RequestOpenDeleteModal:
    tag: Tag


Signal = Union[NoOp, NavigateToTagDetail, RequestOpenAddModal, RequestOpenEditModal, RequestOpenDeleteModal]


def init() -> tuple[Model, Cmd]:
    return EMPTY, cmd.of_msg(Load())


def update(api: TagsApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, Load):
        epoch = model.epoch + 1
        fetch = cmd.either(api.get_all, NO_ARG, lambda result: Loaded(result, epoch))
        return replace(model, tags=remote_data.LOADING, epoch=epoch), fetch, NO_OP
    if isinstance(msg, Loaded):
        if msg.epoch != model.epoch:
            return model, cmd.NONE, NO_OP
        return replace(model, tags=remote_data.from_result(msg.result)), cmd.NONE, NO_OP
    if isinstance(msg, ViewTagDetail):
        return model, cmd.NONE, NavigateToTagDetail(msg.tag_id)
    if isinstance(msg, OpenAddModal):
        return model, cmd.NONE, RequestOpenAddModal()
    if isinstance(msg, OpenEditModal):
        return model, cmd.NONE, RequestOpenEditModal(msg.tag)
    if isinstance(msg, OpenDeleteModal):
        return model, cmd.NONE, RequestOpenDeleteModal(msg.tag)
    raise TypeError(f'Unhandled tags page message: {msg!r}')


def _tag_row(tag: Tag, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'li',
        h('span', class_='tag-swatch', style=f'background-color: {tag.color}' if tag.color else None),
        h('button', tag.name, type='button', class_='tag-name',
          on={'click': lambda _: dispatch(ViewTagDetail(tag.id))}),
        h('p', tag.description, class_='tag-description') if tag.description else None,
        button('Edit', lambda _: dispatch(OpenEditModal(tag)), kind='ghost'),
        button('Delete', lambda _: dispatch(OpenDeleteModal(tag)), kind='ghost'),
        class_='tag-row',
        data_tag_id=tag.id,
    )


def _tag_list(tags: list[Tag], dispatch: Callable[[Any], None]) -> Any:
    if not tags:
        return empty_state('No tags yet', 'Create tags to organise your library.')
    return h('ul', [_tag_row(tag, dispatch) for tag in tags], class_='tag-list')


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'section',
        h(
            'header',
            h('h1', 'Tags'),
            button('New Tag', lambda _: dispatch(OpenAddModal()), element_id='tags-add'),
            class_='page-header',
        ),
        remote_data_view.with_context('Failed to load tags', model.tags, lambda tags: _tag_list(tags, dispatch)),
        id='tags-page',
    )
