from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...domain import Collection, CreateCollectionRequest, UpdateCollectionRequest
from ...utils import trimmed_or_none
from .. import cmd
from ..api import CollectionSaveApi
from ..cmd import Cmd
from ..html import Element, h
from ..result import Err, Ok, Result
from ..signals import CLOSE_REQUESTED, NO_OP, CloseRequested, NoOp
from .common import button, modal, text_input


@dataclass(frozen=True)
class Model:
    editing: Collection | None = None
    name: str = ''
    description: str = ''
    is_submitting: bool = False
    error: str | None = None


EMPTY = Model()


def from_collection(collection: Collection) -> Model:
    return Model(editing=collection, name=collection.name, description=collection.description or '')


@dataclass(frozen=True)
class NameChanged:
    name: str


@dataclass(frozen=True)
class DescriptionChanged:
    description: str


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class SubmitResult:
    result: Result[Collection]


@dataclass(frozen=True)
class Close:
    pass


Msg = Union[NameChanged, DescriptionChanged, Submit, SubmitResult, Close]


@dataclass(frozen=True)
class Saved:
    collection: Collection


Signal = Union[NoOp, Saved, CloseRequested]


def init(collection: Collection | None = None) -> Model:
    return from_collection(collection) if collection is not None else EMPTY


def update(api: CollectionSaveApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, SubmitResult):
        if isinstance(msg.result, Ok):
            return replace(model, is_submitting=False), cmd.NONE, Saved(msg.result.value)
        if isinstance(msg.result, Err):
            return replace(model, is_submitting=False, error=msg.result.error), cmd.NONE, NO_OP

    if model.is_submitting:
        return model, cmd.NONE, NO_OP

    if isinstance(msg, NameChanged):
        return replace(model, name=msg.name), cmd.NONE, NO_OP
    if isinstance(msg, DescriptionChanged):
        return replace(model, description=msg.description), cmd.NONE, NO_OP
    if isinstance(msg, Submit):
        if not model.name.strip():
            return replace(model, error='Name is required'), cmd.NONE, NO_OP
        name = model.name.strip()
        description = trimmed_or_none(model.description)
        if model.editing is None:
            submit = cmd.call_api(
                api.create, CreateCollectionRequest(name=name, description=description), SubmitResult
            )
        else:
            request = UpdateCollectionRequest(id=model.editing.id, name=name, description=description)
            submit = cmd.call_api(api.update, request, SubmitResult)
        return replace(model, is_submitting=True, error=None), submit, NO_OP
    if isinstance(msg, Close):
        return model, cmd.NONE, CLOSE_REQUESTED
    raise TypeError(f'Unhandled collection modal message: {msg!r}')


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return modal(
        'Edit Collection' if model.editing is not None else 'New Collection',
        text_input('collection-name', 'Name', model.name, lambda value: dispatch(NameChanged(value)),
                   autofocus=True),
        text_input('collection-description', 'Description', model.description,
                   lambda value: dispatch(DescriptionChanged(value))),
        h('p', model.error, class_='form-error', role='alert') if model.error else None,
        h(
            'div',
            button('Cancel', lambda _: dispatch(Close()), element_id='collection-cancel', kind='ghost',
                   disabled=model.is_submitting),
            button('Save', lambda _: dispatch(Submit()), element_id='collection-submit',
                   disabled=model.is_submitting, busy=model.is_submitting),
            class_='modal-action',
        ),
        can_close=not model.is_submitting,
        on_close=lambda _: dispatch(Close()),
    )
