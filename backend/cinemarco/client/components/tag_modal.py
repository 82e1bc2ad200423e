from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...domain import CreateTagRequest, Tag, UpdateTagRequest
from ...utils import trimmed_or_none
from .. import cmd
from ..api import TagSaveApi
from ..cmd import Cmd
from ..html import Element, h
from ..result import Err, Ok, Result
from ..signals import CLOSE_REQUESTED, NO_OP, CloseRequested, NoOp
from .common import button, modal, text_input


@dataclass(frozen=True)
class Model:
    editing: Tag | None = None
    name: str = ''
    color: str = ''
    description: str = ''
    is_submitting: bool = False
    error: str | None = None


EMPTY = Model()


def from_tag(tag: Tag) -> Model:
    return Model(
        editing=tag,
        name=tag.name,
        color=tag.color or '',
        description=tag.description or '',
    )


@dataclass(frozen=True)
class NameChanged:
    name: str


@dataclass(frozen=True)
class ColorChanged:
    color: str


@dataclass(frozen=True)
class DescriptionChanged:
    description: str


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class SubmitResult:
    result: Result[Tag]


@dataclass(frozen=True)
class Close:
    pass


Msg = Union[NameChanged, ColorChanged, DescriptionChanged, Submit, SubmitResult, Close]


@dataclass(frozen=True)
class Saved:
    tag: Tag


Signal = Union[NoOp, Saved, CloseRequested]


def init(tag: Tag | None = None) -> Model:
    return from_tag(tag) if tag is not None else EMPTY


def _submit_cmd(api: TagSaveApi, model: Model) -> Cmd:
    name = model.name.strip()
    color = trimmed_or_none(model.color)
    description = trimmed_or_none(model.description)
    if model.editing is None:
        request = CreateTagRequest(name=name, color=color, description=description)
        return cmd.call_api(api.create, request, SubmitResult)
    request = UpdateTagRequest(id=model.editing.id, name=name, color=color, description=description)
    return cmd.call_api(api.update, request, SubmitResult)


def update(api: TagSaveApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, SubmitResult):
        if isinstance(msg.result, Ok):
            return replace(model, is_submitting=False), cmd.NONE, Saved(msg.result.value)
        if isinstance(msg.result, Err):
            return replace(model, is_submitting=False, error=msg.result.error), cmd.NONE, NO_OP

    if model.is_submitting:
        return model, cmd.NONE, NO_OP

    if isinstance(msg, NameChanged):
        return replace(model, name=msg.name), cmd.NONE, NO_OP
    if isinstance(msg, ColorChanged):
        return replace(model, color=msg.color), cmd.NONE, NO_OP
    if isinstance(msg, DescriptionChanged):
        return replace(model, description=msg.description), cmd.NONE, NO_OP
    if isinstance(msg, Submit):
        if not model.name.strip():
            return replace(model, error='Name is required'), cmd.NONE, NO_OP
        return replace(model, is_submitting=True, error=None), _submit_cmd(api, model), NO_OP
    if isinstance(msg, Close):
        return model, cmd.NONE, CLOSE_REQUESTED
    raise TypeError(f'Unhandled tag modal message: {msg!r}')


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return modal(
        'Edit Tag' if model.editing is not None else 'New Tag',
        text_input('tag-name', 'Name', model.name, lambda value: dispatch(NameChanged(value)), autofocus=True),
        text_input('tag-color', 'Color', model.color, lambda value: dispatch(ColorChanged(value)),
                   placeholder='#e11d48'),
        text_input('tag-description', 'Description', model.description,
                   lambda value: dispatch(DescriptionChanged(value))),
        h('p', model.error, class_='form-error', role='alert') if model.error else None,
        h(
            'div',
            button('Cancel', lambda _: dispatch(Close()), element_id='tag-cancel', kind='ghost',
                   disabled=model.is_submitting),
            button('Save', lambda _: dispatch(Submit()), element_id='tag-submit',
                   disabled=model.is_submitting, busy=model.is_submitting),
            class_='modal-action',
        ),
        can_close=not model.is_submitting,
        on_close=lambda _: dispatch(Close()),
    )
