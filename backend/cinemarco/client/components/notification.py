"""The single toast owned by the shell.

Every ``Show`` starts a new generation and schedules a ``Hide`` for it; a
``Hide`` from an older generation is ignored so a newer toast is not cut short.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ...config import NOTIFICATION_TIMEOUT_SECONDS
from .. import cmd, html
from ..cmd import Cmd
from ..html import h
from ..signals import NO_OP, Dismissed, NoOp


@dataclass(frozen=True)
class Model:
    message: str = ''
    is_success: bool = True
    is_visible: bool = False
    generation: int = 0


EMPTY = Model()


@dataclass(frozen=True)
class Show:
    message: str
    is_success: bool


@dataclass(frozen=True)
class Hide:
    generation: int


Msg = Union[Show, Hide]
Signal = Union[NoOp, Dismissed]


def update(msg: Msg, model: Model, timeout: float | None = None) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, Show):
        generation = model.generation + 1
        shown = Model(message=msg.message, is_success=msg.is_success, is_visible=True, generation=generation)
        hide_after = NOTIFICATION_TIMEOUT_SECONDS if timeout is None else timeout
        return shown, cmd.delay(hide_after, Hide(generation)), NO_OP
    if isinstance(msg, Hide):
        if msg.generation != model.generation or not model.is_visible:
            return model, cmd.NONE, NO_OP
        return replace(model, is_visible=False), cmd.NONE, Dismissed()
    raise TypeError(f'Unhandled notification message: {msg!r}')


def view(model: Model, dispatch: Callable[[Any], None]) -> html.Node:
    if not model.is_visible:
        return html.NONE
    return h(
        'div',
        h(
            'div',
            h('span', model.message),
            h('button', 'Dismiss', type='button', class_='btn btn-ghost btn-xs',
              on={'click': lambda _: dispatch(Hide(model.generation))}),
            class_='alert alert-success' if model.is_success else 'alert alert-error',
            role='status',
        ),
        class_='toast toast-end',
        id='notification',
    )
