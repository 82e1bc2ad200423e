"""Commands: deferred side effects returned by update functions.

A ``Cmd`` is an immutable batch of effects. Each effect is an async callable
that receives ``dispatch`` and calls it at most once. The runtime schedules
every effect as its own task, so effects from one batch run concurrently and
their messages arrive in no particular order.

Operations handed to the constructors may be coroutine functions or plain
blocking callables. Blocking callables run in a worker thread so database and
``requests`` calls never stall the event loop.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from .result import Err, Ok, Result, error_message

logger = logging.getLogger(__name__)

Dispatch = Callable[[Any], None]
Effect = Callable[[Dispatch], Awaitable[None]]


class _NoArg:
    def __repr__(self) -> str:
        return 'NO_ARG'


NO_ARG = _NoArg()


@dataclass(frozen=True)
class Cmd:
    effects: tuple[Effect, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.effects)

    def __len__(self) -> int:
        return len(self.effects)


NONE = Cmd()


async def _invoke(op: Callable[..., Any], arg: Any) -> Any:
    args = () if arg is NO_ARG else (arg,)
    if inspect.iscoroutinefunction(op):
        return await op(*args)
    result = await asyncio.to_thread(op, *args)
    if inspect.isawaitable(result):
        return await result
    return result


def of_msg(msg: Any) -> Cmd:
    async def effect(dispatch: Dispatch) -> None:
        dispatch(msg)

    return Cmd((effect,))


def batch(*cmds: Cmd) -> Cmd:
    effects: list[Effect] = []
    for cmd in cmds:
        effects.extend(cmd.effects)
    return Cmd(tuple(effects))


def map_cmd(cmd: Cmd, fn: Callable[[Any], Any]) -> Cmd:
    """Lift a child's command so its messages reach the parent wrapped by ``fn``."""

    def lift(effect: Effect) -> Effect:
        async def lifted(dispatch: Dispatch) -> None:
            await effect(lambda msg: dispatch(fn(msg)))

        return lifted

    return Cmd(tuple(lift(effect) for effect in cmd.effects))


def either(op: Callable[..., Any], arg: Any, to_msg: Callable[[Result[Any]], Any]) -> Cmd:
    """Run ``op`` and deliver ``to_msg(Ok(value))`` or ``to_msg(Err(message))``."""

    async def effect(dispatch: Dispatch) -> None:
        try:
            outcome: Result[Any] = Ok(await _invoke(op, arg))
        except Exception as exc:
            logger.debug('Command %s failed: %s', getattr(op, '__name__', op), exc)
            outcome = Err(error_message(exc))
        dispatch(to_msg(outcome))

    return Cmd((effect,))


def call_api(op: Callable[..., Any], arg: Any, to_msg: Callable[[Result[Any]], Any]) -> Cmd:
    """Run an ``op`` that already returns a ``Result``; exceptions fold into ``Err``."""

    async def effect(dispatch: Dispatch) -> None:
        try:
            outcome = await _invoke(op, arg)
        except Exception as exc:
            logger.debug('Command %s failed: %s', getattr(op, '__name__', op), exc)
            outcome = Err(error_message(exc))
        if not isinstance(outcome, (Ok, Err)):
            raise TypeError(f'{getattr(op, "__name__", op)} must return Ok or Err')
        dispatch(to_msg(outcome))

    return Cmd((effect,))


def load(
    op: Callable[..., Any],
    arg: Any,
    on_success: Callable[[Any], Any],
    on_error: Callable[[str], Any],
) -> Cmd:
    """Route success and failure to two independent message constructors."""

    async def effect(dispatch: Dispatch) -> None:
        try:
            value = await _invoke(op, arg)
        except Exception as exc:
            logger.debug('Command %s failed: %s', getattr(op, '__name__', op), exc)
            msg = on_error(error_message(exc))
        else:
            msg = on_success(value)
        dispatch(msg)

    return Cmd((effect,))


def perform(op: Callable[..., Any], arg: Any, to_msg: Callable[[Any], Any]) -> Cmd:
    async def effect(dispatch: Dispatch) -> None:
        value = await _invoke(op, arg)
        dispatch(to_msg(value))

    return Cmd((effect,))


def delay(seconds: float, msg: Any) -> Cmd:
    async def effect(dispatch: Dispatch) -> None:
        await asyncio.sleep(seconds)
        dispatch(msg)

    return Cmd((effect,))


async def collect(cmd: Cmd) -> list[Any]:
    """Run every effect of ``cmd`` to completion and return the messages they sent."""
    messages: list[Any] = []
    await asyncio.gather(*(effect(messages.append) for effect in cmd.effects))
    return messages
