"""Single-threaded message loop that drives one update function.

``dispatch`` only enqueues. Messages are processed one at a time and each
update runs to completion before the next message is taken, so a model never
has two writers. Command effects run as independent tasks; their messages
come back through the same queue.

Once ``stop`` is called, in-flight commands still run to completion (there is
no cancellation) but whatever they dispatch is dropped, so a closed screen
never receives a late completion.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generic, TypeVar

from .cmd import Cmd, NONE
from .signals import NoOp

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT')

UpdateFn = Callable[[Any, ModelT], tuple[ModelT, Cmd, Any]]


class Program(Generic[ModelT]):
    def __init__(
        self,
        init: tuple[ModelT, Cmd],
        update: UpdateFn,
        on_signal: Callable[[Any], None] | None = None,
        view: Callable[[ModelT, Callable[[Any], None]], Any] | None = None,
    ) -> None:
        self._model, self._init_cmd = init
        self._update = update
        self._on_signal = on_signal
        self._view = view
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._pending: set[asyncio.Task[None]] = set()
        self._stopped = False
        self._started = False
        # set while `run` drives the loop; `run_until_idle` raises failures itself
        self._log_failures = False

    @property
    def model(self) -> ModelT:
        return self._model

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def pending_commands(self) -> int:
        return len(self._pending)

    def dispatch(self, msg: Any) -> None:
        if self._stopped:
            logger.debug('Dropping %s delivered after stop', type(msg).__name__)
            return
        self._queue.put_nowait(msg)

    def render(self) -> Any:
        if self._view is None:
            raise RuntimeError('Program was created without a view')
        return self._view(self._model, self.dispatch)

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._execute(self._init_cmd)
        self._init_cmd = NONE

    def stop(self) -> None:
        self._stopped = True
        while not self._queue.empty():
            self._queue.get_nowait()

    def _execute(self, cmd: Cmd) -> None:
        for effect in cmd.effects:
            task = asyncio.get_running_loop().create_task(effect(self.dispatch))
            self._pending.add(task)
            task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if not self._log_failures or task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.exception('Command effect failed', exc_info=exc)

    def _step(self, msg: Any) -> None:
        self._model, cmd, signal = self._update(msg, self._model)
        self._execute(cmd)
        if self._on_signal is not None and not isinstance(signal, NoOp):
            self._on_signal(signal)

    def _drain(self) -> None:
        while not self._stopped and not self._queue.empty():
            self._step(self._queue.get_nowait())

    async def run_until_idle(self) -> ModelT:
        """Process messages until the queue is empty and no command is in flight."""
        self.start()
        while True:
            self._drain()
            if self._stopped or not self._pending:
                break
            done, _ = await asyncio.wait(set(self._pending), return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                # Surface defects raised inside effects (e.g. a failing ``perform``).
                task.result()
        return self._model

    async def run(self) -> None:
        self._log_failures = True
        self.start()
        while not self._stopped:
            msg = await self._queue.get()
            if self._stopped:
                break
            self._step(msg)
