import asyncio
from dataclasses import dataclass

import pytest

from cinemarco.client import cmd
from cinemarco.client.runtime import Program
from cinemarco.client.signals import NO_OP


@dataclass(frozen=True)
class Add:
    amount: int


@dataclass(frozen=True)
class Fetch:
    delay: float
    amount: int


@dataclass(frozen=True)
class Shout:
    text: str


def update(msg, model):
    if isinstance(msg, Add):
        return model + msg.amount, cmd.NONE, NO_OP
    if isinstance(msg, Fetch):
        return model, cmd.delay(msg.delay, Add(msg.amount)), NO_OP
    if isinstance(msg, Shout):
        return model, cmd.NONE, msg.text
    raise TypeError(msg)


class TestProgram:
    def test_init_command_runs_on_start(self):
        async def scenario():
            program = Program((0, cmd.of_msg(Add(5))), update)
            return await program.run_until_idle()

        assert asyncio.run(scenario()) == 5

    def test_dispatch_only_enqueues(self):
        async def scenario():
            program = Program((0, cmd.NONE), update)
            program.dispatch(Add(1))
            before = program.model
            await program.run_until_idle()
            return before, program.model

        assert asyncio.run(scenario()) == (0, 1)

    def test_waits_for_in_flight_commands(self):
        async def scenario():
            program = Program((0, cmd.NONE), update)
            program.dispatch(Fetch(0.05, 2))
            program.dispatch(Fetch(0.01, 3))
            return await program.run_until_idle()

        assert asyncio.run(scenario()) == 5

    def test_signals_reach_owner_but_no_op_does_not(self):
        seen = []

        async def scenario():
            program = Program((0, cmd.NONE), update, on_signal=seen.append)
            program.dispatch(Add(1))
            program.dispatch(Shout('hello'))
            await program.run_until_idle()

        asyncio.run(scenario())
        assert seen == ['hello']

    def test_messages_after_stop_are_dropped(self):
        async def scenario():
            program = Program((0, cmd.delay(0.05, Add(10))), update)
            program.start()
            program.stop()
            await asyncio.sleep(0.1)
            await program.run_until_idle()
            return program

        program = asyncio.run(scenario())
        assert program.stopped
        assert program.model == 0
        assert program.pending_commands == 0

    def test_effect_defects_surface(self):
        def explode(_):
            raise RuntimeError('defect')

        def failing_update(msg, model):
            return model, cmd.perform(explode, None, lambda v: v), NO_OP

        async def scenario():
            program = Program((0, cmd.NONE), failing_update)
            program.dispatch('go')
            await program.run_until_idle()

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())

    def test_render_uses_view(self):
        async def scenario():
            program = Program((3, cmd.NONE), update, view=lambda model, dispatch: f'count={model}')
            await program.run_until_idle()
            return program.render()

        assert asyncio.run(scenario()) == 'count=3'

    def test_run_logs_failed_effects(self, caplog):
        def explode(_):
            raise RuntimeError('defect')

        def failing_update(msg, model):
            return model, cmd.perform(explode, None, lambda v: v), NO_OP

        async def scenario():
            program = Program((0, cmd.NONE), failing_update)
            loop = asyncio.create_task(program.run())
            program.dispatch('go')
            await asyncio.sleep(0.1)
            program.stop()
            loop.cancel()
            try:
                await loop
            except asyncio.CancelledError:
                pass

        with caplog.at_level('ERROR', logger='cinemarco.client.runtime'):
            asyncio.run(scenario())
        [record] = [r for r in caplog.records if r.message == 'Command effect failed']
        assert isinstance(record.exc_info[1], RuntimeError)
