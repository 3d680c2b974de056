"""
Tests for settled concurrent fan-out.
"""

import asyncio

from chatmux.retrieval.fanout import Settled, gather_settled, successes


async def _value(value, delay=0):
    await asyncio.sleep(delay)
    return value


async def _fail(message):
    raise RuntimeError(message)


class TestGatherSettled:

    def test_no_inputs(self):
        assert asyncio.run(gather_settled()) == []

    def test_failure_does_not_cancel_siblings(self):
        settled = asyncio.run(gather_settled(_fail("boom"), _value("slow", 0.01), _value("fast")))

        assert [item.ok for item in settled] == [False, True, True]
        assert str(settled[0].error) == "boom"
        assert settled[1].value == "slow"
        assert successes(settled) == ["slow", "fast"]

    def test_successes_in_input_order(self):
        settled = [Settled(ok=True, value=1), Settled(ok=False, error=ValueError()), Settled(ok=True, value=3)]
        assert successes(settled) == [1, 3]
