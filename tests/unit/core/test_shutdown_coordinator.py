import asyncio

import pytest

from core.shutdown import ShutdownCoordinator


@pytest.mark.asyncio
class TestShutdownCoordinator:
    async def test_runs_cleanups_in_priority_order(self):
        coordinator = ShutdownCoordinator(total_timeout=5)
        order = []

        async def make(name):
            order.append(name)

        coordinator.register_cleanup(lambda: make("db"), priority=3, name="db")
        coordinator.register_cleanup(lambda: make("services"), priority=1, name="services")
        coordinator.register_cleanup(lambda: make("client"), priority=2, name="client")

        assert await coordinator.shutdown() is True
        assert order == ["services", "client", "db"]
        assert coordinator.is_shutting_down()

    async def test_failures_and_timeouts_do_not_stop_others(self):
        coordinator = ShutdownCoordinator(total_timeout=5)
        done = []

        async def broken():
            raise RuntimeError("boom")

        async def slow():
            await asyncio.sleep(10)

        async def ok():
            done.append(True)

        coordinator.register_cleanup(broken, priority=0)
        coordinator.register_cleanup(slow, priority=1, timeout=0.01)
        coordinator.register_cleanup(ok, priority=2)

        assert await coordinator.shutdown() is False
        assert done == [True]

    async def test_second_shutdown_is_noop(self):
        coordinator = ShutdownCoordinator()
        calls = []

        async def cleanup():
            calls.append(1)

        coordinator.register_cleanup(cleanup)
        await coordinator.shutdown()
        assert await coordinator.shutdown() is True
        assert calls == [1]

    async def test_invalid_priority(self):
        coordinator = ShutdownCoordinator()

        async def cleanup():
            pass

        with pytest.raises(ValueError):
            coordinator.register_cleanup(cleanup, priority=10)
