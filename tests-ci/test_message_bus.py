"""
Tests du MessageBus (core/message_bus.py)
"""
import pytest

from core.message_bus import MessageBus


@pytest.mark.unit
class TestMessageBus:

    @pytest.mark.asyncio
    async def test_publish_reaches_all_subscribers(self):
        bus = MessageBus()
        received = []

        async def first(data):
            received.append(("first", data))

        async def second(data):
            received.append(("second", data))

        bus.subscribe("chat.inbound", first)
        bus.subscribe("chat.inbound", second)

        await bus.publish("chat.inbound", "hello")
        await bus.wait_all()

        assert sorted(received) == [("first", "hello"), ("second", "hello")]

    @pytest.mark.asyncio
    async def test_no_subscriber(self):
        bus = MessageBus()
        await bus.publish("nobody.listens", 1)
        assert bus.get_stats()["active_tasks"] == 0

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self):
        bus = MessageBus()
        received = []

        async def broken(data):
            raise RuntimeError("boom")

        async def ok(data):
            received.append(data)

        bus.subscribe("system.event", broken)
        bus.subscribe("system.event", ok)

        await bus.publish("system.event", "ready")
        await bus.wait_all()

        assert received == ["ready"]

    def test_stats(self):
        bus = MessageBus()

        async def handler(data):
            pass

        bus.subscribe("a", handler)
        bus.subscribe("a", handler)
        bus.subscribe("b", handler)

        assert bus.get_stats() == {"topics": 2, "subscribers": 3, "active_tasks": 0}
