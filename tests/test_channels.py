"""Unit tests for scribe.realtime.channels: subscribe, publish hand-off and overflow."""

import asyncio
import threading
import unittest

from scribe.realtime.channels import ChannelRegistry


class TestChannelRegistry(unittest.IsolatedAsyncioTestCase):
    async def test_publish_without_subscribers_returns_false(self) -> None:
        registry = ChannelRegistry()
        self.assertFalse(registry.publish("1", "new_notification", {"id": 1}))
        self.assertFalse(registry.is_connected("1"))

    async def test_publish_reaches_every_subscription_of_principal(self) -> None:
        registry = ChannelRegistry()
        first = registry.subscribe(1)
        second = registry.subscribe("1")
        other = registry.subscribe("2")
        self.assertEqual(registry.connection_count(), 3)

        self.assertTrue(registry.publish(1, "new_notification", {"id": 5}))
        await asyncio.sleep(0)

        expected = {"event": "new_notification", "data": {"id": 5}}
        self.assertEqual(await asyncio.wait_for(first.queue.get(), 1), expected)
        self.assertEqual(await asyncio.wait_for(second.queue.get(), 1), expected)
        self.assertTrue(other.queue.empty())

    async def test_unsubscribe(self) -> None:
        registry = ChannelRegistry()
        sub = registry.subscribe("1")
        registry.unsubscribe(sub)
        self.assertFalse(registry.is_connected("1"))
        self.assertFalse(registry.publish("1", "new_notification", {}))
        # Second unsubscribe is a no-op.
        registry.unsubscribe(sub)

    async def test_full_queue_drops_without_raising(self) -> None:
        registry = ChannelRegistry(queue_size=1)
        sub = registry.subscribe("1")
        with self.assertLogs("scribe.realtime.channels", level="WARNING"):
            registry.publish("1", "new_notification", {"n": 1})
            registry.publish("1", "new_notification", {"n": 2})
            await asyncio.sleep(0)
        self.assertEqual(sub.queue.qsize(), 1)
        self.assertEqual(sub.dropped, 1)
        self.assertEqual((await sub.queue.get())["data"], {"n": 1})

    async def test_publish_from_worker_thread(self) -> None:
        registry = ChannelRegistry()
        sub = registry.subscribe("1")
        results: list[bool] = []

        thread = threading.Thread(
            target=lambda: results.append(registry.publish("1", "new_notification", {"id": 9}))
        )
        thread.start()
        thread.join()

        message = await asyncio.wait_for(sub.queue.get(), 1)
        self.assertEqual(results, [True])
        self.assertEqual(message["data"], {"id": 9})

    async def test_closed_loop_subscription_is_removed(self) -> None:
        registry = ChannelRegistry()
        sub = registry.subscribe("1")
        dead_loop = asyncio.new_event_loop()
        dead_loop.close()
        sub.loop = dead_loop
        with self.assertLogs("scribe.realtime.channels", level="WARNING"):
            self.assertFalse(registry.publish("1", "new_notification", {}))
        self.assertFalse(registry.is_connected("1"))
