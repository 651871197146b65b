"""Tests for turn event publishing and SSE framing."""
from __future__ import annotations

import json
import unittest
from unittest import mock

import redis.asyncio as redis

from adventure.core.config import settings
from adventure.services import sse_service
from adventure.services.game_session import GameSession
from fakes import StubImageClient, StubStoryClient


class FakeRedisClient:
    def __init__(self, connected: bool = True, error: Exception | None = None, messages=()) -> None:
        self.connected = connected
        self.error = error
        self.messages = list(messages)
        self.published: list[tuple[str, dict]] = []
        self.listened: list[str] = []

    async def publish(self, channel: str, message: dict) -> None:
        if self.error is not None:
            raise self.error
        self.published.append((channel, message))

    async def listen(self, channel: str):
        self.listened.append(channel)
        for message in self.messages:
            yield message


class PublishGameEventTests(unittest.IsolatedAsyncioTestCase):
    async def test_publishes_on_game_channel(self) -> None:
        fake = FakeRedisClient()
        with mock.patch.object(sse_service, "redis_client", fake), \
                mock.patch.object(settings, "EVENTS_ENABLED", True):
            await sse_service.publish_game_event("s1", "image_ready", {"image": "data:image/png;base64,AAA"})
        self.assertEqual(fake.published, [(
            "game:s1",
            {"event": "image_ready", "session_id": "s1", "data": {"image": "data:image/png;base64,AAA"}},
        )])

    async def test_event_without_data(self) -> None:
        fake = FakeRedisClient()
        with mock.patch.object(sse_service, "redis_client", fake), \
                mock.patch.object(settings, "EVENTS_ENABLED", True):
            await sse_service.publish_game_event("s1", "turn_error")
        self.assertEqual(fake.published, [("game:s1", {"event": "turn_error", "session_id": "s1"})])

    async def test_disabled_events_are_not_published(self) -> None:
        fake = FakeRedisClient()
        with mock.patch.object(sse_service, "redis_client", fake), \
                mock.patch.object(settings, "EVENTS_ENABLED", False):
            await sse_service.publish_game_event("s1", "story_ready", {"state": {}})
        self.assertEqual(fake.published, [])

    async def test_not_connected_is_a_no_op(self) -> None:
        fake = FakeRedisClient(connected=False)
        with mock.patch.object(sse_service, "redis_client", fake), \
                mock.patch.object(settings, "EVENTS_ENABLED", True):
            await sse_service.publish_game_event("s1", "story_ready", {"state": {}})
        self.assertEqual(fake.published, [])

    async def test_redis_error_is_logged_not_raised(self) -> None:
        fake = FakeRedisClient(error=redis.ConnectionError("connection refused"))
        with mock.patch.object(sse_service, "redis_client", fake), \
                mock.patch.object(settings, "EVENTS_ENABLED", True), \
                self.assertLogs(level="ERROR") as logs:
            await sse_service.publish_game_event("s1", "story_ready", {"state": {}})
        self.assertIn("Failed to publish 'story_ready' for session s1", logs.output[0])

    async def test_broken_event_stream_does_not_abort_turn(self) -> None:
        fake = FakeRedisClient(error=redis.ConnectionError("connection refused"))
        session = GameSession(story_client=StubStoryClient(), image_client=StubImageClient())
        with mock.patch.object(sse_service, "redis_client", fake), \
                mock.patch.object(settings, "EVENTS_ENABLED", True), \
                self.assertLogs(level="ERROR"):
            await session.process_turn("Start the adventure.")
        self.assertEqual(session.state.story, "A")
        self.assertEqual(session.state.image, "data:image/jpeg;base64,XYZ")
        self.assertIsNone(session.error)
        self.assertEqual(len(session.history), 2)
        self.assertFalse(session.turn_loading)


class SseGeneratorTests(unittest.IsolatedAsyncioTestCase):
    async def test_frames_events_by_name(self) -> None:
        message = json.dumps({"event": "story_ready", "session_id": "s1", "data": {"state": {"story": "숲"}}}, ensure_ascii=False)
        fake = FakeRedisClient(messages=[message])
        with mock.patch.object(sse_service, "redis_client", fake):
            frames = [frame async for frame in sse_service.sse_generator("s1")]
        self.assertEqual(fake.listened, ["game:s1"])
        self.assertEqual(len(frames), 1)
        self.assertTrue(frames[0].startswith("event: story_ready\ndata: "))
        self.assertTrue(frames[0].endswith("\n\n"))
        payload = json.loads(frames[0].split("data: ", 1)[1])
        self.assertEqual(payload["data"]["state"]["story"], "숲")

    async def test_missing_event_name_defaults_to_message(self) -> None:
        fake = FakeRedisClient(messages=[json.dumps({"session_id": "s1"})])
        with mock.patch.object(sse_service, "redis_client", fake):
            frames = [frame async for frame in sse_service.sse_generator("s1")]
        self.assertTrue(frames[0].startswith("event: message\n"))

    async def test_non_json_message_is_passed_through(self) -> None:
        fake = FakeRedisClient(messages=["plain text"])
        with mock.patch.object(sse_service, "redis_client", fake):
            frames = [frame async for frame in sse_service.sse_generator("s1")]
        self.assertEqual(frames, ["event: message\ndata: plain text\n\n"])


class RedisClientTests(unittest.TestCase):
    def test_not_connected_before_connect(self) -> None:
        self.assertFalse(sse_service.RedisClient("redis://localhost:6379/0").connected)


if __name__ == "__main__":
    unittest.main()
