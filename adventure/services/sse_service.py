import asyncio
import json
import logging
from typing import Optional

import redis.asyncio as redis

from adventure.core.config import settings

class RedisClient:
    def __init__(self, url):
        self.redis_url = url
        self.redis_pool = None

    async def connect(self):
        self.redis_pool = redis.ConnectionPool.from_url(self.redis_url, decode_responses=True)

    async def close(self):
        if self.redis_pool:
            await self.redis_pool.disconnect()
            self.redis_pool = None

    @property
    def connected(self) -> bool:
        return self.redis_pool is not None

    async def publish(self, channel: str, message: dict):
        """
        Publishes a message to a Redis channel.
        """
        async with redis.Redis(connection_pool=self.redis_pool) as r:
            await r.publish(channel, json.dumps(message, ensure_ascii=False))

    async def listen(self, channel: str):
        """
        Listens to a Redis channel and yields messages.
        """
        async with redis.Redis(connection_pool=self.redis_pool) as r:
            pubsub = r.pubsub()
            await pubsub.subscribe(channel)
            try:
                while True:
                    message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=20)
                    if message:
                        yield message['data']
                    await asyncio.sleep(0.01)
            finally:
                await pubsub.unsubscribe(channel)
                await pubsub.aclose()

redis_client = RedisClient(settings.REDIS_URL)

def game_channel(session_id: str) -> str:
    return f"game:{session_id}"

async def publish_game_event(session_id: str, event: str, data: Optional[dict] = None):
    """
    Publishes a turn event for a game session. A broken event stream is logged
    and never aborts the turn that produced the event.
    """
    if not settings.EVENTS_ENABLED or not redis_client.connected:
        return
    message = {"event": event, "session_id": session_id}
    if data:
        message["data"] = data
    try:
        await redis_client.publish(game_channel(session_id), message)
    except redis.RedisError as e:
        logging.error(f"Failed to publish '{event}' for session {session_id}: {e}")

async def sse_generator(session_id: str):
    """
    An async generator that listens to a Redis channel and yields SSE-formatted messages.
    It dynamically sets the event name based on the received message.
    """
    async for message in redis_client.listen(game_channel(session_id)):
        try:
            data = json.loads(message)
            event_name = data.get("event", "message")
            event_data = json.dumps(data, ensure_ascii=False)
            yield f"event: {event_name}\ndata: {event_data}\n\n"
        except json.JSONDecodeError:
            yield f"event: message\ndata: {message}\n\n"
