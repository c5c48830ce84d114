"""Redis client for change notifications, with connection pooling and graceful fallback."""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from redis.asyncio import ConnectionPool, Redis
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

MessageHandler = Callable[[], Awaitable[None]]
Unsubscribe = Callable[[], None]


def _noop_unsubscribe() -> None:
    """Unsubscribe handle for subscriptions that were never established."""


class RedisClient:
    """Async Redis client with connection pooling and graceful fallback."""

    def __init__(self, url: str, enabled: bool = True, pool_size: int = 5) -> None:
        self._url = url
        self._enabled = enabled
        self._pool_size = pool_size
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None
        self._listeners: set[asyncio.Task[None]] = set()
        self._closers: set[asyncio.Task[None]] = set()

    async def connect(self) -> None:
        """Initialize connection pool and verify connectivity."""
        if not self._enabled:
            logger.info("Redis disabled by configuration")
            return
        try:
            self._pool = ConnectionPool.from_url(self._url, max_connections=self._pool_size)
            self._client = Redis(connection_pool=self._pool)
            await self._client.ping()
            logger.info("Redis connected successfully")
        except RedisError as e:
            logger.warning("Redis connection failed: %s", e)
            self._client = None
            self._pool = None

    async def close(self) -> None:
        """Cancel listeners and close the connection pool."""
        for task in list(self._listeners):
            task.cancel()
        if self._listeners:
            await asyncio.gather(*self._listeners, return_exceptions=True)
        if self._closers:
            await asyncio.gather(*self._closers, return_exceptions=True)
        if self._client:
            await self._client.aclose()
            self._client = None
            self._pool = None
            logger.info("Redis connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if client is connected."""
        return self._client is not None

    @property
    def listener_count(self) -> int:
        """Number of live channel listeners."""
        return len(self._listeners)

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        if not self._client:
            return False
        try:
            return await self._client.ping()
        except RedisError:
            return False

    async def subscribe(self, channel: str, on_message: MessageHandler) -> Unsubscribe:
        """
        Listen on a pub/sub channel and invoke a handler for every message.

        Message payloads are ignored: each message only signals that something
        changed. The handler is awaited sequentially, so a slow handler delays
        the next delivery rather than running concurrently with itself.

        Args:
            channel: Channel name to subscribe to.
            on_message: Coroutine function called once per published message.

        Returns:
            A synchronous, idempotent unsubscribe callable. When Redis is
            unavailable, the subscription is a no-op and so is the callable.
        """
        if not self._client:
            logger.warning("Redis unavailable, live updates disabled for %s", channel)
            return _noop_unsubscribe
        pubsub = self._client.pubsub()
        try:
            await pubsub.subscribe(channel)
        except RedisError as e:
            logger.warning("Redis SUBSCRIBE failed for %s: %s", channel, e)
            await self._close_pubsub(pubsub, channel)
            return _noop_unsubscribe

        task = asyncio.get_running_loop().create_task(
            self._listen(pubsub, channel, on_message),
            name=f"redis-listener:{channel}",
        )
        self._listeners.add(task)
        task.add_done_callback(self._listeners.discard)
        # Runs even when the task is cancelled before its first step
        task.add_done_callback(lambda _: self._schedule_close(pubsub, channel))
        logger.info("Subscribed to %s", channel)

        def unsubscribe() -> None:
            if not task.done():
                task.cancel()

        return unsubscribe

    async def _listen(self, pubsub: PubSub, channel: str, on_message: MessageHandler) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    await on_message()
                except Exception:
                    # A failing handler must not kill the subscription
                    logger.exception("Change handler failed for %s", channel)
        except RedisError as e:
            logger.warning("Redis subscription to %s lost: %s", channel, e)

    def _schedule_close(self, pubsub: PubSub, channel: str) -> None:
        closer = asyncio.get_running_loop().create_task(
            self._close_pubsub(pubsub, channel),
            name=f"redis-unsubscribe:{channel}",
        )
        self._closers.add(closer)
        closer.add_done_callback(self._closers.discard)

    async def _close_pubsub(self, pubsub: PubSub, channel: str) -> None:
        try:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
        except RedisError as e:
            logger.warning("Redis UNSUBSCRIBE failed for %s: %s", channel, e)
        logger.debug("Unsubscribed from %s", channel)
