"""Redis Streams event bus implementation.

One stream per integration event type (``<stream_prefix><eventType>``),
one consumer group per subscribing bounded context.  Each group gets
at-least-once delivery:

- Messages are only ack'd *after* the handler succeeds.
- Failed messages are retried up to ``max_handler_retries`` times.
- After exhausting retries, messages go to an in-memory dead-letter
  list and are ack'd so they don't block the stream.

Consumers must therefore be idempotent on ``message_id``
(see ``contextkit.integration.inbox``).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field

import redis.asyncio as aioredis

from contextkit.core.errors import PublishError, UnknownEventTypeError

from .bus import ErrorCallback, IntegrationEventHandler
from .events import IntegrationEvent
from .schemas import dumps, loads

logger = logging.getLogger(__name__)


@dataclass
class DeadLetter:
    """Record of a message that exhausted its retry budget."""

    stream: str
    group: str
    msg_id: str
    event_type: str
    error: str
    attempts: int
    timestamp: float = field(default_factory=time.monotonic)


class RedisStreamsBus:
    """Production event bus backed by Redis Streams."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        stream_prefix: str = "contextkit:",
        max_stream_length: int = 10_000,
        block_ms: int = 1000,
        batch_size: int = 10,
        max_handler_retries: int = 3,
        on_handler_error: ErrorCallback | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._redis: aioredis.Redis | None = None
        self._prefix = stream_prefix
        self._max_len = max_stream_length
        self._block_ms = block_ms
        self._batch_size = batch_size
        self._max_retries = max_handler_retries
        self._on_handler_error = on_handler_error
        self._subscriptions: list[tuple[str, str, IntegrationEventHandler]] = []
        self._tasks: list[asyncio.Task] = []
        self._running = False

        # Observability
        self._error_counts: dict[str, int] = defaultdict(int)
        self._handler_attempts: dict[str, int] = defaultdict(int)
        self._dead_letters: list[DeadLetter] = []
        self._messages_processed: int = 0

    def stream_for(self, event_type: str) -> str:
        return f"{self._prefix}{event_type}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Connect to Redis and start consumer loops."""
        self._redis = aioredis.from_url(
            self._redis_url, decode_responses=True
        )
        self._running = True

        for stream, group, handler in self._subscriptions:
            self._spawn_consumer(stream, group, handler)

    async def stop(self) -> None:
        """Stop consumer loops and close Redis connection."""
        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Publish / Subscribe
    # ------------------------------------------------------------------

    async def publish(self, event: IntegrationEvent) -> None:
        """Append *event* to its stream.

        Raises
        ------
        PublishError
            If the bus is not started or Redis rejected the write.
        """
        if not self._redis:
            raise PublishError("RedisStreamsBus not started")

        fields = {"_type": event.event_type, "_data": dumps(event)}
        try:
            await self._redis.xadd(
                self.stream_for(event.event_type),
                fields,
                maxlen=self._max_len,
                approximate=True,
            )
        except aioredis.RedisError as exc:
            raise PublishError(
                f"Redis rejected {event.event_type} {event.message_id}: {exc}"
            ) from exc

    async def subscribe(
        self,
        event_type: str,
        handler: IntegrationEventHandler,
        group: str = "default",
    ) -> None:
        """Register a handler.

        Can be called before or after start().  If the bus is already
        running the consumer loop is launched immediately.
        """
        stream = self.stream_for(event_type)
        self._subscriptions.append((stream, group, handler))

        if self._running and self._redis is not None:
            self._spawn_consumer(stream, group, handler)

    def _spawn_consumer(
        self, stream: str, group: str, handler: IntegrationEventHandler,
    ) -> None:
        task = asyncio.create_task(
            self._consume_loop(stream, group, handler),
            name=f"consumer-{stream}-{group}",
        )
        self._tasks.append(task)

    # ------------------------------------------------------------------
    # Consumer loop
    # ------------------------------------------------------------------

    async def _consume_loop(
        self,
        stream: str,
        group: str,
        handler: IntegrationEventHandler,
    ) -> None:
        """Read from the stream, deserialize, call handler, ack on success.

        A message whose handler failed stays in this consumer's pending
        list and is never returned by ``">"`` again, so each pass first
        re-reads pending entries (id ``"0"``) and only blocks for new
        ones once nothing is pending.
        """
        assert self._redis is not None
        await self._ensure_group(stream, group)
        consumer_name = f"{group}-worker"
        error_key = f"{stream}/{group}"

        while self._running:
            try:
                messages = await self._read(stream, group, consumer_name, "0")
                if not messages:
                    messages = await self._read(
                        stream, group, consumer_name, ">", block=self._block_ms,
                    )

                for msg_id, fields in messages:
                    await self._process_message(
                        stream, group, handler, msg_id, fields, error_key,
                    )

            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception(
                    "Consumer loop error for %s/%s", stream, group,
                )
                self._error_counts[error_key] += 1
                await asyncio.sleep(1)

    async def _read(
        self,
        stream: str,
        group: str,
        consumer_name: str,
        last_id: str,
        block: int | None = None,
    ) -> list[tuple[str, dict[str, str] | None]]:
        assert self._redis is not None
        entries = await self._redis.xreadgroup(
            groupname=group,
            consumername=consumer_name,
            streams={stream: last_id},
            count=self._batch_size,
            block=block,
        )
        return [
            (msg_id, fields)
            for _stream, batch in entries or []
            for msg_id, fields in batch
        ]

    async def _process_message(
        self,
        stream: str,
        group: str,
        handler: IntegrationEventHandler,
        msg_id: str,
        fields: dict[str, str] | None,
        error_key: str,
    ) -> None:
        """Process a single message with retry tracking.

        On success: ack the message.
        On failure: increment retry counter, log, fire error callback.
        After max retries: dead-letter the message and ack it.
        """
        assert self._redis is not None
        attempt_key = f"{stream}/{group}/{msg_id}"
        # Pending entries trimmed from the stream come back without fields.
        fields = fields or {}

        event = self._deserialize(fields)
        if event is None:
            # Malformed message: can't retry, dead-letter immediately
            self._dead_letters.append(
                DeadLetter(
                    stream=stream,
                    group=group,
                    msg_id=str(msg_id),
                    event_type=fields.get("_type", "unknown"),
                    error="deserialization_failed",
                    attempts=1,
                )
            )
            await self._redis.xack(stream, group, msg_id)
            return

        try:
            await handler(event)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._error_counts[error_key] += 1
            self._handler_attempts[attempt_key] += 1
            attempts = self._handler_attempts[attempt_key]

            logger.exception(
                "Handler error on %s/%s msg=%s (attempt %d/%d)",
                stream,
                group,
                msg_id,
                attempts,
                self._max_retries,
            )

            if self._on_handler_error is not None:
                try:
                    self._on_handler_error(
                        event.event_type, group, event.message_id, exc,
                    )
                except Exception:
                    logger.warning(
                        "on_handler_error callback failed", exc_info=True,
                    )

            if attempts >= self._max_retries:
                logger.error(
                    "Dead-lettering message %s on %s/%s after %d attempts",
                    msg_id,
                    stream,
                    group,
                    attempts,
                )
                self._dead_letters.append(
                    DeadLetter(
                        stream=stream,
                        group=group,
                        msg_id=str(msg_id),
                        event_type=event.event_type,
                        error=str(exc),
                        attempts=attempts,
                    )
                )
                await self._redis.xack(stream, group, msg_id)
                self._handler_attempts.pop(attempt_key, None)
            # else: leave un-ack'd for redelivery
            return

        await self._redis.xack(stream, group, msg_id)
        self._messages_processed += 1
        self._handler_attempts.pop(attempt_key, None)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def get_error_counts(self) -> dict[str, int]:
        """Return per-stream/group error counts."""
        return dict(self._error_counts)

    @property
    def dead_letters(self) -> list[DeadLetter]:
        """Access the dead-letter list (read-only snapshot)."""
        return list(self._dead_letters)

    @property
    def messages_processed(self) -> int:
        """Total messages successfully processed."""
        return self._messages_processed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _ensure_group(self, stream: str, group: str) -> None:
        """Create consumer group, ignoring BUSYGROUP if it already exists."""
        assert self._redis is not None
        try:
            await self._redis.xgroup_create(
                stream, group, id="0", mkstream=True,
            )
        except aioredis.ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

    @staticmethod
    def _deserialize(fields: dict[str, str]) -> IntegrationEvent | None:
        """Deserialize a Redis Stream message back to an integration event."""
        raw = fields.get("_data")
        if not raw:
            logger.warning("Malformed message: %s", fields)
            return None
        try:
            return loads(raw)
        except UnknownEventTypeError:
            logger.warning("Unknown event type: %s", fields.get("_type"))
            return None
        except ValueError:
            # json.JSONDecodeError and pydantic.ValidationError are ValueErrors
            logger.warning("Undecodable message: %s", fields, exc_info=True)
            return None
