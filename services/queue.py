"""Redis list queue used to hand jobs to pipeline workers."""

import json
import time
from typing import Any, cast

import redis

from shared.config import config
from shared.logging_utils import setup_logging

logger = setup_logging("job-queue")


class QueueManager:
    def __init__(self, redis_url: str | None = None) -> None:
        self.redis_url = redis_url or config.get("redis_url", "redis://localhost:6379/0")
        self.redis = redis.Redis.from_url(self.redis_url, decode_responses=True)  # type: ignore[misc]
        self._connection_checked = False
        logger.info("QueueManager initialized")

    def _ensure_connection(self) -> None:
        """Lazy connection check with retry logic."""
        if self._connection_checked:
            return

        max_retries = 3
        retry_delay = 1.0

        for attempt in range(max_retries):
            try:
                self.redis.ping()
                self._connection_checked = True
                logger.info("Connected to Redis")
                return
            except redis.RedisError as e:
                if attempt == max_retries - 1:
                    logger.error(f"Failed to connect to Redis after {max_retries} attempts: {e}")
                    raise ConnectionError(f"Redis connection failed: {e}") from e
                logger.warning(f"Redis connection attempt {attempt + 1} failed, retrying in {retry_delay}s: {e}")
                time.sleep(retry_delay)
                retry_delay *= 2

    def enqueue(self, key: str, value: str) -> None:
        try:
            self._ensure_connection()
            self.redis.rpush(key, value)
            logger.debug(f"Enqueued item to queue '{key}'")
        except (redis.RedisError, ConnectionError) as e:
            logger.error(f"Failed to enqueue to queue '{key}': {e}")
            # Force a fresh connection check on the next attempt
            self._connection_checked = False
            raise ConnectionError(f"Redis enqueue operation failed: {e}") from e

    def dequeue(self, key: str) -> str | None:
        result = self.redis.lpop(key)  # type: ignore[misc]
        if result is None:
            return None
        if isinstance(result, bytes):
            return result.decode("utf-8")
        return str(result)  # type: ignore[misc]

    def enqueue_message(self, key: str, message: dict[str, Any]) -> None:
        self.enqueue(key, json.dumps(message))

    def dequeue_message(self, key: str) -> dict[str, Any] | None:
        raw = self.dequeue(key)
        if raw is None:
            return None
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Dropping malformed message from queue '{key}': {raw!r}")
            return None
        return message if isinstance(message, dict) else None

    def get_length(self, key: str) -> int:
        result = self.redis.llen(key)
        return cast(int, result)
