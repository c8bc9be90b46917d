import copy
import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

import redis.asyncio as redis
from loguru import logger

from app.core.constants import DOCUMENT_KEY
from app.core.exceptions import DocumentNotFound, DocumentStoreError


def merge_fields(record: dict[str, Any], partial: dict[str, Any]) -> dict[str, Any]:
    """
    Merge ``partial`` into a copy of ``record``.

    Dotted keys ("profileData.listeningHistory") address nested fields and
    create intermediate objects as needed; plain keys replace top-level fields.
    """
    merged = copy.deepcopy(record)
    for path, value in partial.items():
        parts = path.split(".")
        target = merged
        for part in parts[:-1]:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child
        target[parts[-1]] = copy.deepcopy(value)
    return merged


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class BaseDocumentStore(ABC):
    """
    Collection/id addressed document store.
    """

    @abstractmethod
    async def get_record(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return the document, or None if it does not exist."""

    @abstractmethod
    async def set_record(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Replace the whole document."""

    @abstractmethod
    async def update_fields(self, collection: str, doc_id: str, partial: dict[str, Any]) -> None:
        """Merge fields into an existing document. Raises DocumentNotFound if missing."""

    async def close(self) -> None:
        pass


class RedisDocumentStore(BaseDocumentStore):
    """
    Stores each document as a JSON string under ``{prefix}:{collection}:{id}``.

    Unlike a cache, failures here are raised: losing a write would silently
    discard computed profiles and matches.
    """

    def __init__(self, redis_url: str, key_prefix: str = "tunematch", max_connections: int = 20) -> None:
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.max_connections = max_connections
        self._client: redis.Redis | None = None
        if not redis_url:
            logger.warning("REDIS_URL is not set. Document store operations will fail until configured.")

    async def get_client(self) -> redis.Redis:
        if self._client is None:
            if not self.redis_url:
                raise DocumentStoreError("REDIS_URL is not configured")
            logger.info("Creating Redis client for document store")
            self._client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                encoding="utf-8",
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=self.max_connections,
                health_check_interval=30,
                socket_keepalive=True,
            )
        return self._client

    def _format_key(self, collection: str, doc_id: str) -> str:
        return DOCUMENT_KEY.format(prefix=self.key_prefix, collection=collection, id=doc_id)

    @staticmethod
    def _decode(key: str, raw: str | None) -> dict[str, Any] | None:
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DocumentStoreError(f"Corrupt document at '{key}'") from exc
        if not isinstance(data, dict):
            raise DocumentStoreError(f"Corrupt document at '{key}'")
        return data

    async def get_record(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        key = self._format_key(collection, doc_id)
        try:
            client = await self.get_client()
            raw = await client.get(key)
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to get document '{key}' from Redis: {exc}")
            raise DocumentStoreError(f"Failed to read {collection}/{doc_id}") from exc
        return self._decode(key, raw)

    async def set_record(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        key = self._format_key(collection, doc_id)
        try:
            client = await self.get_client()
            await client.set(key, json.dumps(data, default=_json_default))
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to set document '{key}' in Redis: {exc}")
            raise DocumentStoreError(f"Failed to write {collection}/{doc_id}") from exc
        logger.debug(f"Stored document {collection}/{doc_id}")

    async def update_fields(self, collection: str, doc_id: str, partial: dict[str, Any]) -> None:
        key = self._format_key(collection, doc_id)
        try:
            client = await self.get_client()
            # Optimistic read-modify-write; retried if the key changes underneath us
            async with client.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(key)
                        current = self._decode(key, await pipe.get(key))
                        if current is None:
                            raise DocumentNotFound(f"{collection}/{doc_id} does not exist")
                        merged = merge_fields(current, partial)
                        pipe.multi()
                        pipe.set(key, json.dumps(merged, default=_json_default))
                        await pipe.execute()
                        break
                    except redis.WatchError:
                        logger.debug(f"Concurrent write on '{key}', retrying update")
                        continue
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to update document '{key}' in Redis: {exc}")
            raise DocumentStoreError(f"Failed to update {collection}/{doc_id}") from exc
        logger.debug(f"Updated {len(partial)} field(s) on {collection}/{doc_id}")

    async def close(self) -> None:
        """Close and disconnect the Redis client"""
        if self._client is not None:
            try:
                await self._client.close()
                logger.info("Document store Redis client closed")
            except Exception as exc:
                logger.warning(f"Failed to close document store Redis client: {exc}")
            finally:
                self._client = None
