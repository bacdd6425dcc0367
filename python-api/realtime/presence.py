"""
Presence registry: which accounts currently hold a socket connection.

The in-process registry is lost on restart and only sees its own process.
The Redis registry keeps one set of connection ids per account so presence
is shared by every server instance. Each instance refreshes a short-lived
heartbeat; connections of an instance whose heartbeat lapsed are offline.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from typing import Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Interface shared by the presence backends."""

    async def add(self, user_id: str, conn_id: str) -> None:
        raise NotImplementedError

    async def remove(self, user_id: str, conn_id: str) -> None:
        raise NotImplementedError

    async def is_online(self, user_id: str) -> bool:
        raise NotImplementedError

    async def online_users(self) -> set[str]:
        raise NotImplementedError

    async def start(self) -> None:
        pass

    async def close(self) -> None:
        pass


class InMemoryPresenceRegistry(PresenceRegistry):
    def __init__(self) -> None:
        self._connections: dict[str, set[str]] = defaultdict(set)

    async def add(self, user_id: str, conn_id: str) -> None:
        self._connections[user_id].add(conn_id)

    async def remove(self, user_id: str, conn_id: str) -> None:
        conns = self._connections.get(user_id)
        if conns is None:
            return
        conns.discard(conn_id)
        if not conns:
            del self._connections[user_id]

    async def is_online(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    async def online_users(self) -> set[str]:
        return set(self._connections)


class RedisPresenceRegistry(PresenceRegistry):
    """
    Presence stored in Redis, scoped per server instance.

    Keys:
        presence:online               set of account ids that may be online
        presence:user:<user_id>       set of ``<instance_id>:<conn_id>`` entries
        presence:instance:<instance>  heartbeat, expires after ``ttl`` seconds

    An entry counts only while its instance heartbeat is alive, so connections
    held by a crashed instance stop counting once its heartbeat expires. Dead
    entries are pruned on read.
    """

    ONLINE_KEY = "presence:online"

    def __init__(
        self,
        client: redis.Redis,
        instance_id: Optional[str] = None,
        ttl: int = 30,
    ) -> None:
        self._redis = client
        self.instance_id = instance_id or uuid.uuid4().hex
        self._ttl = ttl
        self._heartbeat_task: Optional[asyncio.Task] = None

    def _user_key(self, user_id: str) -> str:
        return f"presence:user:{user_id}"

    @staticmethod
    def _instance_key(instance_id: str) -> str:
        return f"presence:instance:{instance_id}"

    def _entry(self, conn_id: str) -> str:
        return f"{self.instance_id}:{conn_id}"

    async def heartbeat(self) -> None:
        await self._redis.set(self._instance_key(self.instance_id), 1, ex=self._ttl)

    async def _heartbeat_loop(self) -> None:
        while True:
            try:
                await self.heartbeat()
            except redis.RedisError as e:
                logger.warning(f"Presence heartbeat failed: {e}")
            await asyncio.sleep(self._ttl / 3)

    async def start(self) -> None:
        await self.heartbeat()
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        logger.info(f"Presence heartbeat started for instance {self.instance_id}")

    async def close(self) -> None:
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None
        # entries held by this instance stop counting immediately
        await self._redis.delete(self._instance_key(self.instance_id))

    async def add(self, user_id: str, conn_id: str) -> None:
        await self.heartbeat()
        await self._redis.sadd(self._user_key(user_id), self._entry(conn_id))
        await self._redis.sadd(self.ONLINE_KEY, user_id)

    async def remove(self, user_id: str, conn_id: str) -> None:
        key = self._user_key(user_id)
        await self._redis.srem(key, self._entry(conn_id))
        if await self._redis.scard(key) == 0:
            await self._redis.srem(self.ONLINE_KEY, user_id)

    async def is_online(self, user_id: str) -> bool:
        key = self._user_key(user_id)
        live = False
        for entry in await self._redis.smembers(key):
            if isinstance(entry, bytes):
                entry = entry.decode()
            instance_id = entry.split(":", 1)[0]
            if await self._redis.exists(self._instance_key(instance_id)):
                live = True
            else:
                await self._redis.srem(key, entry)
        if not live:
            await self._redis.srem(self.ONLINE_KEY, user_id)
        return live

    async def online_users(self) -> set[str]:
        online = set()
        for user_id in await self._redis.smembers(self.ONLINE_KEY):
            if isinstance(user_id, bytes):
                user_id = user_id.decode()
            if await self.is_online(user_id):
                online.add(user_id)
        return online


def build_presence_registry(client: Optional[redis.Redis]) -> PresenceRegistry:
    if client is None:
        logger.info("Using in-process presence registry")
        return InMemoryPresenceRegistry()
    logger.info("Using Redis presence registry")
    return RedisPresenceRegistry(client)
