"""
Hash Record Repository Redis Implementation

Provides concrete Redis operation implementation for one hash record.
Transport failures become ConnectivityError, rejected commands and unexpected
replies become ProtocolError. Nothing is retried here.
"""

import hashlib
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar, Union

from redis import exceptions as redis_exceptions
from redis.asyncio import Redis

from hashcache.common.errors import ConnectivityError, ProtocolError
from hashcache.common.tracing import NullTracer, RequestTracer, trace_call
from hashcache.repositories.hash_repo import HashRepository

T = TypeVar("T")


def script_sha(script: str) -> str:
    """SHA1 digest the store uses to identify a loaded script"""
    return hashlib.sha1(script.encode("utf-8")).hexdigest()


def _field_name(raw: Union[bytes, str]) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


class RedisHashRepository(HashRepository):
    """
    Hash Record Repository Redis Implementation

    Bound to a single record key. Safe to share between coroutines: it keeps
    no per-call state, and concurrent writers are serialized by Redis itself.
    """

    def __init__(
        self,
        client: Redis,
        key: str,
        *,
        tracer: Optional[RequestTracer] = None,
        call_type: str = "RedisHash",
    ):
        """
        Initialize Repository

        Args:
            client: Async Redis client instance (decode_responses=False)
            key: Hash record key
            tracer: Request tracer, defaults to no tracing
            call_type: Name reported to the tracer for commands issued here
        """
        self.client = client
        self.key = key
        self.tracer = tracer or NullTracer()
        self.call_type = call_type

    async def _execute(
        self,
        command: str,
        sent: dict[str, Any],
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        async def run() -> T:
            try:
                return await operation()
            except (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError) as exc:
                raise ConnectivityError(
                    f"{command} {self.key} failed: {exc}",
                    details={"key": self.key, "command": command},
                ) from exc
            except (
                redis_exceptions.ResponseError,
                redis_exceptions.DataError,
                redis_exceptions.InvalidResponse,
            ) as exc:
                raise ProtocolError(
                    f"{command} {self.key} rejected: {exc}",
                    details={"key": self.key, "command": command},
                ) from exc

        return await trace_call(self.tracer, self.call_type, self.key, command, sent, run)

    def _protocol_error(self, command: str, reply: Any) -> ProtocolError:
        return ProtocolError(
            f"{command} {self.key} returned unexpected reply: {reply!r}",
            details={"key": self.key, "command": command},
        )

    async def exists(self, field: str) -> bool:
        async def op():
            return bool(await self.client.hexists(self.key, field))

        return await self._execute("HEXISTS", {"field": field}, op)

    async def get(self, field: str) -> Optional[bytes]:
        return await self._execute("HGET", {"field": field}, lambda: self.client.hget(self.key, field))

    async def get_many(self, fields: Sequence[str]) -> list[Optional[bytes]]:
        fields = list(fields)
        if not fields:
            return []

        async def op():
            reply = await self.client.hmget(self.key, fields)
            if reply is None or len(reply) != len(fields):
                raise self._protocol_error("HMGET", reply)
            return list(reply)

        return await self._execute("HMGET", {"fields": fields}, op)

    async def get_all(self) -> dict[str, bytes]:
        async def op():
            reply = await self.client.hgetall(self.key)
            if not isinstance(reply, dict):
                raise self._protocol_error("HGETALL", reply)
            return {_field_name(name): value for name, value in reply.items()}

        return await self._execute("HGETALL", {}, op)

    async def keys(self) -> set[str]:
        async def op():
            return {_field_name(name) for name in await self.client.hkeys(self.key)}

        return await self._execute("HKEYS", {}, op)

    async def length(self) -> int:
        async def op():
            reply = await self.client.hlen(self.key)
            if not isinstance(reply, int):
                raise self._protocol_error("HLEN", reply)
            return reply

        return await self._execute("HLEN", {}, op)

    async def values(self) -> list[bytes]:
        async def op():
            return list(await self.client.hvals(self.key))

        return await self._execute("HVALS", {}, op)

    async def set(self, field: str, data: bytes) -> bool:
        async def op():
            return bool(await self.client.hset(self.key, field, data))

        return await self._execute("HSET", {"field": field}, op)

    async def set_many(self, mapping: dict[str, bytes]) -> None:
        if not mapping:
            return None

        async def op():
            await self.client.hset(self.key, mapping=mapping)

        await self._execute("HSET", {"fields": list(mapping)}, op)

    async def set_if_absent(self, field: str, data: bytes) -> bool:
        async def op():
            return bool(await self.client.hsetnx(self.key, field, data))

        return await self._execute("HSETNX", {"field": field}, op)

    async def increment(self, field: str, delta: Union[int, float] = 1) -> Union[int, float]:
        if isinstance(delta, bool) or not isinstance(delta, (int, float)):
            raise TypeError(f"Increment delta must be int or float, got {type(delta).__name__}")

        if isinstance(delta, int):
            async def op():
                reply = await self.client.hincrby(self.key, field, delta)
                try:
                    return int(reply)
                except (TypeError, ValueError):
                    raise self._protocol_error("HINCRBY", reply)

            return await self._execute("HINCRBY", {"field": field, "value": delta}, op)

        async def op_float():
            reply = await self.client.hincrbyfloat(self.key, field, delta)
            try:
                return float(reply)
            except (TypeError, ValueError):
                raise self._protocol_error("HINCRBYFLOAT", reply)

        return await self._execute("HINCRBYFLOAT", {"field": field, "value": delta}, op_float)

    async def remove(self, field: str) -> bool:
        async def op():
            return bool(await self.client.hdel(self.key, field))

        return await self._execute("HDEL", {"field": field}, op)

    async def remove_many(self, fields: Sequence[str]) -> int:
        fields = list(fields)
        if not fields:
            return 0

        async def op():
            return int(await self.client.hdel(self.key, *fields))

        return await self._execute("HDEL", {"fields": fields}, op)

    async def expire(self, seconds: int) -> bool:
        async def op():
            return bool(await self.client.expire(self.key, seconds))

        return await self._execute("EXPIRE", {"seconds": seconds}, op)

    async def key_exists(self) -> bool:
        async def op():
            return bool(await self.client.exists(self.key))

        return await self._execute("EXISTS", {}, op)

    async def delete_record(self) -> bool:
        async def op():
            return bool(await self.client.delete(self.key))

        return await self._execute("DEL", {}, op)

    async def eval_script(self, script: str, keys: Sequence[str], args: Sequence[Any]) -> Any:
        sha = script_sha(script)
        keys = list(keys)
        args = list(args)

        async def op():
            try:
                return await self.client.evalsha(sha, len(keys), *keys, *args)
            except redis_exceptions.NoScriptError:
                # Script cache was flushed or this server never saw the script
                await self.client.script_load(script)
                return await self.client.evalsha(sha, len(keys), *keys, *args)

        return await self._execute("EVALSHA", {"sha": sha, "keys": keys, "args": args}, op)
