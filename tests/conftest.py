"""
Test Configuration Module

Provides an in-memory stand-in for the async Redis client used by the hash
repository. It records every command, simulates expiry with a manual clock,
and runs the clamp scripts as Python equivalents (each script executes
without yielding, like a Lua script inside Redis).
"""

import asyncio
import hashlib
from typing import Any, Optional

import pytest
from redis.exceptions import NoScriptError, ResponseError

from hashcache.common.tracing import TraceEvent
from hashcache.config import get_settings
from hashcache.services.clamp import (
    INCREMENT_FLOAT_LIMIT_BY_MAX,
    INCREMENT_FLOAT_LIMIT_BY_MIN,
    INCREMENT_LIMIT_BY_MAX,
    INCREMENT_LIMIT_BY_MIN,
)

WRITE_COMMANDS = {"HSET", "HSETNX", "HINCRBY", "HINCRBYFLOAT", "HDEL", "EXPIRE", "DEL", "EVALSHA"}


def _encode(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, float):
        return repr(value).encode()
    return str(value).encode()


def _field(name: Any) -> str:
    return name.decode() if isinstance(name, bytes) else str(name)


def _format_float(value: float) -> bytes:
    return f"{value:.17g}".encode()


class FakeRedis:
    """In-memory async Redis double covering the hash, key and scripting commands"""

    def __init__(self):
        self.hashes: dict[str, dict[str, bytes]] = {}
        self.deadlines: dict[str, float] = {}
        self.now = 0.0
        self.commands: list[tuple] = []
        self.scripts: dict[str, str] = {}
        # Command name -> exception raised instead of running the command
        self.failures: dict[str, Exception] = {}
        self.closed = False

    # Test helpers

    def advance(self, seconds: float) -> None:
        """Move the simulated clock forward"""
        self.now += seconds

    @property
    def command_names(self) -> list[str]:
        return [command[0] for command in self.commands]

    @property
    def writes(self) -> list[tuple]:
        return [command for command in self.commands if command[0] in WRITE_COMMANDS]

    def ttl(self, key: str) -> Optional[float]:
        if key not in self.deadlines:
            return None
        return self.deadlines[key] - self.now

    async def _begin(self, name: str, *args: Any) -> None:
        # Yield so concurrent callers interleave between commands
        await asyncio.sleep(0)
        self.commands.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    def _live(self, key: str) -> Optional[dict[str, bytes]]:
        deadline = self.deadlines.get(key)
        if deadline is not None and deadline <= self.now:
            self.hashes.pop(key, None)
            self.deadlines.pop(key, None)
        return self.hashes.get(key)

    def _hash(self, key: str) -> dict[str, bytes]:
        current = self._live(key)
        if current is None:
            current = self.hashes[key] = {}
        return current

    def _incrby(self, key: str, field: str, delta: int) -> int:
        current = self._hash(key).get(field, b"0")
        try:
            value = int(current)
        except ValueError:
            raise ResponseError("hash value is not an integer")
        value += delta
        self._hash(key)[field] = _encode(value)
        return value

    def _incrbyfloat(self, key: str, field: str, delta: float) -> float:
        current = self._hash(key).get(field, b"0")
        try:
            value = float(current)
        except ValueError:
            raise ResponseError("hash value is not a float")
        value += delta
        self._hash(key)[field] = _format_float(value)
        return float(_format_float(value))

    # Connection

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True

    # Hash commands

    async def hexists(self, key: str, field: str) -> bool:
        await self._begin("HEXISTS", key, field)
        return field in (self._live(key) or {})

    async def hget(self, key: str, field: str) -> Optional[bytes]:
        await self._begin("HGET", key, field)
        return (self._live(key) or {}).get(field)

    async def hmget(self, key: str, fields: list[str]) -> list[Optional[bytes]]:
        await self._begin("HMGET", key, list(fields))
        current = self._live(key) or {}
        return [current.get(field) for field in fields]

    async def hgetall(self, key: str) -> dict[bytes, bytes]:
        await self._begin("HGETALL", key)
        return {field.encode(): value for field, value in (self._live(key) or {}).items()}

    async def hkeys(self, key: str) -> list[bytes]:
        await self._begin("HKEYS", key)
        return [field.encode() for field in (self._live(key) or {})]

    async def hlen(self, key: str) -> int:
        await self._begin("HLEN", key)
        return len(self._live(key) or {})

    async def hvals(self, key: str) -> list[bytes]:
        await self._begin("HVALS", key)
        return list((self._live(key) or {}).values())

    async def hset(self, key: str, field: Any = None, value: Any = None, mapping: Optional[dict] = None) -> int:
        items = dict(mapping or {})
        if field is not None:
            items[field] = value
        await self._begin("HSET", key, {_field(f): _encode(v) for f, v in items.items()})
        current = self._hash(key)
        added = 0
        for name, data in items.items():
            name = _field(name)
            if name not in current:
                added += 1
            current[name] = _encode(data)
        return added

    async def hsetnx(self, key: str, field: str, value: Any) -> bool:
        await self._begin("HSETNX", key, field, _encode(value))
        current = self._hash(key)
        if field in current:
            return False
        current[field] = _encode(value)
        return True

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        await self._begin("HINCRBY", key, field, amount)
        return self._incrby(key, field, amount)

    async def hincrbyfloat(self, key: str, field: str, amount: float = 1.0) -> float:
        await self._begin("HINCRBYFLOAT", key, field, amount)
        return self._incrbyfloat(key, field, amount)

    async def hdel(self, key: str, *fields: str) -> int:
        await self._begin("HDEL", key, *fields)
        current = self._live(key)
        if current is None:
            return 0
        removed = 0
        for field in fields:
            if current.pop(field, None) is not None:
                removed += 1
        if not current:
            self.hashes.pop(key, None)
            self.deadlines.pop(key, None)
        return removed

    # Key commands

    async def expire(self, key: str, seconds: int) -> bool:
        await self._begin("EXPIRE", key, seconds)
        if self._live(key) is None:
            return False
        if seconds <= 0:
            self.hashes.pop(key, None)
            self.deadlines.pop(key, None)
            return True
        self.deadlines[key] = self.now + seconds
        return True

    async def exists(self, *keys: str) -> int:
        await self._begin("EXISTS", *keys)
        return sum(1 for key in keys if self._live(key))

    async def delete(self, *keys: str) -> int:
        await self._begin("DEL", *keys)
        removed = 0
        for key in keys:
            if self._live(key):
                removed += 1
            self.hashes.pop(key, None)
            self.deadlines.pop(key, None)
        return removed

    # Scripting

    async def script_load(self, script: str) -> str:
        await self._begin("SCRIPT LOAD")
        sha = hashlib.sha1(script.encode("utf-8")).hexdigest()
        self.scripts[sha] = script
        return sha

    async def evalsha(self, sha: str, numkeys: int, *keys_and_args: Any) -> Any:
        await self._begin("EVALSHA", sha, *keys_and_args)
        if sha not in self.scripts:
            raise NoScriptError("No matching script. Please use EVAL.")
        keys = list(keys_and_args[:numkeys])
        args = list(keys_and_args[numkeys:])
        return self._run_script(self.scripts[sha], keys, args)

    def _run_script(self, script: str, keys: list, args: list) -> Any:
        key, field = _field(keys[0]), _field(keys[1])
        if script in (INCREMENT_LIMIT_BY_MAX, INCREMENT_LIMIT_BY_MIN):
            delta, bound = int(args[0]), int(args[1])
            x = self._incrby(key, field, delta)
            violated = x > bound if script == INCREMENT_LIMIT_BY_MAX else x < bound
            if violated:
                self._hash(key)[field] = _encode(bound)
                x = bound
            return x
        if script in (INCREMENT_FLOAT_LIMIT_BY_MAX, INCREMENT_FLOAT_LIMIT_BY_MIN):
            delta, bound = float(args[0]), float(args[1])
            x = self._incrbyfloat(key, field, delta)
            violated = x > bound if script == INCREMENT_FLOAT_LIMIT_BY_MAX else x < bound
            if violated:
                self._hash(key)[field] = _format_float(bound)
                x = bound
            # Lua tostring() of a number
            return f"{x:.14g}"
        raise ResponseError("ERR unknown script in FakeRedis")


class RecordingTracer:
    """Tracer keeping every event for assertions"""

    def __init__(self):
        self.events: list[TraceEvent] = []

    def record(self, event: TraceEvent) -> None:
        self.events.append(event)


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Fresh in-memory Redis double"""
    return FakeRedis()


@pytest.fixture
def fake_redis_factory():
    """Factory for additional Redis doubles (connection groups)"""
    return FakeRedis


@pytest.fixture
def tracer() -> RecordingTracer:
    return RecordingTracer()


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Reload settings for every test so monkeypatched env vars apply"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
