"""
Clamped Increment Module

Implements "increment, then clamp to a bound" as one Lua script, so the
increment and the clamp run as a single indivisible operation on the server.
No reader ever sees the unclamped value, and concurrent increments are applied
one after another against the already clamped value.

Script contract:
- KEYS: [record key, field]
- ARGV: [delta, bound]
- Integer variants reply with an integer.
- Float variants reply with the value as a decimal string.
A value exactly at the bound is returned unchanged.
"""

from enum import Enum
from typing import Union

from hashcache.common.errors import ProtocolError
from hashcache.repositories.hash_repo import HashRepository

INCREMENT_LIMIT_BY_MAX = """
local inc = tonumber(ARGV[1])
local max = tonumber(ARGV[2])
local x = redis.call('hincrby', KEYS[1], KEYS[2], inc)
if(x > max) then
    redis.call('hset', KEYS[1], KEYS[2], max)
    x = max
end
return x"""

INCREMENT_LIMIT_BY_MIN = """
local inc = tonumber(ARGV[1])
local min = tonumber(ARGV[2])
local x = redis.call('hincrby', KEYS[1], KEYS[2], inc)
if(x < min) then
    redis.call('hset', KEYS[1], KEYS[2], min)
    x = min
end
return x"""

INCREMENT_FLOAT_LIMIT_BY_MAX = """
local inc = tonumber(ARGV[1])
local max = tonumber(ARGV[2])
local x = tonumber(redis.call('hincrbyfloat', KEYS[1], KEYS[2], inc))
if(x > max) then
    redis.call('hset', KEYS[1], KEYS[2], max)
    x = max
end
return tostring(x)"""

INCREMENT_FLOAT_LIMIT_BY_MIN = """
local inc = tonumber(ARGV[1])
local min = tonumber(ARGV[2])
local x = tonumber(redis.call('hincrbyfloat', KEYS[1], KEYS[2], inc))
if(x < min) then
    redis.call('hset', KEYS[1], KEYS[2], min)
    x = min
end
return tostring(x)"""


class ClampDirection(str, Enum):
    """Which side of the bound the field must stay on"""

    MAX = "max"
    MIN = "min"


_SCRIPTS = {
    (False, ClampDirection.MAX): INCREMENT_LIMIT_BY_MAX,
    (False, ClampDirection.MIN): INCREMENT_LIMIT_BY_MIN,
    (True, ClampDirection.MAX): INCREMENT_FLOAT_LIMIT_BY_MAX,
    (True, ClampDirection.MIN): INCREMENT_FLOAT_LIMIT_BY_MIN,
}


def _check_number(name: str, value: Union[int, float]) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be int or float, got {type(value).__name__}")


def select_script(delta: Union[int, float], bound: Union[int, float], direction: ClampDirection) -> str:
    """
    Pick the clamp script for the given operand types

    The float variant is used as soon as either operand is a float.

    Args:
        delta: Increment
        bound: Clamp bound
        direction: MAX keeps the field at or below the bound, MIN at or above it

    Returns:
        str: Lua script source
    """
    _check_number("delta", delta)
    _check_number("bound", bound)
    is_float = isinstance(delta, float) or isinstance(bound, float)
    return _SCRIPTS[(is_float, ClampDirection(direction))]


def _format_arg(value: Union[int, float]) -> str:
    # repr() gives the shortest decimal string that round-trips the float
    if isinstance(value, float):
        return repr(value)
    return str(value)


def parse_float_reply(reply: object) -> float:
    """
    Parse the decimal string replied by a float clamp script

    Raises:
        ProtocolError: If the reply is not a decimal string
    """
    if isinstance(reply, bytes):
        reply = reply.decode("utf-8", errors="replace")
    if not isinstance(reply, str):
        raise ProtocolError(
            f"Float clamp script returned {type(reply).__name__}, expected a decimal string",
            details={"reply": repr(reply)},
        )
    try:
        return float(reply)
    except ValueError as exc:
        raise ProtocolError(
            f"Float clamp script returned a non-numeric string: {reply!r}",
            details={"reply": reply},
        ) from exc


def parse_int_reply(reply: object) -> int:
    """
    Check the integer replied by an integer clamp script

    Raises:
        ProtocolError: If the reply is not an integer
    """
    if isinstance(reply, bool) or not isinstance(reply, int):
        raise ProtocolError(
            f"Integer clamp script returned {type(reply).__name__}, expected an integer",
            details={"reply": repr(reply)},
        )
    return reply


async def increment_clamped(
    repo: HashRepository,
    field: str,
    delta: Union[int, float],
    bound: Union[int, float],
    direction: ClampDirection,
) -> Union[int, float]:
    """
    Atomically increment a field and clamp it to a bound

    After the call the field holds ``min(prior + delta, bound)`` for MAX
    and ``max(prior + delta, bound)`` for MIN.

    Args:
        repo: Repository of the hash record
        field: Field to increment (created at 0 when missing)
        delta: Increment, may be negative
        bound: Clamp bound
        direction: ClampDirection.MAX or ClampDirection.MIN

    Returns:
        The resulting field value: int for integer operands, float otherwise
    """
    script = select_script(delta, bound, direction)
    reply = await repo.eval_script(
        script,
        [repo.key, field],
        [_format_arg(delta), _format_arg(bound)],
    )
    if script in (INCREMENT_FLOAT_LIMIT_BY_MAX, INCREMENT_FLOAT_LIMIT_BY_MIN):
        return parse_float_reply(reply)
    return parse_int_reply(reply)
