"""
Clamped Increment Unit Tests
"""

import asyncio

import pytest

from hashcache.common.errors import ProtocolError
from hashcache.repositories.redis.hash_repo import RedisHashRepository
from hashcache.services.clamp import (
    INCREMENT_FLOAT_LIMIT_BY_MAX,
    INCREMENT_FLOAT_LIMIT_BY_MIN,
    INCREMENT_LIMIT_BY_MAX,
    INCREMENT_LIMIT_BY_MIN,
    ClampDirection,
    increment_clamped,
    parse_float_reply,
    parse_int_reply,
    select_script,
)

KEY = "counter:1"


@pytest.fixture
def repo(fake_redis):
    return RedisHashRepository(fake_redis, KEY)


class TestSelectScript:
    """Tests for select_script"""

    def test_integer_variants(self):
        assert select_script(1, 10, ClampDirection.MAX) is INCREMENT_LIMIT_BY_MAX
        assert select_script(-1, 0, ClampDirection.MIN) is INCREMENT_LIMIT_BY_MIN

    def test_float_when_either_operand_is_float(self):
        assert select_script(1.5, 10, ClampDirection.MAX) is INCREMENT_FLOAT_LIMIT_BY_MAX
        assert select_script(1, 0.5, ClampDirection.MIN) is INCREMENT_FLOAT_LIMIT_BY_MIN

    def test_accepts_direction_value(self):
        assert select_script(1, 10, "max") is INCREMENT_LIMIT_BY_MAX

    def test_rejects_non_numbers(self):
        with pytest.raises(TypeError):
            select_script(True, 10, ClampDirection.MAX)
        with pytest.raises(TypeError):
            select_script(1, "10", ClampDirection.MAX)

    def test_scripts_use_native_increments(self):
        assert "hincrby'" in INCREMENT_LIMIT_BY_MAX
        assert "hincrbyfloat" in INCREMENT_FLOAT_LIMIT_BY_MIN
        assert INCREMENT_FLOAT_LIMIT_BY_MAX.rstrip().endswith("return tostring(x)")


class TestParseReplies:
    """Tests for script reply parsing"""

    def test_float_reply(self):
        assert parse_float_reply("12.75") == 12.75
        assert parse_float_reply(b"20") == 20.0

    def test_float_reply_wrong_type(self):
        with pytest.raises(ProtocolError):
            parse_float_reply(12)
        with pytest.raises(ProtocolError):
            parse_float_reply("twelve")

    def test_int_reply(self):
        assert parse_int_reply(20) == 20

    def test_int_reply_wrong_type(self):
        with pytest.raises(ProtocolError):
            parse_int_reply("20")
        with pytest.raises(ProtocolError):
            parse_int_reply(True)


class TestIncrementClamped:
    """Tests for increment_clamped against the store double"""

    @pytest.mark.asyncio
    async def test_max_not_reached(self, repo, fake_redis):
        await repo.set("score", b"10")

        assert await increment_clamped(repo, "score", 5, 20, ClampDirection.MAX) == 15
        assert fake_redis.hashes[KEY]["score"] == b"15"

    @pytest.mark.asyncio
    async def test_max_exceeded(self, repo, fake_redis):
        await repo.set("score", b"10")

        assert await increment_clamped(repo, "score", 15, 20, ClampDirection.MAX) == 20
        assert fake_redis.hashes[KEY]["score"] == b"20"

    @pytest.mark.asyncio
    async def test_exactly_at_bound_unchanged(self, repo):
        await repo.set("score", b"10")

        assert await increment_clamped(repo, "score", 10, 20, ClampDirection.MAX) == 20
        assert await increment_clamped(repo, "score", -20, 0, ClampDirection.MIN) == 0

    @pytest.mark.asyncio
    async def test_min_exceeded(self, repo, fake_redis):
        await repo.set("score", b"10")

        assert await increment_clamped(repo, "score", -100, 0, ClampDirection.MIN) == 0
        assert fake_redis.hashes[KEY]["score"] == b"0"

    @pytest.mark.asyncio
    async def test_missing_field_starts_at_zero(self, repo):
        assert await increment_clamped(repo, "score", 3, 2, ClampDirection.MAX) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "prior,delta,bound,direction,expected",
        [
            (0, 7, 5, ClampDirection.MAX, 5),
            (0, 3, 5, ClampDirection.MAX, 3),
            (-4, -10, 5, ClampDirection.MAX, -14),
            (0, -7, -5, ClampDirection.MIN, -5),
            (0, -3, -5, ClampDirection.MIN, -3),
            (100, 1, 50, ClampDirection.MIN, 101),
        ],
    )
    async def test_clamp_formula(self, repo, prior, delta, bound, direction, expected):
        """max variant yields min(prior + delta, bound), min variant max(prior + delta, bound)"""
        await repo.set("score", str(prior).encode())

        assert await increment_clamped(repo, "score", delta, bound, direction) == expected
        assert int(await repo.get("score")) == expected

    @pytest.mark.asyncio
    async def test_float_max(self, repo):
        await repo.set("ratio", b"10.5")

        result = await increment_clamped(repo, "ratio", 2.25, 20.0, ClampDirection.MAX)
        assert result == 12.75
        assert isinstance(result, float)

        assert await increment_clamped(repo, "ratio", 10.0, 20.0, ClampDirection.MAX) == 20.0

    @pytest.mark.asyncio
    async def test_float_min(self, repo):
        await repo.set("ratio", b"1.5")

        assert await increment_clamped(repo, "ratio", -0.5, 0.0, ClampDirection.MIN) == 1.0
        assert await increment_clamped(repo, "ratio", -3.5, 0.0, ClampDirection.MIN) == 0.0

    @pytest.mark.asyncio
    async def test_sends_key_field_delta_bound(self, repo, fake_redis):
        await increment_clamped(repo, "ratio", 0.1, 1.5, ClampDirection.MAX)

        evalsha = [c for c in fake_redis.commands if c[0] == "EVALSHA"][-1]
        assert evalsha[2:] == (KEY, "ratio", "0.1", "1.5")

    @pytest.mark.asyncio
    async def test_single_request_once_loaded(self, repo, fake_redis):
        await increment_clamped(repo, "score", 1, 10, ClampDirection.MAX)
        fake_redis.commands.clear()

        await increment_clamped(repo, "score", 1, 10, ClampDirection.MAX)

        assert fake_redis.command_names == ["EVALSHA"]

    @pytest.mark.asyncio
    async def test_wrong_reply_type(self, repo, fake_redis, monkeypatch):
        async def fake_eval(script, keys, args):
            return b"not an int"

        monkeypatch.setattr(repo, "eval_script", fake_eval)

        with pytest.raises(ProtocolError):
            await increment_clamped(repo, "score", 1, 10, ClampDirection.MAX)


class TestConcurrentClamp:
    """Concurrent clamped increments against one field"""

    @pytest.mark.asyncio
    async def test_final_value_is_clamped_sum(self, repo):
        """N concurrent increments end at clamp(V + S, bound)"""
        await repo.set("score", b"10")
        deltas = [3, 4, 5, 6, 7, 8]

        results = await asyncio.gather(
            *(increment_clamped(repo, "score", d, 30, ClampDirection.MAX) for d in deltas)
        )

        assert int(await repo.get("score")) == min(10 + sum(deltas), 30)
        assert max(results) == 30
        assert all(r <= 30 for r in results)

    @pytest.mark.asyncio
    async def test_reader_never_sees_unclamped_value(self, repo, fake_redis):
        """A reader polling mid-flight only ever observes values within the bound"""
        await repo.set("score", b"0")
        observed = []
        done = asyncio.Event()

        async def reader():
            while not done.is_set():
                raw = await repo.get("score")
                observed.append(int(raw))

        async def writers():
            await asyncio.gather(
                *(increment_clamped(repo, "score", 7, 20, ClampDirection.MAX) for _ in range(10))
            )
            done.set()

        await asyncio.gather(reader(), writers())

        assert observed
        assert all(0 <= value <= 20 for value in observed)
        assert int(await repo.get("score")) == 20

    @pytest.mark.asyncio
    async def test_concurrent_min_clamp(self, repo):
        await repo.set("stock", b"5")

        await asyncio.gather(
            *(increment_clamped(repo, "stock", -2, 0, ClampDirection.MIN) for _ in range(8))
        )

        assert int(await repo.get("stock")) == 0
