"""Fake mínimo de redis.asyncio para testes do store sem servidor."""

from __future__ import annotations

from typing import Any


class FakePipeline:
    """Acumula comandos e aplica todos no execute()."""

    def __init__(self, redis: FakeAsyncRedis) -> None:
        self._redis = redis
        self._commands: list[tuple[str, tuple[Any, ...]]] = []

    def set(self, key: str, value: str) -> FakePipeline:
        self._commands.append(("set", (key, value)))
        return self

    def sadd(self, key: str, member: str) -> FakePipeline:
        self._commands.append(("sadd", (key, member)))
        return self

    def srem(self, key: str, member: str) -> FakePipeline:
        self._commands.append(("srem", (key, member)))
        return self

    def hdel(self, key: str, field: str) -> FakePipeline:
        self._commands.append(("hdel", (key, field)))
        return self

    def delete(self, key: str) -> FakePipeline:
        self._commands.append(("delete", (key,)))
        return self

    async def execute(self) -> list[Any]:
        results = []
        for name, args in self._commands:
            results.append(await getattr(self._redis, name)(*args))
        self._commands.clear()
        return results


class FakeAsyncRedis:
    """Strings, sets e hashes em dicts; valores devolvidos como bytes."""

    def __init__(self) -> None:
        self.strings: dict[str, bytes] = {}
        self.sets: dict[str, set[bytes]] = {}
        self.hashes: dict[str, dict[bytes, bytes]] = {}

    @staticmethod
    def _b(value: str | bytes) -> bytes:
        return value if isinstance(value, bytes) else str(value).encode("utf-8")

    async def get(self, key: str) -> bytes | None:
        return self.strings.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.strings[key] = self._b(value)
        return True

    async def mget(self, keys: list[str]) -> list[bytes | None]:
        return [self.strings.get(k) for k in keys]

    async def delete(self, key: str) -> int:
        return 1 if self.strings.pop(key, None) is not None else 0

    async def smembers(self, key: str) -> set[bytes]:
        return set(self.sets.get(key, set()))

    async def sadd(self, key: str, member: str) -> int:
        members = self.sets.setdefault(key, set())
        before = len(members)
        members.add(self._b(member))
        return len(members) - before

    async def srem(self, key: str, member: str) -> int:
        members = self.sets.get(key, set())
        if self._b(member) in members:
            members.discard(self._b(member))
            return 1
        return 0

    async def hget(self, key: str, field: str) -> bytes | None:
        return self.hashes.get(key, {}).get(self._b(field))

    async def hsetnx(self, key: str, field: str, value: str) -> bool:
        table = self.hashes.setdefault(key, {})
        if self._b(field) in table:
            return False
        table[self._b(field)] = self._b(value)
        return True

    async def hdel(self, key: str, field: str) -> int:
        return 1 if self.hashes.get(key, {}).pop(self._b(field), None) is not None else 0

    async def ping(self) -> bool:
        return True

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)
