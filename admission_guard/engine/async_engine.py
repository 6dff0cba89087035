"""asyncio facade over ``AdmissionEngine``.

Each call is dispatched to the running loop's default executor, keeping
event-loop callers off the shard locks. The wrapped engine stays the single
source of truth; sync and async callers can share it.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from admission_guard.reputation.models import AdmissionDecision, ReputationSnapshot

from .engine import REASON_MANUAL_BLOCK, AdmissionEngine
from .stats import StatisticsSnapshot

T = TypeVar("T")


class AsyncAdmissionEngine:
    def __init__(self, engine: AdmissionEngine | None = None, *, executor=None):
        self.engine = engine if engine is not None else AdmissionEngine()
        self._executor = executor

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, functools.partial(fn, *args)
        )

    async def check_connection(self, actor: str) -> AdmissionDecision:
        return await self._run(self.engine.check_connection, actor)

    async def register_outcome(self, actor: str, success: bool) -> None:
        await self._run(self.engine.register_outcome, actor, success)

    def check_command_limit(self, actor: str, command: str | None = None) -> bool:
        # Single counter increment; cheap enough to stay synchronous
        return self.engine.check_command_limit(actor, command)

    async def get_reputation(self, actor: str) -> ReputationSnapshot:
        return await self._run(self.engine.get_reputation, actor)

    async def peek_reputation(self, actor: str) -> ReputationSnapshot | None:
        return await self._run(self.engine.peek_reputation, actor)

    async def list_whitelisted(self) -> list[str]:
        return await self._run(self.engine.list_whitelisted)

    async def list_blacklisted(self) -> list[str]:
        return await self._run(self.engine.list_blacklisted)

    async def block(
        self, actor: str, duration_ms: int, reason: str = REASON_MANUAL_BLOCK
    ) -> None:
        await self._run(self.engine.block, actor, duration_ms, reason)

    async def unblock(self, actor: str) -> bool:
        return await self._run(self.engine.unblock, actor)

    async def whitelist(self, actor: str) -> None:
        await self._run(self.engine.whitelist, actor)

    async def blacklist(self, actor: str) -> None:
        await self._run(self.engine.blacklist, actor)

    async def remove_from_whitelist(self, actor: str) -> bool:
        return await self._run(self.engine.remove_from_whitelist, actor)

    async def remove_from_blacklist(self, actor: str) -> bool:
        return await self._run(self.engine.remove_from_blacklist, actor)

    async def set_origin_hint(self, actor: str, origin_hint: bool) -> None:
        await self._run(self.engine.set_origin_hint, actor, origin_hint)

    async def statistics(self) -> StatisticsSnapshot:
        return await self._run(self.engine.statistics)

    async def sweep(self, retention_seconds: float | None = None) -> int:
        return await self._run(self.engine.sweep, retention_seconds)
