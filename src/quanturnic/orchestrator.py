from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Literal, TypeVar

from quanturnic.service.base import ServiceError, TradingService
from quanturnic.store import StateStore
from quanturnic.types import BotState, validate_risk_level, validate_strategy

logger = logging.getLogger("quanturnic.orchestrator")

T = TypeVar("T")

SyncField = Literal["bot_state", "trade_history", "signals"]

DEFAULT_MARKET_DATA = "market data"


class CommandInProgress(RuntimeError):
    def __init__(self, command: str) -> None:
        super().__init__(f"cannot start {command}: another command is still pending")
        self.command = command


class BotStateUnknown(RuntimeError):
    pass


class DependentQueryFailed(ServiceError):
    """The command went through but the follow-up query did not.

    The store field named by ``field`` is now known to be out of date; the
    original failure is chained as ``__cause__``.
    """

    kind = "stale_state"

    def __init__(self, *, command: str, query: str, field: str, error: ServiceError) -> None:
        super().__init__(
            f"{command} succeeded but {query} failed ({error.kind}): {error}; {field} is stale"
        )
        self.command = command
        self.query = query
        self.field = field
        self.error = error


@dataclass
class SyncReport:
    errors: dict[SyncField, ServiceError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class ActionOrchestrator:
    """Sequences user commands against the trading service.

    Commands are mutually exclusive: ``store.pending`` is raised before the
    service is called and cleared once the command and its dependent query (if
    any) have finished. Queries carry no such restriction and may overlap.
    """

    def __init__(self, *, service: TradingService, store: StateStore) -> None:
        self._service = service
        self._store = store

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def strategy_ready(self) -> bool:
        return self._store.bot_state is not None

    async def synchronize(self) -> SyncReport:
        queries: dict[SyncField, Awaitable[object]] = {
            "bot_state": self._service.get_bot_state(),
            "trade_history": self._service.get_trade_history(),
            "signals": self._service.get_signals(),
        }
        results = await asyncio.gather(*queries.values(), return_exceptions=True)

        report = SyncReport()
        for name, result in zip(queries.keys(), results):
            if isinstance(result, ServiceError):
                logger.warning(
                    "sync_field_failed",
                    extra={"field": name, "error_kind": result.kind},
                )
                report.errors[name] = result
                continue
            if isinstance(result, BaseException):
                raise result
            if name == "bot_state":
                self._store.set_bot_state(result)  # type: ignore[arg-type]
            elif name == "trade_history":
                self._store.set_trade_history(result)  # type: ignore[arg-type]
            else:
                self._store.set_signals(result)  # type: ignore[arg-type]

        if report.errors:
            # Surface the first failure; the other fields are already populated.
            self._store.set_error(next(iter(report.errors.values())))
        logger.info("sync_finished", extra={"field": ",".join(report.errors)})
        return report

    async def toggle_bot(self, active: bool | None = None) -> BotState:
        if active is None:
            current = self._store.bot_state
            if current is None:
                raise BotStateUnknown("bot state has not been loaded; pass the desired value")
            active = not current.active
        desired = active

        async def _step() -> BotState:
            state = await self._service.toggle_bot(desired)
            self._store.set_bot_state(state)
            if state.active != desired:
                logger.warning(
                    "toggle_not_honored",
                    extra={"command": "toggle_bot", "active": state.active},
                )
            return state

        return await self._run("toggle_bot", _step)

    async def update_strategy(self, strategy: str, risk_level: float) -> BotState:
        name = validate_strategy(strategy)
        risk = validate_risk_level(risk_level)

        async def _step() -> BotState:
            state = await self._service.update_strategy(name, risk)
            self._store.set_bot_state(state)
            return state

        return await self._run("update_strategy", _step)

    async def analyze_market(self, market_data: str = DEFAULT_MARKET_DATA) -> None:
        async def _step() -> None:
            await self._service.analyze_market(market_data)
            signals = await self._dependent_query(
                command="analyze_market",
                query="get_signals",
                field="signals",
                call=self._service.get_signals,
            )
            self._store.set_signals(signals)

        await self._run("analyze_market", _step)

    async def execute_trades(self) -> None:
        async def _step() -> None:
            await self._service.execute_trades()
            trades = await self._dependent_query(
                command="execute_trades",
                query="get_trade_history",
                field="trade_history",
                call=self._service.get_trade_history,
            )
            self._store.set_trade_history(trades)

        await self._run("execute_trades", _step)

    async def _dependent_query(
        self,
        *,
        command: str,
        query: str,
        field: str,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await call()
        except ServiceError as e:
            raise DependentQueryFailed(command=command, query=query, field=field, error=e) from e

    async def _run(self, command: str, step: Callable[[], Awaitable[T]]) -> T:
        # No await between the check and the set: nothing can interleave here.
        if self._store.pending:
            logger.warning("command_rejected_pending", extra={"command": command})
            raise CommandInProgress(command)
        self._store.set_pending(True)
        logger.info("command_started", extra={"command": command})
        try:
            result = await step()
        except Exception as e:
            logger.error(
                "command_failed",
                extra={"command": command, "error_kind": getattr(e, "kind", type(e).__name__)},
            )
            self._store.set_error(e)
            raise
        finally:
            self._store.set_pending(False)
        self._store.set_error(None)
        logger.info("command_succeeded", extra={"command": command})
        return result
