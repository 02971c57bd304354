from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import replace
from decimal import Decimal

from quanturnic.service.base import Rejected, ServiceError
from quanturnic.types import (
    STRATEGIES,
    BotState,
    Signal,
    StrategyName,
    Trade,
)

# Only signals above this confidence are turned into trades.
_EXECUTION_CONFIDENCE_THRESHOLD = 0.6


def _mock_signals(timestamp: int) -> list[Signal]:
    return [
        Signal(
            pair="ICP/USD",
            action="BUY",
            price=Decimal("12.34"),
            confidence=0.75,
            timestamp=timestamp,
        ),
        Signal(
            pair="BTC/USD",
            action="SELL",
            price=Decimal("42356.78"),
            confidence=0.62,
            timestamp=timestamp,
        ),
    ]


class SimulatedTradingService:
    """In-process trading service used for dry runs.

    Mirrors the remote service: analysis appends a fixed pair of mock signals,
    execution turns every high-confidence signal into a trade and is refused
    while the bot is inactive. Queries return most-recent-first snapshots.
    """

    def __init__(
        self,
        *,
        balance: Decimal = Decimal("0"),
        strategy: StrategyName = "momentum",
        risk_level: float = 0.5,
        clock_ns: Callable[[], int] = time.time_ns,
    ) -> None:
        self._state = BotState(
            active=False,
            balance=balance,
            strategy=strategy,
            risk_level=risk_level,
            last_analysis=None,
        )
        self._signals: list[Signal] = []
        self._trades: list[Trade] = []
        self._clock_ns = clock_ns
        self._faults: dict[str, ServiceError] = {}
        self.calls: list[str] = []

    def fail_next(self, operation: str, error: ServiceError) -> None:
        self._faults[operation] = error

    async def aclose(self) -> None:
        return

    async def get_bot_state(self) -> BotState:
        await self._enter("get_bot_state")
        return self._state

    async def get_trade_history(self) -> list[Trade]:
        await self._enter("get_trade_history")
        return list(reversed(self._trades))

    async def get_signals(self) -> list[Signal]:
        await self._enter("get_signals")
        return list(reversed(self._signals))

    async def toggle_bot(self, active: bool) -> BotState:
        await self._enter("toggle_bot")
        self._state = replace(self._state, active=active)
        return self._state

    async def update_strategy(self, strategy: StrategyName, risk_level: float) -> BotState:
        await self._enter("update_strategy")
        if strategy not in STRATEGIES:
            raise Rejected(f"unknown strategy {strategy!r}")
        if not 0.0 <= risk_level <= 1.0:
            raise Rejected(f"risk_level out of range: {risk_level!r}")
        self._state = replace(self._state, strategy=strategy, risk_level=risk_level)
        return self._state

    async def analyze_market(self, market_data: str) -> None:
        await self._enter("analyze_market")
        timestamp = self._clock_ns()
        self._signals.extend(_mock_signals(timestamp))
        self._state = replace(self._state, last_analysis=timestamp)

    async def execute_trades(self) -> None:
        await self._enter("execute_trades")
        if not self._state.active:
            raise Rejected("Bot is not active")
        timestamp = self._clock_ns()
        eligible = [s for s in self._signals if s.confidence > _EXECUTION_CONFIDENCE_THRESHOLD]
        for i, signal in enumerate(eligible):
            self._trades.append(Trade(signal=signal, timestamp=timestamp, id=timestamp + i))

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        # Yield like a real round trip so concurrent callers interleave.
        await asyncio.sleep(0)
        error = self._faults.pop(operation, None)
        if error is not None:
            raise error
