from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from quanturnic.types import BotState, Signal, StrategyName, Trade


class ServiceError(RuntimeError):
    kind = "service_error"


class ServiceUnavailable(ServiceError):
    kind = "service_unavailable"


class Rejected(ServiceError):
    kind = "rejected"

    def __init__(self, message: str, *, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class Malformed(ServiceError):
    kind = "malformed"


class TradingService(Protocol):
    """Command/query boundary of the remote trading service.

    Every call may suspend and may fail with a ``ServiceError``. Nothing is
    retried here; retry policy belongs to the caller.
    """

    async def get_bot_state(self) -> BotState: ...

    async def get_trade_history(self) -> Sequence[Trade]: ...

    async def get_signals(self) -> Sequence[Signal]: ...

    async def toggle_bot(self, active: bool) -> BotState: ...

    async def update_strategy(self, strategy: StrategyName, risk_level: float) -> BotState: ...

    async def analyze_market(self, market_data: str) -> None: ...

    async def execute_trades(self) -> None: ...

    async def aclose(self) -> None: ...
