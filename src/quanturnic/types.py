from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Literal

StrategyName = Literal["momentum", "mean_reversion", "arbitrage", "ml_based"]
Action = Literal["BUY", "SELL"]

STRATEGIES: tuple[StrategyName, ...] = ("momentum", "mean_reversion", "arbitrage", "ml_based")
ACTIONS: tuple[Action, ...] = ("BUY", "SELL")

# Service timestamps are nanoseconds since the epoch.
NANOS_PER_MILLI = 1_000_000


class InvalidRiskLevel(ValueError):
    pass


class InvalidStrategy(ValueError):
    pass


@dataclass(frozen=True)
class BotState:
    active: bool
    balance: Decimal
    strategy: StrategyName
    risk_level: float
    last_analysis: int | None = None


@dataclass(frozen=True)
class Signal:
    pair: str
    action: Action
    price: Decimal
    confidence: float
    timestamp: int | None = None


@dataclass(frozen=True)
class Trade:
    signal: Signal
    timestamp: int
    id: int | None = None
    executed: bool = True
    profit_loss: Decimal | None = None


def validate_risk_level(value: float) -> float:
    try:
        risk = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidRiskLevel(f"risk_level must be a number, got {value!r}") from e
    if not math.isfinite(risk) or risk < 0.0 or risk > 1.0:
        raise InvalidRiskLevel(f"risk_level must be within [0, 1], got {value!r}")
    return risk


def validate_strategy(value: str) -> StrategyName:
    if value not in STRATEGIES:
        raise InvalidStrategy(f"unknown strategy {value!r}; expected one of {', '.join(STRATEGIES)}")
    return value  # type: ignore[return-value]


def ns_to_datetime(ns: int) -> datetime:
    return datetime.fromtimestamp(ns / NANOS_PER_MILLI / 1000).astimezone()
