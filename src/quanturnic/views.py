from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from quanturnic.store import StateStore
from quanturnic.types import Signal, StrategyName, Trade, ns_to_datetime

RECENT_ITEMS = 5


def _q(value: Decimal, pattern: str) -> str:
    return str(value.quantize(Decimal(pattern), rounding=ROUND_HALF_UP))


def _fmt_usd(value: Decimal) -> str:
    return f"${_q(value, '0.01')}"


def _fmt_confidence(value: float) -> str:
    return f"{round(value * 100):.0f}%"


@dataclass(frozen=True)
class SignalRow:
    pair: str
    action: str
    price: str
    confidence: str

    @classmethod
    def from_signal(cls, signal: Signal) -> SignalRow:
        return cls(
            pair=signal.pair,
            action=signal.action,
            price=_fmt_usd(signal.price),
            confidence=_fmt_confidence(signal.confidence),
        )


@dataclass(frozen=True)
class TradeRow:
    pair: str
    action: str
    price: str
    time: str

    @classmethod
    def from_trade(cls, trade: Trade) -> TradeRow:
        return cls(
            pair=trade.signal.pair,
            action=trade.signal.action,
            price=_fmt_usd(trade.signal.price),
            time=ns_to_datetime(trade.timestamp).strftime("%H:%M:%S"),
        )


@dataclass(frozen=True)
class DashboardView:
    loaded: bool
    status: str
    toggle_label: str
    balance: str
    last_analysis: str
    strategy: str
    risk_level: str
    signals: tuple[SignalRow, ...]
    trades: tuple[TradeRow, ...]
    busy: bool
    can_execute_trades: bool
    error: str | None

    @classmethod
    def from_store(cls, store: StateStore) -> DashboardView:
        state = store.bot_state
        active = bool(state and state.active)
        if state is None:
            balance = strategy = risk = last_analysis = "-"
        else:
            balance = _fmt_usd(state.balance)
            strategy = state.strategy
            risk = f"{state.risk_level:.2f}"
            last_analysis = (
                ns_to_datetime(state.last_analysis).strftime("%Y-%m-%d %H:%M:%S")
                if state.last_analysis is not None
                else "Never"
            )
        error = store.last_error
        return cls(
            loaded=state is not None,
            status="ACTIVE" if active else "INACTIVE",
            toggle_label="Stop Bot" if active else "Start Bot",
            balance=balance,
            last_analysis=last_analysis,
            strategy=strategy,
            risk_level=risk,
            signals=tuple(SignalRow.from_signal(s) for s in (store.signals or ())[:RECENT_ITEMS]),
            trades=tuple(TradeRow.from_trade(t) for t in (store.trade_history or ())[:RECENT_ITEMS]),
            busy=store.pending,
            can_execute_trades=not store.pending and active,
            error=None if error is None else f"{type(error).__name__}: {error}",
        )


@dataclass(frozen=True)
class StrategyForm:
    """Draft strategy settings, seeded from the last known bot state."""

    strategy: StrategyName
    risk_level: float

    @classmethod
    def from_store(cls, store: StateStore) -> StrategyForm | None:
        state = store.bot_state
        if state is None:
            return None
        return cls(strategy=state.strategy, risk_level=state.risk_level)


def render_dashboard(view: DashboardView) -> str:
    lines = [
        f"Bot status: {view.status}" + (" (busy)" if view.busy else ""),
        f"Balance: {view.balance}",
        f"Last analysis: {view.last_analysis}",
        f"Strategy: {view.strategy} (risk {view.risk_level})",
        "",
        "Recent signals:",
    ]
    if not view.signals:
        lines.append("  (none)")
    for s in view.signals:
        lines.append(f"  {s.pair:<10} {s.action:<4} {s.price:>12}  confidence {s.confidence}")
    lines += ["", "Recent trades:"]
    if not view.trades:
        lines.append("  (none)")
    for t in view.trades:
        lines.append(f"  {t.pair:<10} {t.action:<4} {t.price:>12}  at {t.time}")
    if view.error:
        lines += ["", f"Error: {view.error}"]
    return "\n".join(lines)
