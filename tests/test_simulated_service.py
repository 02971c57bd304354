import asyncio
from decimal import Decimal

import pytest

from quanturnic.service.base import Rejected, ServiceUnavailable
from quanturnic.service.simulated import SimulatedTradingService


def _clock(start: int = 1_000):
    ticks = {"now": start}

    def _now() -> int:
        ticks["now"] += 1
        return ticks["now"]

    return _now


def test_execute_trades_is_refused_while_inactive() -> None:
    service = SimulatedTradingService()

    with pytest.raises(Rejected, match="Bot is not active"):
        asyncio.run(service.execute_trades())


def test_analyze_market_appends_signals_and_stamps_last_analysis() -> None:
    service = SimulatedTradingService(clock_ns=_clock())

    async def _run():
        await service.analyze_market("market data")
        return await service.get_signals(), await service.get_bot_state()

    signals, state = asyncio.run(_run())

    assert [s.pair for s in signals] == ["BTC/USD", "ICP/USD"]
    assert signals[0].action == "SELL"
    assert signals[1].price == Decimal("12.34")
    assert state.last_analysis == 1_001


def test_execute_trades_records_high_confidence_signals_most_recent_first() -> None:
    service = SimulatedTradingService(clock_ns=_clock())

    async def _run():
        await service.toggle_bot(True)
        await service.analyze_market("market data")
        await service.execute_trades()
        return await service.get_trade_history()

    trades = asyncio.run(_run())

    assert len(trades) == 2
    assert {t.signal.pair for t in trades} == {"ICP/USD", "BTC/USD"}
    assert trades[0].id == trades[0].timestamp + 1
    assert all(t.signal.confidence > 0.6 for t in trades)


def test_get_signals_is_stable_without_new_analysis() -> None:
    service = SimulatedTradingService(clock_ns=_clock())

    async def _run():
        await service.analyze_market("market data")
        return await service.get_signals(), await service.get_signals()

    first, second = asyncio.run(_run())

    assert first == second


def test_update_strategy_rejects_out_of_range_risk() -> None:
    service = SimulatedTradingService()

    with pytest.raises(Rejected):
        asyncio.run(service.update_strategy("momentum", 1.5))
    state = asyncio.run(service.get_bot_state())
    assert state.risk_level == 0.5


def test_fail_next_raises_once() -> None:
    service = SimulatedTradingService()
    service.fail_next("get_bot_state", ServiceUnavailable("down"))

    with pytest.raises(ServiceUnavailable):
        asyncio.run(service.get_bot_state())
    state = asyncio.run(service.get_bot_state())

    assert state.active is False
    assert service.calls == ["get_bot_state", "get_bot_state"]
