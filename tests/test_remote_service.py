import asyncio
import json
from decimal import Decimal

import httpx
import pytest

from quanturnic.service.base import Malformed, Rejected, ServiceUnavailable
from quanturnic.service.remote import RemoteTradingService

_STATE = {
    "active": False,
    "balance": 1000.0,
    "strategy": "momentum",
    "risk_level": 0.5,
    "last_analysis": None,
}


def _service(handler) -> RemoteTradingService:
    return RemoteTradingService(
        base_url="http://trading.test",
        transport=httpx.MockTransport(handler),
    )


def _call(service: RemoteTradingService, coro):
    try:
        return asyncio.run(coro)
    finally:
        asyncio.run(service.aclose())


def test_get_bot_state_parses_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/api/bot/state"
        return httpx.Response(200, json={**_STATE, "last_analysis": 1_700_000_000_000_000_000})

    service = _service(handler)
    state = _call(service, service.get_bot_state())

    assert state.active is False
    assert state.balance == Decimal("1000.0")
    assert state.strategy == "momentum"
    assert state.risk_level == 0.5
    assert state.last_analysis == 1_700_000_000_000_000_000


def test_toggle_bot_sends_desired_flag_and_returns_service_state() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        # The service may refuse activation; its answer wins.
        return httpx.Response(200, json=_STATE)

    service = _service(handler)
    state = _call(service, service.toggle_bot(True))

    assert captured == {"path": "/api/bot/toggle", "body": {"active": True}}
    assert state.active is False


def test_update_strategy_posts_strategy_and_risk() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={**_STATE, "strategy": "arbitrage", "risk_level": 0.25})

    service = _service(handler)
    state = _call(service, service.update_strategy("arbitrage", 0.25))

    assert captured["body"] == {"strategy": "arbitrage", "risk_level": 0.25}
    assert state.strategy == "arbitrage"
    assert state.risk_level == 0.25


def test_trigger_operations_ignore_response_body() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(200, text="ok")

    service = _service(handler)

    async def _run() -> None:
        await service.analyze_market("market data")
        await service.execute_trades()

    _call(service, _run())

    assert seen == [("POST", "/api/analyze"), ("POST", "/api/trades/execute")]


def test_get_trade_history_parses_nested_signal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {
                    "id": 7,
                    "signal": {
                        "pair": "ICP/USD",
                        "action": "BUY",
                        "price": "12.34",
                        "confidence": 0.75,
                        "timestamp": 5,
                    },
                    "executed": True,
                    "profit_loss": None,
                    "timestamp": 9,
                }
            ],
        )

    service = _service(handler)
    trades = _call(service, service.get_trade_history())

    assert len(trades) == 1
    assert trades[0].id == 7
    assert trades[0].timestamp == 9
    assert trades[0].signal.pair == "ICP/USD"
    assert trades[0].signal.price == Decimal("12.34")
    assert trades[0].profit_loss is None


def test_transport_error_maps_to_service_unavailable_without_retry() -> None:
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        raise httpx.ConnectError("connection refused", request=request)

    service = _service(handler)
    with pytest.raises(ServiceUnavailable):
        _call(service, service.get_bot_state())

    assert calls["n"] == 1


def test_timeout_maps_to_service_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timeout", request=request)

    service = _service(handler)
    with pytest.raises(ServiceUnavailable):
        _call(service, service.get_signals())


def test_gateway_errors_map_to_service_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream down")

    service = _service(handler)
    with pytest.raises(ServiceUnavailable):
        _call(service, service.get_signals())


def test_client_error_maps_to_rejected_with_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"error": "Bot is not active"})

    service = _service(handler)
    with pytest.raises(Rejected) as exc_info:
        _call(service, service.execute_trades())

    assert exc_info.value.status_code == 409
    assert exc_info.value.payload == {"error": "Bot is not active"}


@pytest.mark.parametrize(
    "body",
    [
        {"active": "yes", "balance": 1, "strategy": "momentum", "risk_level": 0.5},
        {"active": True, "balance": 1, "strategy": "scalping", "risk_level": 0.5},
        {"active": True, "balance": 1, "strategy": "momentum", "risk_level": 2},
        {"active": True, "strategy": "momentum", "risk_level": 0.5},
        [],
    ],
)
def test_unexpected_shape_maps_to_malformed(body: object) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    service = _service(handler)
    with pytest.raises(Malformed):
        _call(service, service.get_bot_state())


def test_non_json_body_maps_to_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    service = _service(handler)
    with pytest.raises(Malformed):
        _call(service, service.get_signals())


def test_signal_with_unknown_action_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[{"pair": "ICP/USD", "action": "HOLD", "price": 1, "confidence": 0.5}],
        )

    service = _service(handler)
    with pytest.raises(Malformed):
        _call(service, service.get_signals())


@pytest.mark.parametrize(
    "body",
    [
        '{"active": false, "balance": 1, "strategy": "momentum", "risk_level": NaN}',
        '{"active": false, "balance": 1, "strategy": "momentum", "risk_level": Infinity}',
        '{"active": false, "balance": "Infinity", "strategy": "momentum", "risk_level": 0.5}',
        '{"active": false, "balance": "NaN", "strategy": "momentum", "risk_level": 0.5}',
        '{"active": false, "balance": NaN, "strategy": "momentum", "risk_level": 0.5}',
    ],
)
def test_non_finite_bot_state_numbers_map_to_malformed(body: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    service = _service(handler)
    with pytest.raises(Malformed):
        _call(service, service.get_bot_state())


@pytest.mark.parametrize(
    "body",
    [
        '[{"pair": "ICP/USD", "action": "BUY", "price": 1, "confidence": NaN}]',
        '[{"pair": "ICP/USD", "action": "BUY", "price": "-Infinity", "confidence": 0.5}]',
    ],
)
def test_non_finite_signal_numbers_map_to_malformed(body: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    service = _service(handler)
    with pytest.raises(Malformed):
        _call(service, service.get_signals())
