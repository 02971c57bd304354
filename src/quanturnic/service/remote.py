from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from quanturnic.service.base import Malformed, Rejected, ServiceUnavailable
from quanturnic.types import (
    ACTIONS,
    STRATEGIES,
    BotState,
    Signal,
    StrategyName,
    Trade,
)

_DEFAULT_TIMEOUT_SECONDS = 10.0
_UNAVAILABLE_STATUS_CODES = (502, 503, 504)


def _decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise Malformed(f"{field}: expected a decimal amount, got {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise Malformed(f"{field}: expected a decimal amount, got {value!r}") from e
    if not amount.is_finite():
        raise Malformed(f"{field}: expected a finite amount, got {value!r}")
    return amount


def _unit_interval(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise Malformed(f"{field}: expected a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number) or number < 0.0 or number > 1.0:
        raise Malformed(f"{field}: expected a value within [0, 1], got {value!r}")
    return number


def _timestamp(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise Malformed(f"{field}: expected an integer timestamp, got {value!r}")
    return value


def _require(payload: Any, key: str) -> Any:
    if not isinstance(payload, dict):
        raise Malformed(f"expected an object, got {type(payload).__name__}")
    if key not in payload:
        raise Malformed(f"missing field {key!r}")
    return payload[key]


def parse_bot_state(payload: Any) -> BotState:
    active = _require(payload, "active")
    if not isinstance(active, bool):
        raise Malformed(f"active: expected a boolean, got {active!r}")
    strategy = _require(payload, "strategy")
    if strategy not in STRATEGIES:
        raise Malformed(f"strategy: unknown value {strategy!r}")
    last_analysis = payload.get("last_analysis")
    return BotState(
        active=active,
        balance=_decimal(_require(payload, "balance"), "balance"),
        strategy=strategy,
        risk_level=_unit_interval(_require(payload, "risk_level"), "risk_level"),
        last_analysis=None if last_analysis is None else _timestamp(last_analysis, "last_analysis"),
    )


def parse_signal(payload: Any) -> Signal:
    pair = _require(payload, "pair")
    if not isinstance(pair, str) or not pair:
        raise Malformed(f"pair: expected a non-empty string, got {pair!r}")
    action = _require(payload, "action")
    if action not in ACTIONS:
        raise Malformed(f"action: unknown value {action!r}")
    timestamp = payload.get("timestamp")
    return Signal(
        pair=pair,
        action=action,
        price=_decimal(_require(payload, "price"), "price"),
        confidence=_unit_interval(_require(payload, "confidence"), "confidence"),
        timestamp=None if timestamp is None else _timestamp(timestamp, "timestamp"),
    )


def parse_trade(payload: Any) -> Trade:
    signal = _require(payload, "signal")
    executed = payload.get("executed", True)
    if not isinstance(executed, bool):
        raise Malformed(f"executed: expected a boolean, got {executed!r}")
    profit_loss = payload.get("profit_loss")
    trade_id = payload.get("id")
    return Trade(
        signal=parse_signal(signal),
        timestamp=_timestamp(_require(payload, "timestamp"), "timestamp"),
        id=None if trade_id is None else _timestamp(trade_id, "id"),
        executed=executed,
        profit_loss=None if profit_loss is None else _decimal(profit_loss, "profit_loss"),
    )


def _parse_list(payload: Any, parse: Any) -> list[Any]:
    if not isinstance(payload, list):
        raise Malformed(f"expected a list, got {type(payload).__name__}")
    return [parse(item) for item in payload]


class RemoteTradingService:
    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float | None = _DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout_seconds),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_bot_state(self) -> BotState:
        data = await self._request("GET", "/api/bot/state")
        return parse_bot_state(data)

    async def get_trade_history(self) -> list[Trade]:
        data = await self._request("GET", "/api/trades")
        return _parse_list(data, parse_trade)

    async def get_signals(self) -> list[Signal]:
        data = await self._request("GET", "/api/signals")
        return _parse_list(data, parse_signal)

    async def toggle_bot(self, active: bool) -> BotState:
        data = await self._request("POST", "/api/bot/toggle", json={"active": active})
        return parse_bot_state(data)

    async def update_strategy(self, strategy: StrategyName, risk_level: float) -> BotState:
        data = await self._request(
            "POST",
            "/api/strategy",
            json={"strategy": strategy, "risk_level": risk_level},
        )
        return parse_bot_state(data)

    async def analyze_market(self, market_data: str) -> None:
        await self._request("POST", "/api/analyze", json={"data": market_data}, expect_body=False)

    async def execute_trades(self) -> None:
        await self._request("POST", "/api/trades/execute", expect_body=False)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        expect_body: bool = True,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except (httpx.TimeoutException, httpx.TransportError) as e:
            raise ServiceUnavailable(f"{method} {path}: {type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            payload: Any
            try:
                payload = response.json()
            except ValueError:
                payload = response.text

            if response.status_code in _UNAVAILABLE_STATUS_CODES:
                raise ServiceUnavailable(
                    f"{method} {path}: status={response.status_code} payload={payload!r}"
                )
            raise Rejected(
                f"{method} {path}: status={response.status_code} payload={payload!r}",
                status_code=response.status_code,
                payload=payload,
            )

        if not expect_body:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise Malformed(f"{method} {path}: response is not JSON") from e
