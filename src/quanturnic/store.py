from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Literal

from quanturnic.types import BotState, Signal, Trade

logger = logging.getLogger("quanturnic.store")

Field = Literal["bot_state", "trade_history", "signals", "pending", "last_error"]
Listener = Callable[[Field], None]


class StateStore:
    """Latest known client-side view of the bot.

    One instance per client session. Every field is replaced wholesale by its
    single mutator; ``None`` means the field has not been populated yet.
    Listeners are called synchronously with the name of the replaced field.
    """

    def __init__(self) -> None:
        self._bot_state: BotState | None = None
        self._trade_history: tuple[Trade, ...] | None = None
        self._signals: tuple[Signal, ...] | None = None
        self._pending = False
        self._last_error: Exception | None = None
        self._listeners: list[Listener] = []
        self._closed = False

    @property
    def bot_state(self) -> BotState | None:
        return self._bot_state

    @property
    def trade_history(self) -> tuple[Trade, ...] | None:
        return self._trade_history

    @property
    def signals(self) -> tuple[Signal, ...] | None:
        return self._signals

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def closed(self) -> bool:
        return self._closed

    def set_bot_state(self, state: BotState) -> None:
        self._ensure_open()
        self._bot_state = state
        self._notify("bot_state")

    def set_trade_history(self, trades: Iterable[Trade]) -> None:
        self._ensure_open()
        self._trade_history = tuple(trades)
        self._notify("trade_history")

    def set_signals(self, signals: Iterable[Signal]) -> None:
        self._ensure_open()
        self._signals = tuple(signals)
        self._notify("signals")

    def set_pending(self, pending: bool) -> None:
        self._ensure_open()
        self._pending = pending
        self._notify("pending")

    def set_error(self, error: Exception | None) -> None:
        self._ensure_open()
        self._last_error = error
        self._notify("last_error")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def close(self) -> None:
        self._listeners.clear()
        self._bot_state = None
        self._trade_history = None
        self._signals = None
        self._pending = False
        self._last_error = None
        self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("state store is closed")

    def _notify(self, field: Field) -> None:
        for listener in list(self._listeners):
            try:
                listener(field)
            except Exception:
                logger.exception("store_listener_failed", extra={"field": field})
