from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Optional

import typer

from quanturnic.config.strategy import load_strategy_config
from quanturnic.logging_utils import configure_logging
from quanturnic.orchestrator import (
    DEFAULT_MARKET_DATA,
    ActionOrchestrator,
    BotStateUnknown,
    CommandInProgress,
)
from quanturnic.service import ServiceError
from quanturnic.settings import Settings
from quanturnic.store import StateStore
from quanturnic.types import InvalidRiskLevel, InvalidStrategy
from quanturnic.views import DashboardView, render_dashboard

app = typer.Typer(no_args_is_help=True, add_completion=False)
logger = logging.getLogger("quanturnic")

_CLIENT_ERRORS = (ServiceError, InvalidRiskLevel, InvalidStrategy, CommandInProgress, BotStateUnknown)


def _error_kind(error: Exception) -> str:
    return str(getattr(error, "kind", type(error).__name__))


def _session(
    action: Callable[[ActionOrchestrator], Awaitable[Any]] | None = None,
) -> None:
    """
    Run one client session: synchronise, perform `action`, render the dashboard.
    """
    settings = Settings()
    configure_logging(settings.log_level)

    async def _run() -> int:
        service = settings.build_service()
        store = StateStore()
        orchestrator = ActionOrchestrator(service=service, store=store)
        try:
            report = await orchestrator.synchronize()
            if action is not None:
                if not orchestrator.strategy_ready:
                    typer.echo({"ok": False, "error": "sync_failed", "detail": str(report.errors)})
                    return 1
                try:
                    await action(orchestrator)
                except _CLIENT_ERRORS as e:
                    typer.echo({"ok": False, "error": _error_kind(e), "detail": str(e)})
                    typer.echo(render_dashboard(DashboardView.from_store(store)))
                    return 1
            typer.echo(render_dashboard(DashboardView.from_store(store)))
            return 0 if report.ok or action is not None else 1
        finally:
            store.close()
            await service.aclose()

    code = asyncio.run(_run())
    if code:
        raise typer.Exit(code=code)


@app.command()
def show_config() -> None:
    settings = Settings()
    configure_logging(settings.log_level)
    logger.info("loaded_config")
    typer.echo(settings.model_dump(mode="json"))


@app.command()
def status() -> None:
    """
    Load bot state, trade history and signals and print the dashboard.
    """
    _session()


@app.command()
def start() -> None:
    """
    Ask the service to activate the bot.
    """

    async def _action(orchestrator: ActionOrchestrator) -> None:
        await orchestrator.toggle_bot(True)

    _session(_action)


@app.command()
def stop() -> None:
    """
    Ask the service to deactivate the bot.
    """

    async def _action(orchestrator: ActionOrchestrator) -> None:
        await orchestrator.toggle_bot(False)

    _session(_action)


@app.command()
def strategy(
    name: Optional[str] = typer.Option(None, "--name", help="Strategy name."),
    risk: Optional[float] = typer.Option(None, "--risk", help="Risk level within [0, 1]."),
    config: Optional[Path] = typer.Option(None, "--config", help="Strategy preset file (TOML)."),
) -> None:
    """
    Update the trading strategy and risk level.
    """
    preset_name: Optional[str] = None
    preset_risk: Optional[float] = None
    if config is not None:
        if not config.exists():
            raise typer.BadParameter(f"config file not found: {config}")
        try:
            cfg = load_strategy_config(config)
        except Exception as e:
            raise typer.BadParameter(f"invalid config: {e}") from e
        preset_name, preset_risk = cfg.name, cfg.risk_level

    async def _action(orchestrator: ActionOrchestrator) -> None:
        # Unset values fall back to the preset, then to the current bot state.
        current = orchestrator.store.bot_state
        effective_name = name or preset_name or (current.strategy if current else "momentum")
        effective_risk = risk
        if effective_risk is None:
            effective_risk = preset_risk
        if effective_risk is None:
            effective_risk = current.risk_level if current else 0.5
        await orchestrator.update_strategy(effective_name, effective_risk)

    _session(_action)


@app.command()
def analyze(
    data: str = typer.Option(DEFAULT_MARKET_DATA, "--data", help="Market snapshot payload."),
) -> None:
    """
    Trigger a market analysis and show the refreshed signals.
    """

    async def _action(orchestrator: ActionOrchestrator) -> None:
        await orchestrator.analyze_market(data)

    _session(_action)


@app.command()
def execute() -> None:
    """
    Execute trades for the current signals and show the refreshed history.
    """

    async def _action(orchestrator: ActionOrchestrator) -> None:
        await orchestrator.execute_trades()

    _session(_action)


@app.command()
def demo() -> None:
    """
    Start the bot, analyse, execute trades, then print the dashboard.
    """

    async def _action(orchestrator: ActionOrchestrator) -> None:
        await orchestrator.toggle_bot(True)
        await orchestrator.analyze_market()
        await orchestrator.execute_trades()

    _session(_action)
