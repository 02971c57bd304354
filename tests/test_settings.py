import asyncio
from decimal import Decimal

from quanturnic.service import RemoteTradingService, SimulatedTradingService
from quanturnic.settings import Settings


def test_defaults_to_simulated_service() -> None:
    settings = Settings(SIMULATED_BALANCE="1000.00")
    service = settings.build_service()

    assert isinstance(service, SimulatedTradingService)
    state = asyncio.run(service.get_bot_state())
    assert state.balance == Decimal("1000.00")


def test_remote_mode_builds_http_service() -> None:
    settings = Settings(
        SERVICE_MODE="remote",
        SERVICE_URL="http://trading.test/",
        REQUEST_TIMEOUT_SECONDS=2,
    )
    service = settings.build_service()
    try:
        assert isinstance(service, RemoteTradingService)
    finally:
        asyncio.run(service.aclose())
