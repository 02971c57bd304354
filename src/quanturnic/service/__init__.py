__all__ = [
    "Malformed",
    "Rejected",
    "RemoteTradingService",
    "ServiceError",
    "ServiceUnavailable",
    "SimulatedTradingService",
    "TradingService",
]

from quanturnic.service.base import (
    Malformed,
    Rejected,
    ServiceError,
    ServiceUnavailable,
    TradingService,
)
from quanturnic.service.remote import RemoteTradingService
from quanturnic.service.simulated import SimulatedTradingService
