from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from quanturnic.service import RemoteTradingService, SimulatedTradingService, TradingService


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Trading service
    service_mode: Literal["simulated", "remote"] = Field(
        default="simulated",
        validation_alias="SERVICE_MODE",
    )
    service_url: str = Field(default="http://127.0.0.1:8000", validation_alias="SERVICE_URL")
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias="REQUEST_TIMEOUT_SECONDS",
    )

    # Simulated service
    simulated_balance: Decimal = Field(default=Decimal("0"), validation_alias="SIMULATED_BALANCE")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    def build_service(self) -> TradingService:
        if self.service_mode == "remote":
            return RemoteTradingService(
                base_url=self.service_url,
                timeout_seconds=self.request_timeout_seconds,
            )
        return SimulatedTradingService(balance=self.simulated_balance)
