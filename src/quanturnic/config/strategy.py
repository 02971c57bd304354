from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from quanturnic.types import StrategyName


class StrategyConfig(BaseModel):
    name: StrategyName = "momentum"
    risk_level: float = Field(default=0.5, ge=0.0, le=1.0)


class StrategyPreset(BaseModel):
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)


def load_strategy_config(path: Path) -> StrategyConfig:
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    return StrategyPreset.model_validate(raw).strategy
