__all__ = ["StrategyConfig", "load_strategy_config"]

from quanturnic.config.strategy import StrategyConfig, load_strategy_config
