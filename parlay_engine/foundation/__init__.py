"""Foundation modules: heuristic constants and configuration loading."""

from parlay_engine.foundation.model_config import (
    CorrelationConfig,
    DEFAULT_PAIR_CORRELATIONS,
    DEFAULT_SAME_GAME_PAIR_CORRELATIONS,
    DEFAULT_PACE_PROPS,
    get_default_config,
    get_severity_thresholds,
    load_config_from_env
)
