import os
from dataclasses import dataclass, fields
from typing import Optional


@dataclass
class DesignerConfig:
    width: int = 21
    height: int = 21
    designers_per_level: int = 10
    max_dig_attempts: int = 10
    min_accessible_points: int = 20
    entrance_clearance: int = 2
    exit_distance_threshold: float = 0.6
    max_dead_end_neighbours: int = 3
    room_retries: int = 100
    room_budget_min: int = 50
    room_budget_max: int = 150
    room_budget_low_water: int = 10
    chance_uncommon: float = 0.25
    chance_rare: float = 0.05
    enable_metrics: bool = True

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "DesignerConfig":
        """Build a config, overlaying DESCENT_* environment variables on the defaults."""
        env = os.environ if environ is None else environ
        config = cls()
        env_map = {
            "DESCENT_LEVEL_WIDTH": "width",
            "DESCENT_LEVEL_HEIGHT": "height",
            "DESCENT_DESIGNERS_PER_LEVEL": "designers_per_level",
            "DESCENT_MAX_DIG_ATTEMPTS": "max_dig_attempts",
            "DESCENT_ENABLE_GENERATION_METRICS": "enable_metrics",
        }
        types = {f.name: f.type for f in fields(cls)}
        for env_key, attr in env_map.items():
            if env_key not in env:
                continue
            raw = str(env.get(env_key, "")).strip()
            if types[attr] is bool:
                setattr(config, attr, raw.lower() not in {"0", "false", "no", ""})
            else:
                setattr(config, attr, int(raw))
        return config


__all__ = ["DesignerConfig"]
