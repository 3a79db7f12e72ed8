from typing import Dict


def init_metrics() -> Dict[str, int | float | bool]:
    return {
        'dig_attempts': 0,
        'dig_rejections': 0,
        'dig_fallback': False,
        'rooms_placed': 0,
        'rooms_failed': 0,
        'rooms_skipped_rarity': 0,
        'rooms_skipped_budget': 0,
        'room_budget': 0,
        'rewards_placed': 0,
        'monsters_placed': 0,
        'critical_path_length': 0,
        'runtime_ms': 0.0,
    }
