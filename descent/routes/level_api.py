"""Level design API routes.

Exposes the generator over JSON: list the level types, design a single level
for a seed, or play a chain of level transitions to show how exits feed the
next level's entrance.
"""
import hashlib
import random
import threading
from collections import OrderedDict

from flask import Blueprint, current_app, jsonify, request

from descent.dungeon.config import DesignerConfig
from descent.dungeon.designer import SeedSource, design_level
from descent.dungeon.level import GameSession
from descent.dungeon.levels import LEVEL_TYPES, get_level_type
from descent.logging_utils import get_logger

bp_levels = Blueprint("level_api", __name__)

log = get_logger("level_api")

MAX_SEED = 2**63 - 1

# (seed, level_type, entrance, width, height) -> Level. Guarded by a lock since
# the dev server may handle requests on several threads.
_level_cache = OrderedDict()
_level_cache_lock = threading.Lock()
_LEVEL_CACHE_MAX = 8


def _coerce_seed(payload_seed):
    """Convert provided seed (int or str) into a bounded non-negative int."""
    if payload_seed is None or isinstance(payload_seed, bool):
        return random.randint(1, 1_000_000)
    if isinstance(payload_seed, int):
        return payload_seed % MAX_SEED
    if isinstance(payload_seed, str):
        s = payload_seed.strip()
        if not s:
            return random.randint(1, 1_000_000)
        if s.isdigit():
            return int(s) % MAX_SEED
        h = hashlib.sha256(s.encode("utf-8")).digest()
        return int.from_bytes(h[:8], "big") % MAX_SEED
    raise ValueError("seed must be an integer or a string")


def _error_message(exc: Exception) -> str:
    # KeyError's str() wraps the message in quotes
    return str(exc.args[0]) if exc.args else str(exc)


def _designer_config() -> DesignerConfig:
    cfg = current_app.config
    return DesignerConfig(
        width=int(cfg["DESCENT_LEVEL_WIDTH"]),
        height=int(cfg["DESCENT_LEVEL_HEIGHT"]),
        designers_per_level=int(cfg["DESCENT_DESIGNERS_PER_LEVEL"]),
        max_dig_attempts=int(cfg["DESCENT_MAX_DIG_ATTEMPTS"]),
        enable_metrics=bool(cfg["DESCENT_ENABLE_GENERATION_METRICS"]),
    )


def _parse_entrance(raw, config: DesignerConfig):
    if raw is None:
        return config.width // 2, config.height // 2
    if not isinstance(raw, (list, tuple)) or len(raw) != 2 or not all(
        isinstance(v, int) and not isinstance(v, bool) for v in raw
    ):
        raise ValueError("entrance must be a pair of integers [x, y]")
    x, y = raw
    if not (0 <= x < config.width and 0 <= y < config.height):
        raise ValueError(f"entrance ({x}, {y}) is outside the {config.width}x{config.height} level")
    return x, y


def _parse_request(data):
    config = _designer_config()
    if "seed" in data:
        seed = _coerce_seed(data["seed"])
    else:
        seed = int(current_app.config["DESCENT_LEVEL_SEED"]) % MAX_SEED
    level_type = get_level_type(str(data.get("level_type") or "Caverns"))
    entrance = _parse_entrance(data.get("entrance"), config)
    return config, seed, level_type, entrance


def get_cached_level(seed: int, level_type_name: str, entrance, config: DesignerConfig):
    level_type = get_level_type(level_type_name)
    if current_app.config.get("DESCENT_DISABLE_CACHE"):
        return design_level(level_type, entrance, seeds=SeedSource(seed), config=config)
    key = (seed, level_type.name, tuple(entrance), config.width, config.height)
    with _level_cache_lock:
        level = _level_cache.get(key)
        if level is not None:
            _level_cache.move_to_end(key)
            return level
    level = design_level(level_type, entrance, seeds=SeedSource(seed), config=config)
    with _level_cache_lock:
        _level_cache[key] = level
        while len(_level_cache) > _LEVEL_CACHE_MAX:
            _level_cache.popitem(last=False)
    return level


def clear_level_cache() -> None:
    with _level_cache_lock:
        _level_cache.clear()


@bp_levels.route("/api/levels/types", methods=["GET"])
def list_level_types():
    return jsonify([{"name": lt.name, "terrain": lt.terrain} for lt in LEVEL_TYPES.values()])


@bp_levels.route("/api/levels/design", methods=["POST"])
def design():
    """Design (or fetch from cache) one level.

    Body JSON (all optional):
      { "seed": <int|str|null>, "level_type": <str>, "entrance": [x, y] }

    Response: the level snapshot plus the seed actually used.
    """
    data = request.get_json(silent=True) or {}
    try:
        config, seed, level_type, entrance = _parse_request(data)
    except (KeyError, ValueError) as exc:
        return jsonify({"error": _error_message(exc)}), 400

    level = get_cached_level(seed, level_type.name, entrance, config)
    payload = level.to_dict()
    payload["seed"] = seed
    log.info(event="design_request", seed=seed, level_type=level_type.name, score=len(level.critical_path))
    return jsonify(payload)


@bp_levels.route("/api/levels/descend", methods=["POST"])
def descend():
    """Walk the player onto ``depth`` consecutive exits.

    Body JSON: { "seed"?, "level_type"?, "entrance"?, "depth": <int> }
    Response: { "seed", "levels": [{"entrance", "exit", "critical_path_length"}...], "messages" }
    """
    data = request.get_json(silent=True) or {}
    try:
        config, seed, level_type, entrance = _parse_request(data)
        depth = data.get("depth", 1)
        if not isinstance(depth, int) or isinstance(depth, bool) or depth < 0:
            raise ValueError("depth must be a non-negative integer")
        max_depth = int(current_app.config.get("DESCENT_MAX_DESCEND_DEPTH", 10))
        if depth > max_depth:
            raise ValueError(f"depth must be at most {max_depth}")
    except (KeyError, ValueError) as exc:
        return jsonify({"error": _error_message(exc)}), 400

    seeds = SeedSource(seed)
    session = GameSession(level=design_level(level_type, entrance, seeds=seeds, config=config))
    visited = [session.level]
    for _ in range(depth):
        current = session.level
        session.enter_tile(session.player, current.exit)
        if session.level is current:
            break
        visited.append(session.level)

    levels = [
        {
            "entrance": list(level.entrance),
            "exit": list(level.exit),
            "critical_path_length": len(level.critical_path),
        }
        for level in visited
    ]
    log.info(event="descend_request", seed=seed, level_type=level_type.name, depth=session.depth)
    return jsonify({"seed": seed, "depth": session.depth, "levels": levels, "messages": session.messages})
