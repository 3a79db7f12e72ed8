"""Structured key=value logging for the generator.

Generation runs many candidate designs back to back, so every line carries the
fields needed to tell them apart (level type, candidate seed) and stays
greppable:

    level=info ts=1700000000 logger=designer event=level_designed level_type=Caverns score=42

Usage:
    from descent.logging_utils import get_logger
    log = get_logger("designer").bind(level_type="Caverns")
    log.info(event="level_designed", score=42)

``DESCENT_LOG_LEVEL`` sets the threshold and ``DESCENT_LOG_JSON=1`` switches to
one JSON object per line. Reserved keys: level, ts.
"""

from __future__ import annotations

import json
import os
import sys
import time
from typing import Any, Dict, Optional

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
CURRENT_LEVEL = LEVELS.get(os.getenv("DESCENT_LOG_LEVEL", "info").lower(), 20)
JSON_MODE = os.getenv("DESCENT_LOG_JSON", "0") in ("1", "true", "TRUE", "yes", "on")


def _value(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float):
        return "inf" if v == float("inf") else f"{v:.3g}"
    if isinstance(v, int):
        return str(v)
    if isinstance(v, tuple):
        return ",".join(_value(item) for item in v)
    return str(v).replace(" ", "_")


def _format(level: str, fields: Dict[str, Any]) -> str:
    ts = int(time.time())
    if JSON_MODE:
        rec = {k: v for k, v in fields.items() if v is not None}
        rec["level"] = level
        rec["ts"] = ts
        return json.dumps(rec, separators=(",", ":"), default=str)
    parts = [f"level={level}", f"ts={ts}"]
    parts.extend(f"{k}={_value(v)}" for k, v in fields.items() if v is not None)
    return " ".join(parts)


def configure(level: Optional[str] = None, json_mode: Optional[bool] = None) -> None:
    """Change the threshold and/or output mode at runtime (CLI flags, tests)."""
    global CURRENT_LEVEL, JSON_MODE
    if level is not None:
        CURRENT_LEVEL = LEVELS[level.lower()]
    if json_mode is not None:
        JSON_MODE = json_mode


class StructuredLogger:
    def __init__(self, name: str = "descent", context: Optional[Dict[str, Any]] = None):
        self.name = name
        self.context = dict(context or {})

    def bind(self, **fields) -> "StructuredLogger":
        """Child logger that adds ``fields`` to every line it writes."""
        return StructuredLogger(self.name, {**self.context, **fields})

    def enabled_for(self, lvl: str) -> bool:
        return LEVELS[lvl] >= CURRENT_LEVEL

    def _log(self, lvl: str, fields: Dict[str, Any]) -> None:
        if not self.enabled_for(lvl):
            return
        record = {"logger": self.name, **self.context, **fields}
        stream = sys.stderr if lvl == "error" else sys.stdout
        print(_format(lvl, record), file=stream)

    def debug(self, **fields):
        self._log("debug", fields)

    def info(self, **fields):
        self._log("info", fields)

    def warn(self, **fields):
        self._log("warn", fields)

    def error(self, **fields):
        self._log("error", fields)


_LOGGERS: Dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    if name not in _LOGGERS:
        _LOGGERS[name] = StructuredLogger(name)
    return _LOGGERS[name]


log = get_logger("descent")
