import json
import logging

import pytest

from descent import create_app, logging_utils
from descent.dungeon.config import DesignerConfig
from descent.server import _configure_logging


@pytest.fixture
def restore_log_level():
    yield
    logging_utils.configure(level="info")


def test_structured_log_line(capsys, restore_log_level):
    log = logging_utils.get_logger("designer")
    log.info(event="level_designed", level_type="Caverns", score=42, note="two words")
    out = capsys.readouterr().out.strip()
    assert out.startswith("level=info ts=")
    assert "event=level_designed" in out
    assert "score=42" in out
    assert "note=two_words" in out
    assert "logger=designer" in out


def test_log_threshold(capsys, restore_log_level):
    log = logging_utils.get_logger("rooms")
    log.debug(event="room_placed")
    assert capsys.readouterr().out == ""
    logging_utils.configure(level="debug")
    log.debug(event="room_placed")
    assert "event=room_placed" in capsys.readouterr().out


def test_errors_go_to_stderr(capsys):
    logging_utils.get_logger("designer").error(event="boom")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "event=boom" in captured.err


def test_json_mode(monkeypatch):
    monkeypatch.setattr(logging_utils, "JSON_MODE", True)
    rec = json.loads(logging_utils._format("warn", {"event": "dig_fallback", "attempts": 10, "skipped": None}))
    assert rec["level"] == "warn"
    assert rec["attempts"] == 10
    assert "skipped" not in rec


def test_bound_logger_carries_context(capsys):
    base = logging_utils.get_logger("designer")
    child = base.bind(level_type="Ruins", seed=7)
    child.info(event="dig_rejected", entrance=(3, 4), ratio=0.25, fallback=False)
    out = capsys.readouterr().out
    assert "level_type=Ruins seed=7 event=dig_rejected" in out
    assert "entrance=3,4" in out
    assert "ratio=0.25" in out
    assert "fallback=false" in out
    assert base.context == {}


def test_get_logger_is_cached():
    assert logging_utils.get_logger("x") is logging_utils.get_logger("x")


def test_config_from_env_overlays_defaults():
    cfg = DesignerConfig.from_env(
        {
            "DESCENT_LEVEL_WIDTH": "31",
            "DESCENT_DESIGNERS_PER_LEVEL": " 4 ",
            "DESCENT_ENABLE_GENERATION_METRICS": "false",
        }
    )
    assert cfg.width == 31
    assert cfg.height == 21
    assert cfg.designers_per_level == 4
    assert cfg.enable_metrics is False
    assert DesignerConfig.from_env({}) == DesignerConfig()


def test_create_app_reads_environment(monkeypatch):
    monkeypatch.setenv("DESCENT_LEVEL_HEIGHT", "15")
    monkeypatch.setenv("DESCENT_LEVEL_SEED", "0x10")
    monkeypatch.setenv("DESCENT_DISABLE_CACHE", "1")
    app = create_app({"DESCENT_MAX_DESCEND_DEPTH": 3})
    assert app.config["DESCENT_LEVEL_HEIGHT"] == 15
    assert app.config["DESCENT_LEVEL_SEED"] == 16
    assert app.config["DESCENT_DISABLE_CACHE"] is True
    assert app.config["DESCENT_MAX_DESCEND_DEPTH"] == 3


def test_configure_logging_is_idempotent(tmp_path, monkeypatch):
    app = create_app()
    monkeypatch.setattr(app, "instance_path", str(tmp_path))
    root = logging.getLogger()
    saved = list(root.handlers)
    try:
        _configure_logging(app)
        path = _configure_logging(app)
        assert len(root.handlers) == 2
        logging.getLogger("descent").info("hello")
        for h in root.handlers:
            h.flush()
        assert (tmp_path / "app.log").exists()
        assert path == str(tmp_path / "app.log")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved:
            root.addHandler(h)
