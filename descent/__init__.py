"""Descent level generator service.

Flask application factory. Generation settings come from environment
variables (optionally loaded from a local .env) and end up in ``app.config``
where the level API reads them. A local ``instance/`` directory holds runtime
files such as the rotating log.
"""

import logging
import os
import uuid

from dotenv import load_dotenv
from flask import Flask, jsonify

from descent.dungeon.config import DesignerConfig
from descent.dungeon.designer import DEFAULT_SEED
from descent.dungeon.errors import LevelGenerationError

# Load .env if present so DESCENT_* settings can be supplied without exporting
# shell variables during development.
load_dotenv()

__all__ = ["create_app"]


def create_app(overrides=None) -> Flask:
    """Build the Flask app; ``overrides`` are applied to app.config last."""
    app = Flask(__name__, instance_relative_config=True)

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        # Read-only checkouts can still serve the API without a log directory.
        pass

    designer = DesignerConfig.from_env()
    app.config.update(
        SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
        DESCENT_LEVEL_WIDTH=designer.width,
        DESCENT_LEVEL_HEIGHT=designer.height,
        DESCENT_DESIGNERS_PER_LEVEL=designer.designers_per_level,
        DESCENT_MAX_DIG_ATTEMPTS=designer.max_dig_attempts,
        DESCENT_ENABLE_GENERATION_METRICS=designer.enable_metrics,
        DESCENT_LEVEL_SEED=int(os.getenv("DESCENT_LEVEL_SEED", str(DEFAULT_SEED)), 0),
        DESCENT_DISABLE_CACHE=os.getenv("DESCENT_DISABLE_CACHE", "0") == "1",
        DESCENT_MAX_DESCEND_DEPTH=int(os.getenv("DESCENT_MAX_DESCEND_DEPTH", "10")),
    )
    if overrides:
        app.config.update(overrides)

    from descent.routes.level_api import bp_levels

    app.register_blueprint(bp_levels)

    @app.errorhandler(LevelGenerationError)
    def _generation_failed(exc):
        error_id = uuid.uuid4().hex[:8]
        logging.getLogger("descent").exception("level generation failed [%s]", error_id)
        return jsonify({"error": "level generation failed", "error_id": error_id}), 500

    return app
