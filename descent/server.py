"""Server bootstrap.

Builds the Flask app, configures logging to the console and a rotating file
under ``instance/`` and runs the development server.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from flask import Flask

from descent import create_app


def start_server(host="0.0.0.0", port=5000, debug: bool = False, app: Flask = None):  # pragma: no cover (runtime only)
    """Start the HTTP server.

    When debug=True, Flask's debugger and reloader provide verbose tracebacks.
    """
    app = app or create_app()
    _configure_logging(app)
    try:
        print(f"[INFO] Starting level API on {host}:{port}")
        app.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        print("\n[INFO] Server stopped by user (Ctrl+C)")
        sys.exit(0)


def _configure_logging(app: Flask) -> str:
    """Configure logging to both console and instance/app.log.

    Returns the log file path. Existing root handlers are replaced so calling
    this twice never duplicates output.
    """
    log_dir = app.instance_path
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "app.log")

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    root.addHandler(file_handler)
    root.addHandler(console)
    return log_path
