"""Descent CLI entry point.

Provides subcommands for running the level API server and for designing a
single level straight to the terminal. Accepts configuration via flags and
environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import os
import signal
import sys
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()


def _load_version() -> str:
    path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "VERSION")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError:
        return "0.1.0"


__version__ = _load_version()

# Glyph -> colour used by the `design` subcommand.
GLYPH_COLORS = {
    "#": Fore.WHITE + Style.DIM,
    "&": Fore.GREEN + Style.DIM,
    "%": Fore.RED + Style.DIM,
    "+": Fore.YELLOW,
    "<": Fore.CYAN + Style.BRIGHT,
    ">": Fore.CYAN + Style.BRIGHT,
    "~": Fore.BLUE,
    "$": Fore.YELLOW + Style.BRIGHT,
    "@": Fore.WHITE + Style.BRIGHT,
    "s": Fore.GREEN,
    "S": Fore.GREEN + Style.BRIGHT,
    "K": Fore.MAGENTA + Style.BRIGHT,
    "b": Fore.MAGENTA,
    "l": Fore.RED,
    "G": Fore.RED + Style.BRIGHT,
    "m": Fore.RED,
    "i": Fore.CYAN,
}


def _color_enabled(no_color: bool = False) -> bool:
    if no_color or os.getenv("NO_COLOR"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):  # pragma: no cover - closed or replaced stdout
        return False


def colorize(rows, enabled: bool):
    """Yield the level rows, wrapping known glyphs in ANSI colour codes."""
    for row in rows:
        if not enabled:
            yield row
            continue
        out = []
        for ch in row:
            color = GLYPH_COLORS.get(ch)
            out.append(f"{color}{ch}{Style.RESET_ALL}" if color else ch)
        yield "".join(out)


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Descent Level Generator

    Run the JSON level API or design a single level and print it as ASCII.
    Configuration can be provided via CLI flags or environment variables. If
    both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                          Bind address for the web server (default: 0.0.0.0)
          PORT                          Port for the web server (default: 5000)
          DESCENT_LEVEL_WIDTH           Level width in cells (default: 21)
          DESCENT_LEVEL_HEIGHT          Level height in cells (default: 21)
          DESCENT_DESIGNERS_PER_LEVEL   Candidates generated per level (default: 10)
          DESCENT_LEVEL_SEED            Default seed for `design` (default: 0x123)
          DESCENT_LOG_LEVEL             DEBUG, INFO, WARN or ERROR (default: INFO)

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Design a jungle level with a fixed seed
          python run.py design --level-type Jungle --seed 42

          # Load variables from .env then design a level
          python run.py --env-file .env design
        """
    )

    parser = argparse.ArgumentParser(
        prog="Descent",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Descent Level Generator {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    server_parser = subparsers.add_parser(
        "server",
        help="Run the level API web server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the Flask level API",
    )
    server_parser.add_argument(
        "--host",
        default=None,
        help="Host interface to bind (default: env HOST or 0.0.0.0)",
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: env PORT or 5000)",
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode with verbose error pages",
    )
    server_parser.set_defaults(command="server")

    design_parser = subparsers.add_parser(
        "design",
        help="Design one level and print it",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the level designer once and print the chosen level as ASCII.",
    )
    design_parser.add_argument(
        "--seed",
        type=lambda s: int(s, 0),
        default=None,
        help="Seed for the candidate seed source (default: env DESCENT_LEVEL_SEED or 0x123)",
    )
    design_parser.add_argument(
        "--level-type",
        dest="level_type",
        default="Caverns",
        help="Level type name (default: Caverns)",
    )
    design_parser.add_argument(
        "--entrance",
        nargs=2,
        type=int,
        metavar=("X", "Y"),
        default=None,
        help="Entrance cell (default: level centre)",
    )
    design_parser.add_argument(
        "--no-color",
        dest="no_color",
        action="store_true",
        help="Disable ANSI colours even on a terminal",
    )
    design_parser.set_defaults(command="design")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    args = parser.parse_args(argv)
    return args


def _banner(rows, color: bool) -> str:
    def label(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if color else text

    def value(val) -> str:
        return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if color else str(val)

    title = f"{Fore.CYAN}{Style.BRIGHT}Descent Level Generator{Style.RESET_ALL}" if color else "Descent Level Generator"
    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if color else "=" * 40
    lines = [divider, f"  {title}", divider]
    lines.extend(f"  {label(k + ':'):12} {value(v)}" for k, v in rows)
    lines.extend([divider, ""])
    return "\n".join(lines)


def _run_design(args) -> int:
    from descent.dungeon import DesignerConfig, LevelGenerationError, SeedSource, design_level, get_level_type
    from descent.dungeon.designer import DEFAULT_SEED
    from descent.logging_utils import log

    config = DesignerConfig.from_env()
    try:
        level_type = get_level_type(args.level_type)
    except KeyError as exc:
        print(f"[ERROR] {exc.args[0]}")
        return 2
    seed = args.seed if args.seed is not None else int(os.getenv("DESCENT_LEVEL_SEED", str(DEFAULT_SEED)), 0)
    entrance = tuple(args.entrance) if args.entrance else (config.width // 2, config.height // 2)
    if not (0 <= entrance[0] < config.width and 0 <= entrance[1] < config.height):
        print(f"[ERROR] entrance {entrance} is outside the {config.width}x{config.height} level")
        return 2

    color = _color_enabled(args.no_color)
    print(
        _banner(
            [
                ("Mode", "DESIGN"),
                ("Type", level_type.name),
                ("Seed", hex(seed)),
                ("Size", f"{config.width}x{config.height}"),
                ("Entrance", entrance),
            ],
            color,
        )
    )
    try:
        level = design_level(level_type, entrance, seeds=SeedSource(seed), config=config)
    except LevelGenerationError as exc:
        print(f"[ERROR] {exc}")
        return 1

    for row in colorize(level.to_ascii().splitlines(), color):
        print(row)
    print()
    print(f"Exit: {level.exit}  Critical path: {len(level.critical_path)}")
    log.info(event="design_cli", level_type=level_type.name, seed=seed, score=len(level.critical_path))
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if args and getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    mode = (getattr(args, "command", None) or "server").lower()
    if mode == "design":
        return _run_design(args)

    env_host = os.getenv("HOST", "0.0.0.0")
    env_port = int(os.getenv("PORT", "5000"))
    host = getattr(args, "host", None) or env_host
    port = int(getattr(args, "port", None) or env_port)

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    # Import server entrypoints only after environment is ready
    from descent.logging_utils import log
    from descent.server import start_server

    color = _color_enabled()
    print(
        _banner(
            [
                ("Mode", mode.upper()),
                ("Host", host),
                ("Port", port),
                ("Designers", os.getenv("DESCENT_DESIGNERS_PER_LEVEL", "10")),
            ],
            color,
        )
    )
    info_prefix = f"{Fore.CYAN}[INFO]{Style.RESET_ALL}" if color else "[INFO]"
    print(f"{info_prefix} Listening for connections... Press Ctrl+C to stop.")
    debug = bool(getattr(args, "debug", False) or os.getenv("FLASK_DEBUG") == "1")
    log.info(event="listen", host=host, port=port, debug=debug)
    start_server(host=host, port=port, debug=debug)
    return 0


def cli() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
