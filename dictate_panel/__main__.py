"""Entry point for running the panel as a module: python -m dictate_panel"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from dictate_panel.app import EXIT_USAGE, PanelApp
from dictate_panel.settings import PanelSettings


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity setting."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Reduce noise from transport libraries
    for name in ("httpx", "httpcore", "websockets", "uvicorn"):
        logging.getLogger(name).setLevel(logging.ERROR)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dictate-panel",
        description="Control panel for the dictation agent",
    )
    parser.add_argument("--backend", help="Backend URL (default from DICTATE_PANEL_BACKEND_URL)")
    parser.add_argument("-v", "--verbose", action="store_true")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("show", help="Load and print settings and status")
    commands.add_parser("watch", help="Follow status, transcripts and errors")

    set_cmd = commands.add_parser("set", help="Edit fields and save, e.g. thresholds.holdMs=200")
    set_cmd.add_argument("assignments", nargs="+", metavar="PATH=VALUE")

    reset_cmd = commands.add_parser("reset", help="Load the backend's default settings")
    reset_cmd.add_argument("--save", action="store_true", help="Persist the defaults")

    commands.add_parser("toggle", help="Start or stop recording")
    commands.add_parser("test", help="Test the transcription connection")

    autostart_cmd = commands.add_parser("autostart", help="Launch the agent at login")
    autostart_cmd.add_argument("state", choices=("on", "off"))
    return parser


async def run(app: PanelApp, args: argparse.Namespace) -> int:
    try:
        if args.command == "show":
            return await app.show()
        if args.command == "watch":
            return await app.watch()
        if args.command == "set":
            return await app.set_fields(args.assignments)
        if args.command == "reset":
            return await app.reset(save=args.save)
        if args.command == "toggle":
            return await app.toggle()
        if args.command == "test":
            return await app.test()
        if args.command == "autostart":
            return await app.autostart(args.state == "on")
        return EXIT_USAGE
    finally:
        await app.shutdown()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    args = build_parser().parse_args(argv)

    settings = PanelSettings.from_env()
    if args.backend:
        settings.backend_url = args.backend
    settings.verbose = settings.verbose or args.verbose

    setup_logging(settings.verbose)

    app = PanelApp(settings)

    try:
        return asyncio.run(run(app, args))
    except KeyboardInterrupt:
        print("\n👋 Interrupted")
        return 130
    except Exception as e:
        logging.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
