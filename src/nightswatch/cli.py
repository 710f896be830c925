"""CLI entry point for nightswatch: loads the config and runs the watcher."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from nightswatch import __version__
from nightswatch.config import DEFAULT_CONFIG_PATH, load_config
from nightswatch.errors import NightswatchError
from nightswatch.watcher import Watcher

logger = logging.getLogger("nightswatch")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="nightswatch",
        description="A configurable file watcher: rebuilds and reloads when files change.",
        epilog="Examples:\n"
        "  nightswatch                     # Use ./nightswatch.toml\n"
        "  nightswatch -c dev.toml         # Use custom config\n"
        "  nightswatch --version           # Show version",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"read a specific config file (default: {DEFAULT_CONFIG_PATH})",
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="log every loop iteration and ignored change",
    )

    return parser.parse_args()


def main() -> None:
    """
    Main entry point for the nightswatch CLI.

    Runs until killed. Any error from loading the config, registering
    watches, or the event source is logged and exits with status 1;
    Ctrl+C exits with status 130.
    """
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format=LOG_FORMAT,
    )

    config_path = Path(args.config)

    try:
        config = load_config(config_path)
        asyncio.run(Watcher(config).run())
    except KeyboardInterrupt:
        sys.exit(130)
    except NightswatchError as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
