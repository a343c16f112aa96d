"""Application entry point."""

import argparse
import logging
import shutil
from pathlib import Path

from .app.app import ScoutApp
from .app.app_config import load_config, save_config
from .common.app import app_dirs
from .common.log import setup_logging

logger = logging.getLogger(__name__)


def reset_all() -> None:
    """Delete config, logs and every other piece of app data."""
    if app_dirs.app_data_dir.exists():
        shutil.rmtree(app_dirs.app_data_dir)
        print(f"App data directory deleted: {app_dirs.app_data_dir}")
    else:
        print(f"App data directory does not exist: {app_dirs.app_data_dir}")


def resolve_start_directory(arg: str | None, root_path: str) -> Path:
    """Directory to start in: the argument, then the configured root, then the working directory."""
    for candidate in (arg, root_path):
        if not candidate:
            continue
        path = Path(candidate).expanduser().resolve()
        if path.is_dir():
            return path
        logger.warning("Not a directory: %s", path)
    return Path.cwd()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="scout - terminal file browser with live search")
    parser.add_argument("path", nargs="?", help="Directory to start in")
    parser.add_argument("--temp", action="store_true", help="Run in temporary mode")
    parser.add_argument("--reset", action="store_true", help="Delete all app data")
    parser.add_argument("--debug", action="store_true", help="Write debug records to the log file")

    args = parser.parse_args()

    if args.reset:
        reset_all()
        return

    if args.temp:
        app_dirs.use_temp_app_data_dir()

    setup_logging(app_dirs.app_log_path, logging.DEBUG if args.debug else logging.WARNING)
    config = load_config(app_dirs.app_config_path)
    directory = resolve_start_directory(args.path, config.root_path)

    app = ScoutApp(config, directory)
    try:
        app.run()
    finally:
        save_config(app.dump_config(), app_dirs.app_config_path)


if __name__ == "__main__":
    main()
