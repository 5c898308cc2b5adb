"""Command line entry point: `yalv` / `python -m yalv`."""

import argparse
import curses
import logging
import sys
from typing import List, Optional

from . import __version__
from .backend import InventoryError, VirshBackend
from .config import config_manager
from .inventory import Inventory
from .main import main as run_ui, setup_logging
from .state import StateManager
from .ui import help_lines

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yalv",
        description="yalv - Yet Another Libvirt Viewer",
        epilog="Key bindings:\n" + "\n".join(help_lines(config_manager)[2:-2]),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--all", action="store_true",
                        help="Show all VMs (including inactive)")
    parser.add_argument("--debug", action="store_true",
                        help="Log at DEBUG level")
    parser.add_argument("--log-file", metavar="PATH",
                        help="Write the log to PATH instead of the default location")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log_path = setup_logging(args.log_file, "DEBUG" if args.debug else None)
    logger.info(f"yalv started with args: {argv if argv is not None else sys.argv[1:]} (log: {log_path})")

    backend = VirshBackend()
    state_mgr = StateManager(Inventory(backend), backend,
                             show_inactive=args.all or config_manager.should_show_inactive())
    try:
        state_mgr.load()
        curses.wrapper(run_ui, state_mgr)
    except InventoryError as e:
        print(f"yalv: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
