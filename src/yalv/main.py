"""
Main UI event loop and orchestration for yalv.

This module contains the loop that coordinates between:
  - curses terminal UI (rendering via ui.py)
  - the interaction state machine (state.py)
  - virsh (through the backend owned by the state manager)

Architecture:
  1. The inventory is loaded before curses starts (failure is fatal)
  2. Main loop:
     - Re-render only when the state version changed (or after a resize)
     - Wait for a key with a timeout equal to the refresh interval
     - Timeout → state_mgr.tick() (inventory refresh)
     - Key → translated to a key name and passed to state_mgr.handle_key()
  3. Console/SSH sessions suspend curses inside the handler and
     force a full redraw when they return

Single-threaded:
  - The get_wch timeout is the only suspension point
  - Every virsh call blocks the loop until it exits
"""

import curses
import functools
import logging
from typing import Optional, Union

from . import get_log_path
from .backend import InventoryError
from .config import config_manager
from .main_actions import run_shell_cmd
from .state import StateManager
from .ui import (
    init_colors, draw_header, draw_list, draw_details, draw_footer, draw_modal,
    draw_help_modal,
)

logger = logging.getLogger(__name__)

# get_wch() returns function keys as ints and everything else as str.
KEY_NAMES = {
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    curses.KEY_ENTER: "enter",
    curses.KEY_BACKSPACE: "backspace",
}

CHAR_NAMES = {
    "\n": "enter",
    "\r": "enter",
    "\x1b": "esc",
    "\x7f": "backspace",
    "\b": "backspace",
}


def setup_logging(log_file: Optional[str] = None, level: Optional[str] = None) -> str:
    """Send logs to a file; the terminal belongs to curses."""
    path = log_file or config_manager.get_custom_log_path() or get_log_path()
    logging.basicConfig(filename=path, level=(level or config_manager.get_log_level()),
                        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')
    return path


def key_name(ch: Union[int, str]) -> Optional[str]:
    """Translate a get_wch() result to a binding name ("up", "enter", "q", "é"...)."""
    if isinstance(ch, int):
        return KEY_NAMES.get(ch)
    if ch in CHAR_NAMES:
        return CHAR_NAMES[ch]
    if len(ch) == 1 and ch.isprintable():
        return ch
    return None


def main(stdscr, state_mgr: StateManager):
    logger.info("Main started")
    curses.curs_set(0)
    stdscr.keypad(True)
    stdscr.timeout(config_manager.get_refresh_interval())
    init_colors()
    curses.set_escdelay(25)

    state_mgr.handoff = functools.partial(run_shell_cmd, stdscr)

    list_win = None
    detail_win = None
    last_version = -1
    last_h, last_w = -1, -1
    force_redraw = True

    while state_mgr.state.running:
        try:
            current_version = state_mgr.get_version()
            if current_version != last_version or force_redraw:
                state = state_mgr.get_snapshot()
                h, w = stdscr.getmaxyx()

                if h != last_h or w != last_w or force_redraw:
                    logger.info(f"Resize: {h}x{w}")
                    stdscr.clear()
                    last_h, last_w = h, w
                    split_y = int(h * 0.6)

                    if h < 10 or w < 40:
                        try:
                            stdscr.addstr(0, 0, "Terminal too small!")
                        except curses.error:
                            pass
                        list_win = None
                        detail_win = None
                    else:
                        list_win = curses.newwin(split_y - 1, w, 1, 0)
                        detail_win = curses.newwin(h - split_y - 1, w, split_y, 0)
                    stdscr.noutrefresh()

                draw_header(stdscr, w, state)
                draw_footer(stdscr, w, h, state, config_manager)
                if list_win: draw_list(list_win, state)
                if detail_win: draw_details(detail_win, state)
                draw_modal(stdscr, state)
                if state.show_help:
                    draw_help_modal(stdscr, config_manager)

                curses.doupdate()
                last_version = current_version
                force_redraw = False

            try:
                ch = stdscr.get_wch()
            except curses.error:
                # timeout with no input
                state_mgr.tick()
                continue
            if ch == curses.KEY_RESIZE:
                force_redraw = True
                continue

            key = key_name(ch)
            if key is None:
                continue
            state_mgr.handle_key(key)

        except KeyboardInterrupt:
            logger.info("KeyboardInterrupt caught, exiting...")
            break
        except InventoryError:
            raise
        except curses.error as e:
            logger.error(f"Rendering error: {e}")
            force_redraw = True

    logger.info(f"Detail cache stats: {state_mgr.state.detail_cache.get_stats()}")
    logger.info("Quitting")
