"""
Operator action handlers for yalv.

Console and SSH sessions own the terminal while they run: curses is
suspended, the child inherits stdin/stdout, and curses is restored with a
full redraw once it exits. Lifecycle actions (start/shutdown) are plain
captured virsh calls.

All handlers return (ok, message) and never raise; the state machine shows
the message and goes back to browsing either way.
"""

import curses
import subprocess
import logging
from typing import Callable, List, Optional, Tuple

from .backend import VirshBackend
from .model import LifecycleAction

logger = logging.getLogger(__name__)

Handoff = Callable[[List[str]], Optional[int]]


def run_shell_cmd(stdscr, cmd: List[str]) -> int:
    """Run interactive command temporarily suspending curses.

    OSError from spawning the command propagates after curses is restored.
    """
    curses.def_prog_mode()
    curses.endwin()
    try:
        return subprocess.call(cmd)
    finally:
        curses.reset_prog_mode()
        curses.curs_set(0)
        stdscr.clearok(True)
        stdscr.refresh()


def _run_interactive(handoff: Handoff, cmd: List[str], what: str) -> Tuple[bool, str]:
    try:
        status = handoff(cmd)
    except OSError as e:
        logger.error(f"Failed to run {what}: {e}")
        return False, f"Failed to run {what}: {e}"
    logger.info(f"{what} exited with status {status}")
    if status:
        return False, f"{what} exited with status {status}"
    return True, ""


def open_console(backend: VirshBackend, handoff: Handoff, vm_name: str) -> Tuple[bool, str]:
    logger.info(f"Opening console for VM '{vm_name}'")
    return _run_interactive(handoff, backend.console_command(vm_name), f"console for '{vm_name}'")


def open_ssh(backend: VirshBackend, handoff: Handoff, vm_name: str,
             user: str, address: str) -> Tuple[bool, str]:
    logger.info(f"SSH into VM '{vm_name}' as {user}@{address}")
    return _run_interactive(handoff, backend.ssh_command(user, address), f"ssh to '{vm_name}'")


def perform_lifecycle(backend: VirshBackend, vm_name: str,
                      action: LifecycleAction) -> Tuple[bool, str]:
    ok, output = backend.run_lifecycle(vm_name, action)
    if ok:
        logger.info(f"{action.value} of VM '{vm_name}' succeeded: {output}")
        return True, output or f"{action.value} requested for '{vm_name}'"
    logger.error(f"{action.value} of VM '{vm_name}' failed: {output}")
    return False, f"{action.value} failed for '{vm_name}': {output}"
