"""
Curses-based Terminal UI rendering engine.

This module handles all terminal rendering via the curses library. It provides:
  - Color initialization and color pair management
  - Domain table rendering (Id, Name, VCPUs, Memory, State)
  - Detail panel for the selected domain (IPs, networks, disks...)
  - One-line modal panel (y/n confirmation, SSH username entry)
  - Help overlay and footer

Rendering Strategy:
  - Every draw_* function reads the AppState snapshot and nothing else
  - Single curses window (stdscr) with regions:
    - Header: Title bar
    - Main: Domain table (top) and detail panel (bottom)
    - Footer: Status message or shortcuts
  - Only redrawn when the state version changes (see main.py)

Color Pairs (initialized in init_colors):
  1: White (default text)
  2: Green (running)
  3: Red (shut off / errors)
  4: Cyan (headers/borders)
  5: Magenta (column header)
  6: Yellow (paused)
  7: Black on cyan (title / selected row)
"""

import curses
from typing import List, Optional

from .config import ConfigManager
from .model import (
    AppState, ConfirmingAction, EnteringSshUser, VmRecord, PAUSED_STATE,
)

# --- COLUMN LAYOUT CONSTANTS ---
COL_ID = 6
COL_VCPUS = 7
COL_MEMORY = 12
COL_STATE = 15
MIN_NAME = 20


def init_colors():
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(1, curses.COLOR_WHITE, -1)    # Default
    curses.init_pair(2, curses.COLOR_GREEN, -1)    # Running
    curses.init_pair(3, curses.COLOR_RED, -1)      # Shut off / Error
    curses.init_pair(4, curses.COLOR_CYAN, -1)     # Highlight / Secondary
    curses.init_pair(5, curses.COLOR_MAGENTA, -1)  # Column header
    curses.init_pair(6, curses.COLOR_YELLOW, -1)   # Paused
    curses.init_pair(7, curses.COLOR_BLACK, curses.COLOR_CYAN) # Inverse Highlight


def state_color(vm: VmRecord) -> int:
    if vm.is_running:
        return curses.color_pair(2)
    if vm.is_shut_off:
        return curses.color_pair(3)
    if vm.state == PAUSED_STATE:
        return curses.color_pair(6)
    return curses.A_NORMAL


def _name_width(term_width: int) -> int:
    fixed = COL_ID + COL_VCPUS + COL_MEMORY + COL_STATE + 8
    return max(MIN_NAME, term_width - fixed)


def format_header(term_width: int) -> str:
    w_name = _name_width(term_width)
    return (f"   {'Id':<{COL_ID}} {'Name':<{w_name}} {'VCPUs':<{COL_VCPUS}} "
            f"{'Memory':<{COL_MEMORY}} ")


def format_row(vm: VmRecord, term_width: int) -> str:
    """Row text up to (not including) the state column."""
    w_name = _name_width(term_width)
    return (f"{vm.id[:COL_ID-1]:<{COL_ID}} {vm.name[:w_name-1]:<{w_name}} "
            f"{vm.vcpu_count:<{COL_VCPUS}} {vm.memory:<{COL_MEMORY}} ")


def visible_range(selected: Optional[int], total: int, max_items: int) -> range:
    """Rows to draw so the selected one stays in view."""
    if max_items <= 0:
        return range(0)
    offset = 0
    if selected is not None and selected >= max_items:
        offset = selected - max_items + 1
    return range(offset, min(total, offset + max_items))


def draw_header(stdscr, width, state: AppState):
    scope = "all domains" if state.show_inactive else "running domains"
    title = f" yalv - {scope} ({len(state.vms)}) "
    try:
        stdscr.addstr(0, 0, title.center(width)[:max(0, width - 1)], curses.color_pair(7) | curses.A_BOLD)
    except curses.error:
        pass
    stdscr.noutrefresh()


def draw_list(win, state: AppState):
    """Render the domain table."""
    h, w = win.getmaxyx()
    win.erase()
    win.box()

    try:
        win.addstr(0, 2, " Virtual Machines ", curses.A_BOLD | curses.color_pair(4))
        header = format_header(w) + f"{'State':<{COL_STATE}}"
        win.addstr(1, 1, header[:w-2], curses.color_pair(5) | curses.A_BOLD)

        if not state.vms:
            win.addstr(2, 3, "No domains"[:w-4], curses.A_DIM)

        start_y = 2
        for row, idx in enumerate(visible_range(state.selected_index, len(state.vms), h - 3)):
            vm = state.vms[idx]
            is_selected = (idx == state.selected_index)
            row_style = curses.color_pair(7) if is_selected else curses.A_NORMAL
            marker = ">> " if is_selected else "   "
            line = marker + format_row(vm, w)
            win.addstr(start_y + row, 1, line[:w-2], row_style)
            if len(line) < w - 2:
                s_style = state_color(vm) | (curses.A_REVERSE if is_selected else 0)
                win.addstr(start_y + row, 1 + len(line), vm.state[:w - 3 - len(line)], s_style)
    except curses.error:
        pass

    win.noutrefresh()


def draw_details(win, state: AppState):
    h, w = win.getmaxyx()
    win.erase()
    win.attron(curses.color_pair(4))
    win.box()
    win.attroff(curses.color_pair(4))

    vm = state.selected_vm
    title = f" {vm.name} " if vm else " Details "
    lines: List[str] = []
    if vm:
        lines.append(f"State: {vm.state}   VCPUs: {vm.vcpu_count}   Memory: {vm.memory}")
        text = state.detail_cache.text if state.detail_cache.key == vm.name else None
        lines.extend((text or "Loading...").splitlines())

    try:
        win.addstr(0, 2, title[:w-4], curses.A_BOLD)
        for i, line in enumerate(lines):
            if i + 1 >= h - 1:
                break
            win.addstr(i + 1, 2, line[:w-4])
    except curses.error:
        pass

    win.noutrefresh()


def draw_modal(stdscr, state: AppState):
    """One-line panel above the footer for confirmation or username entry."""
    mode = state.mode
    if isinstance(mode, ConfirmingAction):
        text = f" {mode.action.value.capitalize()} '{mode.vm_name}'? (y/n) "
        style = curses.color_pair(3) | curses.A_BOLD
        show_cursor = False
    elif isinstance(mode, EnteringSshUser):
        text = f" SSH user for {mode.vm_name} ({mode.resolved_ip}): {state.input_buffer}"
        style = curses.color_pair(4) | curses.A_BOLD
        show_cursor = True
    else:
        return

    max_h, max_w = stdscr.getmaxyx()
    box_w = max(10, min(max(len(text) + 4, 40), max_w - 2))
    start_y = max(0, max_h - 5)
    start_x = max(0, (max_w - box_w) // 2)
    win = curses.newwin(3, box_w, start_y, start_x)
    win.attron(style)
    win.box()
    win.attroff(style)
    try:
        shown = text if len(text) < box_w - 2 else text[-(box_w - 3):]
        win.addstr(1, 1, shown, curses.A_BOLD)
        if show_cursor:
            win.addstr(1, 1 + len(shown), "|", curses.A_BLINK)
    except curses.error:
        pass
    win.noutrefresh()


def draw_footer(stdscr, width, height, state: AppState, config: ConfigManager):
    bar_y = height - 1
    try:
        stdscr.move(bar_y, 0)
        stdscr.clrtoeol()
        if state.message:
            stdscr.addstr(bar_y, 0, f" {state.message} "[:max(0, width - 1)], curses.color_pair(3) | curses.A_BOLD)
        else:
            stdscr.addstr(bar_y, 0, shortcut_text(config)[:max(0, width - 1)], curses.A_DIM)
    except curses.error:
        pass
    stdscr.noutrefresh()


def _keys(config: ConfigManager, action: str) -> str:
    return "/".join(config.get_key_bindings(action))


def shortcut_text(config: ConfigManager) -> str:
    return (f" {_keys(config, 'quit')}: quit | {_keys(config, 'down')}/{_keys(config, 'up')}: navigate"
            f" | {_keys(config, 'console')}: console | {_keys(config, 'ssh')}: ssh"
            f" | {_keys(config, 'start')}: start | {_keys(config, 'shutdown')}: shutdown"
            f" | {_keys(config, 'toggle_inactive')}: all/running | {_keys(config, 'help')}: help ")


def help_lines(config: ConfigManager) -> List[str]:
    return [
        " yalv HELP ",
        "------------------",
        f"  {_keys(config, 'down'):<14}: Move selection down",
        f"  {_keys(config, 'up'):<14}: Move selection up",
        f"  {_keys(config, 'console'):<14}: Open console (running VMs)",
        f"  {_keys(config, 'ssh'):<14}: SSH into VM (running VMs)",
        f"  {_keys(config, 'start'):<14}: Start VM (shut off VMs)",
        f"  {_keys(config, 'shutdown'):<14}: Shut down VM (running VMs)",
        f"  {_keys(config, 'toggle_inactive'):<14}: Show all / running only",
        f"  {_keys(config, 'quit'):<14}: Quit",
        "",
        " Press any key to close ",
    ]


def draw_help_modal(stdscr, config: ConfigManager):
    max_h, max_w = stdscr.getmaxyx()
    lines = help_lines(config)
    width = min(50, max_w - 2)
    height = min(len(lines) + 2, max_h - 2)
    if width < 4 or height < 3:
        return

    start_y = max(0, (max_h - height) // 2)
    start_x = max(0, (max_w - width) // 2)

    win = curses.newwin(height, width, start_y, start_x)
    win.attron(curses.color_pair(4))
    win.box()
    win.attroff(curses.color_pair(4))

    for i in range(height - 2):
        if i >= len(lines):
            break
        line = lines[i]
        try:
            if i == 0:
                win.addstr(1+i, max(1, (width-len(line))//2), line[:width-2], curses.A_BOLD | curses.color_pair(4))
            else:
                win.addstr(1+i, 2, line[:width-4])
        except curses.error:
            pass
    win.noutrefresh()
