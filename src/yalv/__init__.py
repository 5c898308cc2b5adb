"""
yalv - Yet Another Libvirt Viewer.

A curses-based terminal dashboard for virtual machines managed by virsh. It
lists domains, shows their resources and devices, and lets the operator open a
console, SSH in, start or shut down a VM without leaving the terminal.

Features:
  - Domain table (Id, Name, VCPUs, Memory, State) refreshed every 3 seconds
  - Detail panel with IPv4 addresses, networks, interfaces, emulator, disks
  - Console and SSH handoff (the terminal is given to the child process)
  - Start / shutdown with y/n confirmation
  - Toggle between running and all domains

Main Components:
  - main.py: Event loop and curses orchestration
  - backend.py: virsh command wrapper (all data comes from virsh stdout)
  - parsers.py: Tabular parsers for `virsh list` and `virsh domifaddr`
  - domxml.py: Streaming summarizer for `virsh dumpxml`
  - inventory.py: Domain list enriched with vCPU/memory
  - state.py: Interaction state machine and selection handling
  - ui.py: Curses rendering engine
  - model.py: Data structures (VmRecord, modes, AppState)

Usage:
  yalv [--all]
  python -m yalv

Dependencies:
  - PyYAML (configuration file)
  - Python 3.10+
  - curses (built-in, not available on Windows natively)
  - virsh and ssh on PATH
"""

import os
from pathlib import Path

__version__ = "0.1.0"


def get_log_path() -> str:
    """
    Get the log file path following the XDG Base Directory layout.
    
    Returns XDG_DATA_HOME/yalv/logs/yalv.log with fallback to /tmp.
    Creates directory if it doesn't exist.
    
    Returns:
        str: Absolute path to log file (/tmp/yalv.log as fallback)
    """
    xdg_data_home = os.environ.get('XDG_DATA_HOME')
    if not xdg_data_home:
        # Default fallback: ~/.local/share
        xdg_data_home = Path.home() / '.local' / 'share'
    else:
        xdg_data_home = Path(xdg_data_home)
    
    log_dir = xdg_data_home / 'yalv' / 'logs'
    
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        return str(log_dir / 'yalv.log')
    except (PermissionError, OSError):
        return '/tmp/yalv.log'
