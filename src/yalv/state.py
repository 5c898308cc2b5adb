"""
Application state management and the interaction state machine.

StateManager owns the single AppState of the session. The event loop in
main.py feeds it key names and timer ticks; the current mode alone decides
how a key is interpreted.

Modes:
  - Browsing: navigate, open console / SSH, request start / shutdown,
    toggle inactive domains, refresh on timer ticks
  - ConfirmingAction: y/n for a pending start or shutdown
  - EnteringSshUser: line editing of the SSH username

Any key a mode does not handle is a no-op that leaves the whole state
untouched.

Detail cache:
  - After every selection change or refresh the cache is synced so its key is
    the selected domain name (or empty when nothing is selected)
  - The detail text is only recomputed when that name changes, or after an
    explicit invalidation (toggle inactive, lifecycle action)

Threading:
  - None. Everything runs on the event loop thread, so no locks are taken.
  - Subprocess calls block the loop until they return.
"""

import logging
from dataclasses import replace
from typing import Optional

from .backend import VirshBackend
from .config import ConfigManager, config_manager
from .inventory import Inventory
from .main_actions import Handoff, open_console, open_ssh, perform_lifecycle
from .model import (
    AppState, Browsing, ConfirmingAction, EnteringSshUser, LifecycleAction, Mode,
)

logger = logging.getLogger(__name__)


class StateManager:
    """Owns AppState and maps input events to transitions."""

    def __init__(self, inventory: Inventory, backend: VirshBackend,
                 handoff: Optional[Handoff] = None, show_inactive: bool = False,
                 config: Optional[ConfigManager] = None):
        self.inventory = inventory
        self.backend = backend
        self.handoff = handoff
        self.config = config or config_manager
        self._state = AppState(show_inactive=show_inactive)
        self._version = 0

    def get_version(self) -> int:
        return self._version

    def _inc_version(self) -> None:
        self._version += 1

    @property
    def state(self) -> AppState:
        return self._state

    def get_snapshot(self) -> AppState:
        """Shallow copy for rendering; the record list is copied."""
        return replace(self._state, vms=list(self._state.vms))

    # --- Inventory / selection ---

    def load(self) -> None:
        """Initial inventory load. InventoryError propagates (fatal)."""
        self.refresh()
        logger.info(f"Loaded {len(self._state.vms)} VMs (show_all={self._state.show_inactive})")

    def refresh(self, force_details: bool = False) -> None:
        """Replace the inventory snapshot, keeping the cursor index if still valid."""
        vms = self.inventory.refresh(self._state.show_inactive)
        idx = self._state.selected_index
        if not vms:
            idx = None
        elif idx is None:
            idx = 0
        else:
            idx = min(idx, len(vms) - 1)
        self._state.vms = vms
        self._state.selected_index = idx
        self._sync_details(force=force_details)
        self._inc_version()

    def move_selection(self, delta: int) -> None:
        """Move the cursor circularly; no-op on an empty inventory."""
        count = len(self._state.vms)
        if count == 0:
            return
        if self._state.selected_index is None:
            new_idx = 0
        else:
            new_idx = (self._state.selected_index + delta) % count
        if new_idx != self._state.selected_index:
            self._state.selected_index = new_idx
            self._sync_details()
            self._inc_version()

    def _sync_details(self, force: bool = False) -> None:
        cache = self._state.detail_cache
        vm = self._state.selected_vm
        if vm is None:
            cache.invalidate()
            return
        if force:
            cache.invalidate()
        cache.get_or_compute(vm.name, self.backend.get_domain_details)

    def set_message(self, message: str) -> None:
        self._state.message = message
        self._inc_version()

    # --- Events ---

    def tick(self) -> None:
        """Timer expiry with no input: refresh while browsing."""
        if isinstance(self._state.mode, Browsing):
            self.refresh()

    def handle_key(self, key: str) -> None:
        if self._state.show_help:
            self._state.show_help = False
            self._inc_version()
            return

        mode = self._state.mode
        if isinstance(mode, Browsing):
            self._handle_browsing_key(key)
        elif isinstance(mode, ConfirmingAction):
            self._handle_confirm_key(mode, key)
        elif isinstance(mode, EnteringSshUser):
            self._handle_ssh_user_key(mode, key)
        else:
            raise TypeError(f"Unknown interaction mode: {mode!r}")

    def _is(self, key: str, action: str) -> bool:
        return self.config.is_key_binding(key, action)

    def _set_mode(self, mode: Mode) -> None:
        self._state.mode = mode
        self._inc_version()

    def _handle_browsing_key(self, key: str) -> None:
        if self._is(key, "quit"):
            logger.info("Quit requested")
            self._state.running = False
            return

        if self._state.message:
            self.set_message("")

        if self._is(key, "down"):
            self.move_selection(1)
        elif self._is(key, "up"):
            self.move_selection(-1)
        elif self._is(key, "help"):
            self._state.show_help = True
            self._inc_version()
        elif self._is(key, "toggle_inactive"):
            self._state.show_inactive = not self._state.show_inactive
            logger.info(f"Show inactive domains: {self._state.show_inactive}")
            self.refresh(force_details=True)
        elif self._is(key, "console"):
            vm = self._state.selected_vm
            if vm and vm.is_running:
                ok, msg = open_console(self.backend, self.handoff, vm.name)
                if not ok:
                    self.set_message(msg)
                self._inc_version()
        elif self._is(key, "ssh"):
            vm = self._state.selected_vm
            if vm and vm.is_running:
                addresses = self.backend.get_vm_addresses(vm.name)
                if addresses:
                    logger.info(f"Prompting username for SSH to '{vm.name}' ({addresses[0]})")
                    self._state.input_buffer = ""
                    self._set_mode(EnteringSshUser(vm_name=vm.name, resolved_ip=addresses[0]))
                else:
                    self.set_message(f"No IPv4 address found for '{vm.name}'")
        elif self._is(key, "start"):
            vm = self._state.selected_vm
            if vm and vm.is_shut_off:
                self._set_mode(ConfirmingAction(vm_name=vm.name, action=LifecycleAction.START))
        elif self._is(key, "shutdown"):
            vm = self._state.selected_vm
            if vm and vm.is_running:
                self._set_mode(ConfirmingAction(vm_name=vm.name, action=LifecycleAction.SHUTDOWN))

    def _handle_confirm_key(self, mode: ConfirmingAction, key: str) -> None:
        if self._is(key, "confirm"):
            ok, msg = perform_lifecycle(self.backend, mode.vm_name, mode.action)
            self._state.mode = Browsing()
            self.set_message(msg)
            self.refresh(force_details=True)
        elif self._is(key, "deny") or self._is(key, "cancel"):
            logger.info(f"{mode.action.value} of '{mode.vm_name}' cancelled")
            self._set_mode(Browsing())

    def _handle_ssh_user_key(self, mode: EnteringSshUser, key: str) -> None:
        if self._is(key, "cancel"):
            logger.info("SSH input cancelled")
            self._state.input_buffer = ""
            self._set_mode(Browsing())
        elif self._is(key, "submit"):
            user = self._state.input_buffer.strip()
            if not user:
                return
            ok, msg = open_ssh(self.backend, self.handoff, mode.vm_name, user, mode.resolved_ip)
            self._state.input_buffer = ""
            self._state.mode = Browsing()
            self.set_message("" if ok else msg)
        elif self._is(key, "backspace"):
            if self._state.input_buffer:
                self._state.input_buffer = self._state.input_buffer[:-1]
                self._inc_version()
        elif len(key) == 1 and key.isprintable():
            self._state.input_buffer += key
            self._inc_version()
