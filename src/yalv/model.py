"""
Data models and structures for yalv application state.

This module defines the dataclasses that represent virsh domains and the
interactive session. Used throughout the app for:
  - Type safety and IDE autocomplete
  - Clear separation of data (models) from logic (backend/ui/state)
  - Easy pretty-printing for debugging

Data Classes:
  - VmRecord: One row of `virsh list` (id, name, state) plus vCPU/memory
  - DomainResources: vCPU count and memory extracted from `virsh dumpxml`
  - DomainSummary: Networks, interfaces, emulator and disks of a domain
  - Browsing / ConfirmingAction / EnteringSshUser: Interaction modes
  - AppState: Complete application state (records, selection, detail cache)

Key Fields:
  - Placeholders ("N/A") for data that could not be obtained
  - Modes are frozen; a transition replaces the mode object
  - selected_index is None when the record list is empty
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .cache import DetailCache

NOT_AVAILABLE = "N/A"

RUNNING_STATE = "running"
PAUSED_STATE = "paused"
SHUT_OFF_STATES = ("shut off", "crashed")


@dataclass
class VmRecord:
    id: str
    name: str
    state: str
    vcpu_count: str = NOT_AVAILABLE
    memory: str = NOT_AVAILABLE

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING_STATE

    @property
    def is_shut_off(self) -> bool:
        return self.state in SHUT_OFF_STATES


@dataclass(frozen=True)
class DomainResources:
    vcpu_count: Optional[str] = None
    memory: Optional[str] = None  # formatted, e.g. "2048 MiB"


@dataclass(frozen=True)
class DomainSummary:
    networks: List[str] = field(default_factory=list)
    interfaces: List[str] = field(default_factory=list)
    emulator: Optional[str] = None
    disks: List[str] = field(default_factory=list)

    def to_text(self) -> str:
        return "\n".join([
            f"Network: {', '.join(self.networks) or NOT_AVAILABLE}",
            f"Interfaces: {' | '.join(self.interfaces) or NOT_AVAILABLE}",
            f"Emulator: {self.emulator or NOT_AVAILABLE}",
            f"Disks: {', '.join(self.disks) or NOT_AVAILABLE}",
        ])


class LifecycleAction(Enum):
    START = "start"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class Browsing:
    pass


@dataclass(frozen=True)
class ConfirmingAction:
    vm_name: str
    action: LifecycleAction


@dataclass(frozen=True)
class EnteringSshUser:
    vm_name: str
    resolved_ip: str


Mode = Union[Browsing, ConfirmingAction, EnteringSshUser]


@dataclass
class AppState:
    vms: List[VmRecord] = field(default_factory=list)
    selected_index: Optional[int] = None
    mode: Mode = field(default_factory=Browsing)
    input_buffer: str = ""
    show_inactive: bool = False
    detail_cache: DetailCache = field(default_factory=DetailCache)
    message: str = ""
    show_help: bool = False
    running: bool = True

    @property
    def selected_vm(self) -> Optional[VmRecord]:
        if self.selected_index is None or self.selected_index >= len(self.vms):
            return None
        return self.vms[self.selected_index]
