"""
Domain inventory: `virsh list` enriched with vCPU and memory.

A refresh always builds fresh VmRecords. The list command is the only fatal
dependency; a domain whose descriptor cannot be read keeps "N/A" for its
resources and the rest of the batch is unaffected.
"""

import logging
from typing import List

from .backend import VirshBackend
from .model import VmRecord
from .parsers import parse_domain_list

logger = logging.getLogger(__name__)


class Inventory:
    def __init__(self, backend: VirshBackend):
        self.backend = backend

    def refresh(self, show_inactive: bool) -> List[VmRecord]:
        """Return a new snapshot. Raises InventoryError if virsh list fails."""
        vms = parse_domain_list(self.backend.list_domains(show_all=show_inactive))
        logger.info(f"Parsed {len(vms)} VMs from virsh output")
        for vm in vms:
            resources = self.backend.get_domain_resources(vm.name)
            if resources.vcpu_count is not None:
                vm.vcpu_count = resources.vcpu_count
            if resources.memory is not None:
                vm.memory = resources.memory
        return vms
