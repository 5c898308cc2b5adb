import os
import tempfile

# Keep the import-time config manager away from the real ~/.config and
# ~/.local/share of whoever runs the tests.
_home = tempfile.mkdtemp(prefix="yalv-tests-")
os.environ["HOME"] = _home
os.environ["XDG_DATA_HOME"] = os.path.join(_home, ".local", "share")

import pytest
from unittest.mock import MagicMock

from yalv.config import ConfigManager
from yalv.model import VmRecord


@pytest.fixture
def config(tmp_path):
    return ConfigManager(config_dir=tmp_path / "config")


@pytest.fixture
def vms():
    return [
        VmRecord(id="1", name="web", state="running", vcpu_count="2", memory="2048 MiB"),
        VmRecord(id="2", name="db", state="running", vcpu_count="4", memory="4096 MiB"),
        VmRecord(id="-", name="build", state="shut off"),
    ]


@pytest.fixture
def backend():
    backend = MagicMock()
    backend.get_domain_details.side_effect = lambda name: f"IPs: N/A\nDetails of {name}"
    backend.get_vm_addresses.return_value = ["192.168.122.5"]
    backend.run_lifecycle.return_value = (True, "Domain started")
    backend.console_command.side_effect = lambda name: ["virsh", "console", name]
    backend.ssh_command.side_effect = lambda user, ip: ["ssh", f"{user}@{ip}"]
    return backend


@pytest.fixture
def inventory(vms):
    inventory = MagicMock()
    inventory.refresh.return_value = vms
    return inventory
