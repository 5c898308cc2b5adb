"""
Parsers for the tabular output of virsh.

`virsh list` and `virsh domifaddr` both print a header line and a dashed
separator line followed by whitespace-separated columns. Both parsers skip the
first two lines unconditionally and silently drop rows they cannot use, so
malformed output never aborts a refresh.

Example `virsh list --all` output:

     Id   Name       State
    --------------------------
     1    vm1        running
     -    vm2        shut off

Example `virsh domifaddr vm1` output:

     Name       MAC address          Protocol     Address
    -------------------------------------------------------
     vnet0      52:54:00:xx:xx:xx    ipv4         192.168.122.5/24
"""

from typing import List, Optional

from .model import VmRecord

HEADER_LINES = 2
SEPARATOR_CHAR = "-"
IPV4_PROTOCOL = "ipv4"


def parse_domain_list(output: str) -> List[VmRecord]:
    """Parse `virsh list` output into VmRecords (vCPU/memory left as N/A).

    The state column may contain spaces ("shut off"), so everything after the
    name is joined back together.
    """
    vms = []
    for line in output.splitlines()[HEADER_LINES:]:
        trimmed = line.strip()
        if not trimmed or all(c == SEPARATOR_CHAR for c in trimmed):
            continue
        parts = trimmed.split()
        if len(parts) < 3:
            continue
        vms.append(VmRecord(id=parts[0], name=parts[1], state=" ".join(parts[2:])))
    return vms


def parse_domifaddr_output(output: str, known: Optional[List[str]] = None) -> List[str]:
    """Extract IPv4 addresses (prefix length stripped) from `virsh domifaddr`.

    Addresses already present in `known` are skipped; the returned list holds
    only new addresses, in output order.
    """
    seen = list(known or [])
    found = []
    for line in output.splitlines()[HEADER_LINES:]:
        parts = line.split()
        if len(parts) >= 4 and parts[2] == IPV4_PROTOCOL:
            ip = parts[3].split("/", 1)[0]
            if ip and ip not in seen:
                seen.append(ip)
                found.append(ip)
    return found
