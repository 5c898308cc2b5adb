"""
virsh command wrapper and backend operations.

Every piece of domain state comes from the stdout of `virsh` commands; the
libvirt RPC API is never used. This module provides:
  - Listing domains (`virsh list [--all]`)
  - Resolving IPv4 addresses (`virsh domifaddr --source lease|arp|agent`)
  - Reading resources and device summaries (`virsh dumpxml`)
  - Lifecycle actions (`virsh start` / `virsh shutdown`)
  - Argument vectors for the interactive console and SSH sessions

Non-interactive commands run to completion with stdout/stderr captured.
Interactive commands (console, ssh) are only built here; running them
requires handing over the terminal, which main_actions.py does.

Key Classes:
  - VirshBackend: Command runner configured from config_manager
  - InventoryError: `virsh list` cannot run or fails (fatal)

Error Handling:
  - `virsh list` failure → InventoryError (the caller terminates)
  - domifaddr / dumpxml failure → logged, skipped or placeholder
  - start / shutdown failure → (False, message)
"""

import functools
import logging
import subprocess
from typing import Any, Callable, List, Optional, Tuple

from .config import config_manager
from .domxml import DomainXmlError, extract_resources, summarize_domain
from .model import NOT_AVAILABLE, DomainResources, LifecycleAction
from .parsers import parse_domifaddr_output

logger = logging.getLogger(__name__)


class InventoryError(RuntimeError):
    """`virsh list` could not be run or exited non-zero."""


def virsh_safe(default_return: Any = None) -> Callable:
    """
    Decorator for virsh calls whose failure must not reach the UI.

    Catches exceptions, logs them, and returns a default value so a single
    domain's failure only degrades that domain's fields.

    Args:
        default_return: Value to return if exception occurs ([], None, etc.)

    Usage:
        @virsh_safe(default_return=[])
        def get_vm_addresses(self, name: str) -> List[str]:
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(f"virsh operation failed in {func.__name__}: {e}", exc_info=True)
                return default_return
        return wrapper
    return decorator


class VirshBackend:
    def __init__(self, virsh_cmd: Optional[List[str]] = None, ssh_binary: Optional[str] = None,
                 address_sources: Optional[List[str]] = None):
        self.virsh_cmd = virsh_cmd or config_manager.get_virsh_command()
        self.ssh_binary = ssh_binary or config_manager.get_ssh_binary()
        self.address_sources = address_sources or config_manager.get_address_sources()

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [*self.virsh_cmd, *args]
        logger.debug(f"Running {' '.join(cmd)}")
        return subprocess.run(cmd, check=False, capture_output=True, text=True)

    def list_domains(self, show_all: bool = False) -> str:
        """Raw `virsh list` output. Raises InventoryError on any failure."""
        args = ["list", "--all"] if show_all else ["list"]
        logger.info(f"Running virsh list (show_all={show_all})")
        try:
            result = self._run(*args)
        except OSError as e:
            logger.error(f"Failed to run virsh: {e}")
            raise InventoryError(f"Failed to run virsh: {e}") from e
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            logger.error(f"virsh list failed: {stderr}")
            raise InventoryError(f"virsh list failed: {stderr or f'exit status {result.returncode}'}")
        return result.stdout

    def domifaddr(self, name: str, source: str) -> Optional[str]:
        """Raw `virsh domifaddr` output for one source, None on failure."""
        try:
            result = self._run("domifaddr", name, "--source", source)
        except OSError as e:
            logger.warning(f"Failed to run virsh domifaddr --source {source}: {e}")
            return None
        if result.returncode != 0:
            logger.warning(f"virsh domifaddr --source {source} failed for VM '{name}': "
                           f"{(result.stderr or '').strip()}")
            return None
        return result.stdout

    def dumpxml(self, name: str) -> Optional[str]:
        """Raw domain XML, None on failure."""
        try:
            result = self._run("dumpxml", name)
        except OSError as e:
            logger.warning(f"Failed to run virsh dumpxml for VM '{name}': {e}")
            return None
        if result.returncode != 0:
            logger.warning(f"virsh dumpxml failed for VM '{name}': {(result.stderr or '').strip()}")
            return None
        return result.stdout

    @virsh_safe(default_return=[])
    def get_vm_addresses(self, name: str) -> List[str]:
        """IPv4 addresses of a domain from every source, in discovery order.

        All sources are queried even after a hit: lease only covers
        libvirt-managed DHCP networks, so arp and agent can add addresses.
        """
        logger.info(f"Looking up IP for VM '{name}'")
        addresses: List[str] = []
        for source in self.address_sources:
            logger.info(f"Trying domifaddr --source {source} for VM '{name}'")
            output = self.domifaddr(name, source)
            if output is None:
                continue
            found = parse_domifaddr_output(output, known=addresses)
            if found:
                logger.info(f"Resolved VM '{name}' -> {', '.join(found)} (source: {source})")
            addresses.extend(found)
        if not addresses:
            logger.warning(f"No IPv4 address found for VM '{name}' from any source")
        return addresses

    @virsh_safe(default_return=DomainResources())
    def get_domain_resources(self, name: str) -> DomainResources:
        xml_text = self.dumpxml(name)
        if xml_text is None:
            return DomainResources()
        return extract_resources(xml_text)

    @virsh_safe(default_return="Details unavailable")
    def get_domain_details(self, name: str) -> str:
        """Detail panel text: addresses followed by the device summary."""
        addresses = self.get_vm_addresses(name)
        lines = [f"IPs: {', '.join(addresses) or NOT_AVAILABLE}"]
        xml_text = self.dumpxml(name)
        if xml_text is None:
            lines.append("Details unavailable: virsh dumpxml failed")
            return "\n".join(lines)
        try:
            lines.append(summarize_domain(xml_text).to_text())
        except DomainXmlError as e:
            logger.warning(f"Could not parse XML for VM '{name}': {e}")
            lines.append(f"Details unavailable: {e}")
        return "\n".join(lines)

    # Actions
    def run_lifecycle(self, name: str, action: LifecycleAction) -> Tuple[bool, str]:
        """Run `virsh start|shutdown <name>`; never raises."""
        try:
            result = self._run(action.value, name)
            if result.returncode != 0:
                return False, (result.stderr or result.stdout or f"virsh {action.value} failed").strip()
            logger.info(f"virsh {action.value} succeeded for VM '{name}'")
            return True, (result.stdout or f"Domain {name} {action.value} requested").strip()
        except Exception as e:
            logger.error(f"virsh {action.value} failed for VM '{name}': {e}", exc_info=True)
            return False, str(e)

    def console_command(self, name: str) -> List[str]:
        return [*self.virsh_cmd, "console", name]

    def ssh_command(self, user: str, address: str) -> List[str]:
        return [self.ssh_binary, f"{user}@{address}"]
