"""
Streaming summarizer for `virsh dumpxml` output.

The domain descriptor is walked once as a sequence of start/end events
(xml.etree.ElementTree.XMLPullParser) while a stack of open element names is
kept. Two optional scratch records accumulate the interface and disk currently
being read; they are flushed when the element closes.

Extracted data:
  - Resources: first <vcpu> text, first <memory> text + unit (MiB-normalized)
  - Summary: network names, interface descriptors, emulator path, disks

Malformed XML is tolerated: resource extraction keeps whatever was read before
the error, summarization raises DomainXmlError so the caller can show a
placeholder for that one domain.
"""

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .model import NOT_AVAILABLE, DomainResources, DomainSummary

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_UNIT = "KiB"

# MiB per unit; k/M/G are libvirt's 1024-based shorthands.
MEMORY_UNITS_TO_MIB = {
    "b": 1 / 1048576,
    "byte": 1 / 1048576,
    "bytes": 1 / 1048576,
    "k": 1 / 1024,
    "kib": 1 / 1024,
    "m": 1,
    "mib": 1,
    "g": 1024,
    "gib": 1024,
}

NETWORK_SOURCE_ATTRS = ("network", "bridge", "dev")
DISK_SOURCE_ATTRS = ("file", "dev", "name", "volume", "path")
IGNORED_ADDRESS_ATTRS = frozenset(("type", "domain", "bus", "slot", "function"))


class DomainXmlError(ValueError):
    """The domain descriptor could not be parsed."""


def convert_memory_to_mib(value: Union[str, int, float], unit: str = DEFAULT_MEMORY_UNIT) -> Optional[str]:
    """Convert a libvirt memory amount to a "<n> MiB" string.

    Returns None for non-numeric amounts and unknown units.
    """
    factor = MEMORY_UNITS_TO_MIB.get(unit.strip().lower())
    if factor is None:
        return None
    try:
        mib = float(value) * factor
    except (TypeError, ValueError):
        return None
    fraction, _ = math.modf(mib)
    if abs(fraction) < 0.01:
        return f"{mib:.0f} MiB"
    return f"{mib:.1f} MiB"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


@dataclass
class _InterfaceScratch:
    fields: List[str] = field(default_factory=list)

    def add(self, descriptor: str) -> None:
        if descriptor not in self.fields:
            self.fields.append(descriptor)


@dataclass
class _DiskScratch:
    qualifies: bool
    target: Optional[str] = None
    source: Optional[str] = None


class DomainXmlWalker:
    """Collects resources and summary fields from start/end events."""

    def __init__(self):
        self.stack: List[str] = []
        self.vcpu: Optional[str] = None
        self.memory_value: Optional[str] = None
        self.memory_unit: str = DEFAULT_MEMORY_UNIT
        self.emulator: Optional[str] = None
        self.networks: List[str] = []
        self.interfaces: List[str] = []
        self.disks: List[str] = []
        self._interface: Optional[_InterfaceScratch] = None
        self._disk: Optional[_DiskScratch] = None

    @property
    def parent(self) -> Optional[str]:
        return self.stack[-2] if len(self.stack) >= 2 else None

    def start(self, tag: str, attrib: Dict[str, str]) -> None:
        self.stack.append(tag)

        if tag == "interface":
            self._interface = _InterfaceScratch()
            for key, value in attrib.items():
                self._interface.add(f"{key}={value}")
        elif self._interface is not None:
            for key, value in attrib.items():
                if tag == "address" and key in IGNORED_ADDRESS_ATTRS:
                    continue
                self._interface.add(f"{tag}.{key}={value}")
            if tag == "source" and self.parent == "interface":
                network = next((attrib[a] for a in NETWORK_SOURCE_ATTRS if attrib.get(a)), None)
                if network and network not in self.networks:
                    self.networks.append(network)

        if tag == "disk":
            self._disk = _DiskScratch(qualifies=attrib.get("device") == "disk")
        elif self._disk is not None and self.parent == "disk":
            if tag == "target" and self._disk.target is None:
                self._disk.target = attrib.get("dev")
            elif tag == "source" and self._disk.source is None:
                self._disk.source = next((attrib[a] for a in DISK_SOURCE_ATTRS if attrib.get(a)), None)

    def text(self, tag: str, text: str, attrib: Dict[str, str]) -> None:
        """Direct text of the innermost open element, before its first child."""
        if not text:
            return
        if tag == "vcpu" and self.vcpu is None:
            self.vcpu = text
        elif tag == "memory" and self.memory_value is None:
            self.memory_value = text
            self.memory_unit = attrib.get("unit", DEFAULT_MEMORY_UNIT)
        elif tag == "emulator" and self.emulator is None:
            self.emulator = text
        if self._interface is not None and tag != "interface":
            self._interface.add(f"{tag}={text}")

    def end(self, tag: str) -> None:
        if tag == "interface" and self._interface is not None:
            self.interfaces.append(", ".join(self._interface.fields) or NOT_AVAILABLE)
            self._interface = None
        elif tag == "disk" and self._disk is not None:
            if self._disk.qualifies:
                self.disks.append(f"{self._disk.target or 'unknown'}: {self._disk.source or 'unknown'}")
            self._disk = None

        if self.stack:
            self.stack.pop()

    def resources(self) -> DomainResources:
        memory = None
        if self.memory_value is not None:
            memory = convert_memory_to_mib(self.memory_value, self.memory_unit)
        return DomainResources(vcpu_count=self.vcpu, memory=memory)

    def summary(self) -> DomainSummary:
        return DomainSummary(
            networks=list(self.networks),
            interfaces=list(self.interfaces),
            emulator=self.emulator,
            disks=list(self.disks),
        )


def walk_domain_xml(xml_text: str) -> Tuple[DomainXmlWalker, Optional[ET.ParseError]]:
    """Run the walker over xml_text.

    Returns the walker (with everything collected up to the first error) and
    the parse error, if any.
    """
    walker = DomainXmlWalker()
    parser = ET.XMLPullParser(events=("start", "end"))
    try:
        parser.feed(xml_text)
        parser.close()
    except ET.ParseError as e:
        error = e
    else:
        error = None
    # Events queued before a syntax error are still delivered, then it is raised.
    # Direct text is handed over when the first child starts or at the end
    # event, whichever comes first, so descriptors stay in document order.
    unflushed: Optional[ET.Element] = None
    try:
        for event, elem in parser.read_events():
            if unflushed is not None and (event == "start" or unflushed is elem):
                walker.text(_local_name(unflushed.tag), (unflushed.text or "").strip(),
                            dict(unflushed.attrib))
                unflushed = None
            tag = _local_name(elem.tag)
            if event == "start":
                walker.start(tag, dict(elem.attrib))
                unflushed = elem
            else:
                walker.end(tag)
                elem.clear()
    except ET.ParseError as e:
        error = error or e
    return walker, error


def extract_resources(xml_text: str) -> DomainResources:
    """vCPU count and MiB memory of a domain; missing values stay None."""
    walker, error = walk_domain_xml(xml_text)
    if error is not None:
        logger.warning(f"Partial domain XML while reading resources: {error}")
    return walker.resources()


def summarize_domain(xml_text: str) -> DomainSummary:
    walker, error = walk_domain_xml(xml_text)
    if error is not None:
        raise DomainXmlError(str(error))
    return walker.summary()
