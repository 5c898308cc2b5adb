"""
Single-entry cache for the detail panel of the selected domain.

Building the detail text for a domain costs three `virsh domifaddr` calls, one
`virsh dumpxml` call and a full XML walk, so the result is kept until the
selection moves to a different domain.

Features:
- One entry, keyed by domain name
- Recomputed only when the requested name differs from the cached one
- Explicit invalidation (inventory toggle, lifecycle actions)
- Hit/miss statistics, logged when the session ends

Invariant (maintained by StateManager):
- The cached key equals the selected domain name, or the cache is empty
  when nothing is selected.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetailEntry:
    """Cached detail text for one domain."""
    vm_name: str
    text: str


class DetailCache:
    """Holds at most one DetailEntry; replaced wholesale, never patched."""

    def __init__(self):
        self._entry: Optional[DetailEntry] = None
        self._stats = {
            'hits': 0,
            'misses': 0,
            'sets': 0,
            'evictions': 0
        }

    @property
    def key(self) -> Optional[str]:
        return self._entry.vm_name if self._entry else None

    @property
    def text(self) -> Optional[str]:
        return self._entry.text if self._entry else None

    def get(self, vm_name: str) -> Optional[str]:
        """Get cached text if it belongs to vm_name."""
        if self._entry is None or self._entry.vm_name != vm_name:
            self._stats['misses'] += 1
            return None
        self._stats['hits'] += 1
        return self._entry.text

    def set(self, vm_name: str, text: str) -> None:
        if self._entry is not None and self._entry.vm_name != vm_name:
            self._stats['evictions'] += 1
        self._entry = DetailEntry(vm_name, text)
        self._stats['sets'] += 1

    def get_or_compute(self, vm_name: str, compute: Callable[[str], str]) -> str:
        """Return the cached text for vm_name, computing it on a miss."""
        cached = self.get(vm_name)
        if cached is not None:
            return cached
        logger.debug(f"Computing details for '{vm_name}'")
        text = compute(vm_name)
        self.set(vm_name, text)
        return text

    def invalidate(self) -> None:
        if self._entry is not None:
            logger.debug(f"Detail cache invalidated for '{self._entry.vm_name}'")
            self._stats['evictions'] += 1
        self._entry = None

    def get_stats(self) -> Dict[str, Any]:
        """Get cache performance statistics."""
        total_requests = self._stats['hits'] + self._stats['misses']
        hit_rate = (self._stats['hits'] / total_requests * 100) if total_requests > 0 else 0
        return {
            **self._stats,
            'cached_key': self.key,
            'hit_rate_percent': round(hit_rate, 2),
            'total_requests': total_requests
        }

