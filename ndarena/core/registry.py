"""
Array registry implementation for ndarena.

Each manager owns one registry: a slot table in which every owned array
occupies an index tagged with a generation. Releasing a slot bumps its
generation, so a stale (index, generation) pair never resolves again.
"""

from __future__ import annotations
from collections import defaultdict
from threading import RLock
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..types.aliases import Generation, SlotIndex

if TYPE_CHECKING:
    from .ndarray import NDArray


class ArrayRegistry:
    """Generational slot table of the arrays owned by one manager."""

    __slots__ = ('_slots', '_generations', '_free_slots', '_live', '_lock', '_access_stats')

    def __init__(self):
        self._slots: List[Optional[NDArray]] = []
        self._generations: List[Generation] = []
        self._free_slots: List[SlotIndex] = []
        self._live = 0
        self._lock = RLock()
        self._access_stats = defaultdict(int)

    def register(self, array: NDArray) -> Tuple[SlotIndex, Generation]:
        """Place an array in a free slot and return its key."""
        with self._lock:
            if self._free_slots:
                index = self._free_slots.pop()
                self._slots[index] = array
            else:
                index = SlotIndex(len(self._slots))
                self._slots.append(array)
                self._generations.append(Generation(0))
            self._live += 1
            self._access_stats['register'] += 1
            return index, self._generations[index]

    def get(self, index: SlotIndex, generation: Generation) -> Optional[NDArray]:
        with self._lock:
            if 0 <= index < len(self._slots) and self._generations[index] == generation:
                self._access_stats['get_hit'] += 1
                return self._slots[index]
            self._access_stats['get_miss'] += 1
            return None

    def remove(self, index: SlotIndex, generation: Generation) -> bool:
        """Vacate a slot if the key is still current."""
        with self._lock:
            if self.get(index, generation) is None:
                return False
            self._vacate(index)
            self._access_stats['remove'] += 1
            return True

    def drain(self) -> List[NDArray]:
        """Vacate every slot and return the arrays that occupied them."""
        with self._lock:
            arrays = []
            for index, array in enumerate(self._slots):
                if array is not None:
                    arrays.append(array)
                    self._vacate(SlotIndex(index))
            self._access_stats['drain'] += 1
            return arrays

    def _vacate(self, index: SlotIndex) -> None:
        self._slots[index] = None
        self._generations[index] = Generation(self._generations[index] + 1)
        self._free_slots.append(index)
        self._live -= 1

    def list_active(self) -> List[NDArray]:
        with self._lock:
            return [array for array in self._slots if array is not None]

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'live_arrays': self._live,
                'slots': len(self._slots),
                'free_slots': len(self._free_slots),
                'access_stats': dict(self._access_stats),
            }

    def __len__(self) -> int:
        return self._live

    def __contains__(self, array: object) -> bool:
        with self._lock:
            return any(slot is array for slot in self._slots)
