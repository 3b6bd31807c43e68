"""Caller-owned, append-only log of rays.

Rays are immutable once created; the only later write is the end point,
and only once.  Bad indices and repeated end writes are reported with
``warnings.warn`` and otherwise ignored.  Writes take a lock so traces
running in parallel can share one registry; reads do not.
"""

import threading
import warnings
from typing import NamedTuple, Optional

from .datatypes import Ray


class RayRecord(NamedTuple):
    ray: Ray
    end: Optional[tuple[float, float]] = None  # None: unbounded


class RayRegistry:
    """Ordered store of RayRecords addressed by index."""

    def __init__(self):
        self._records: list[RayRecord] = []
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(list(self._records))

    def _check_index(self, index, action) -> bool:
        if 0 <= index < len(self._records):
            return True
        warnings.warn(
            f"cannot {action} ray {index}: registry holds {len(self._records)} rays",
            RuntimeWarning,
            stacklevel=3,
        )
        return False

    def append(self, ray: Ray) -> int:
        """Add *ray* and return its index."""
        with self._lock:
            self._records.append(RayRecord(ray))
            return len(self._records) - 1

    def create(self, x0, y0, dx, dy) -> int:
        return self.append(Ray(x0, y0, dx, dy))

    def get(self, index) -> Optional[RayRecord]:
        if not self._check_index(index, "read"):
            return None
        return self._records[index]

    def set_end(self, index, x, y) -> bool:
        """Terminate ray *index* at (x, y).  Returns False if nothing was written."""
        with self._lock:
            if not self._check_index(index, "end"):
                return False
            record = self._records[index]
            if record.end is not None:
                warnings.warn(
                    f"ray {index} already ends at {record.end}; keeping it",
                    RuntimeWarning,
                    stacklevel=2,
                )
                return False
            self._records[index] = record._replace(end=(x, y))
            return True

    def record_interaction(self, index, result, *rays: Ray) -> list[int]:
        """End ray *index* at the hit point of *result* and append *rays*.

        *rays* are typically the outgoing rays from ``trace.outgoing_rays``;
        ``None`` entries (no refracted ray) are skipped.  Nothing is
        appended if ray *index* could not be ended.
        """
        if not self.set_end(index, result.x_r, result.y_r):
            return []
        return [self.append(ray) for ray in rays if ray is not None]
