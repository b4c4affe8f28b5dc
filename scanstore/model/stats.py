"""Access statistics for the scan results storage."""

from __future__ import annotations

import threading


class AccessStatistics:
    """Counts storage reads and how many of them returned results.

    Counters only grow for the lifetime of the process.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._num_reads = 0
        self._num_hits = 0

    @property
    def num_reads(self) -> int:
        return self._num_reads

    @property
    def num_hits(self) -> int:
        return self._num_hits

    def record_read(self, hit: bool) -> None:
        with self._lock:
            self._num_reads += 1
            if hit:
                self._num_hits += 1

    @property
    def hit_ratio(self) -> float:
        with self._lock:
            if not self._num_reads:
                return 0.0
            return self._num_hits / self._num_reads

    def to_dict(self) -> dict:
        with self._lock:
            return {"num_reads": self._num_reads, "num_hits": self._num_hits}

    def __repr__(self) -> str:
        return f"AccessStatistics(num_reads={self._num_reads}, num_hits={self._num_hits})"
