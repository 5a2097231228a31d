"""Memory sampling backends for the admission controller."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import psutil

MB = 1024 * 1024


@dataclass(frozen=True)
class MemorySample:
    """Point-in-time memory figures in bytes."""

    used: int
    total: int
    available: int

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 1.0
        return self.used / self.total

    def as_dict(self) -> dict[str, float]:
        return {
            "used_mb": round(self.used / MB, 1),
            "total_mb": round(self.total / MB, 1),
            "available_mb": round(self.available / MB, 1),
            "fraction": round(self.fraction, 4),
        }


class MemoryMonitor(ABC):
    """Poll-based source of memory samples."""

    @abstractmethod
    def sample(self) -> MemorySample:
        """Return the current memory figures."""
        pass


class PsutilMemoryMonitor(MemoryMonitor):
    """Samples this process's resident set against a memory budget.

    With no budget configured the budget is the machine's total memory.
    Available memory is whatever is left in the budget, bounded by what the
    operating system reports as available.
    """

    def __init__(self, budget_bytes: int | None = None) -> None:
        self._process = psutil.Process()
        self.budget_bytes = budget_bytes or None

    def sample(self) -> MemorySample:
        rss = self._process.memory_info().rss
        system = psutil.virtual_memory()
        total = self.budget_bytes or system.total
        available = max(0, min(total - rss, system.available))
        return MemorySample(used=rss, total=total, available=available)
