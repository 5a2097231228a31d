"""Memory admission control for memory-heavy pipeline stages."""

from .controller import AdmissionController, AdmissionDecision, SizeDecision
from .monitor import MemoryMonitor, MemorySample, PsutilMemoryMonitor

__all__ = [
    "AdmissionController",
    "AdmissionDecision",
    "MemoryMonitor",
    "MemorySample",
    "PsutilMemoryMonitor",
    "SizeDecision",
]
