"""Soft memory admission gate for uploads, transcription and generation."""

import asyncio
import gc
from dataclasses import dataclass, field
from typing import Any

from shared.config import config
from shared.enums import AdmissionLevel
from shared.errors import AdmissionDenied
from shared.logging_utils import setup_logging

from .monitor import MB, MemoryMonitor, PsutilMemoryMonitor

logger = setup_logging("admission-controller")


@dataclass(frozen=True)
class AdmissionDecision:
    allowed: bool
    level: AdmissionLevel
    stats: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SizeDecision:
    allowed: bool
    required_memory: int
    available_memory: int


class AdmissionController:
    """Decides whether a new memory-heavy operation may start.

    The gate never blocks: it answers from a fresh sample and leaves retrying
    to the caller. Reclamation passes are requested on denial and after large
    operations but are never relied on for correctness.
    """

    def __init__(
        self,
        monitor: MemoryMonitor | None = None,
        high_fraction: float | None = None,
        critical_fraction: float | None = None,
        critical_floor_bytes: int | None = None,
        size_multiplier: float | None = None,
        large_operation_bytes: int | None = None,
    ) -> None:
        budget = config.get_pipeline_bytes("admission.memory_budget_mb", 0)
        self.monitor = monitor or PsutilMemoryMonitor(budget or None)
        self.high_fraction = high_fraction or config.get_pipeline_value("admission.high_fraction", 0.75)
        self.critical_fraction = critical_fraction or config.get_pipeline_value(
            "admission.critical_fraction", 0.90
        )
        self.critical_floor_bytes = (
            critical_floor_bytes
            if critical_floor_bytes is not None
            else config.get_pipeline_bytes("admission.critical_floor_mb", 500)
        )
        self.size_multiplier = size_multiplier or config.get_pipeline_value(
            "admission.size_multiplier", 3
        )
        self.large_operation_bytes = (
            large_operation_bytes
            if large_operation_bytes is not None
            else config.get_pipeline_bytes("admission.large_operation_mb", 50)
        )
        self._pending_reclaim: asyncio.Future | None = None
        self.reclamations_requested = 0

    def check_admission(self) -> AdmissionDecision:
        sample = self.monitor.sample()
        stats = sample.as_dict()

        if sample.fraction > self.critical_fraction and sample.used > self.critical_floor_bytes:
            logger.error(
                f"Memory critical ({stats['fraction']:.0%} of {stats['total_mb']}MB used); "
                "denying memory-heavy operation"
            )
            self.request_reclamation()
            return AdmissionDecision(allowed=False, level=AdmissionLevel.CRITICAL, stats=stats)

        if sample.fraction > self.high_fraction:
            logger.warning(f"Memory usage high: {stats['used_mb']}MB ({stats['fraction']:.0%})")
            return AdmissionDecision(allowed=True, level=AdmissionLevel.HIGH, stats=stats)

        return AdmissionDecision(allowed=True, level=AdmissionLevel.NORMAL, stats=stats)

    def can_handle_size(self, size_bytes: int) -> SizeDecision:
        sample = self.monitor.sample()
        required = int(size_bytes * self.size_multiplier)
        allowed = sample.available >= required
        if not allowed:
            logger.warning(
                f"Payload of {size_bytes / MB:.1f}MB needs {required / MB:.1f}MB free, "
                f"only {sample.available / MB:.1f}MB available"
            )
            self.request_reclamation()
        return SizeDecision(
            allowed=allowed, required_memory=required, available_memory=sample.available
        )

    def ensure_admission(self) -> AdmissionDecision:
        """Raise AdmissionDenied unless a memory-heavy stage may start."""
        decision = self.check_admission()
        if not decision.allowed:
            raise AdmissionDenied(
                "Server memory is critically low; try again shortly",
                available_memory=self.monitor.sample().available,
                level=decision.level.value,
            )
        return decision

    def ensure_size(self, size_bytes: int) -> SizeDecision:
        """Raise AdmissionDenied unless a payload of this size can be processed."""
        decision = self.can_handle_size(size_bytes)
        if not decision.allowed:
            raise AdmissionDenied(
                f"Insufficient memory to process a {size_bytes / MB:.1f}MB file "
                f"(requires {decision.required_memory / MB:.1f}MB, "
                f"available {decision.available_memory / MB:.1f}MB)",
                required_memory=decision.required_memory,
                available_memory=decision.available_memory,
            )
        return decision

    def request_reclamation(self) -> None:
        """Schedule a garbage-collection pass without waiting for it."""
        self.reclamations_requested += 1
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            gc.collect()
            return

        if self._pending_reclaim is not None and not self._pending_reclaim.done():
            return
        self._pending_reclaim = loop.run_in_executor(None, gc.collect)

    def after_large_operation(self, size_bytes: int) -> None:
        if size_bytes >= self.large_operation_bytes:
            logger.info(f"Large operation finished ({size_bytes / MB:.1f}MB); requesting reclamation")
            self.request_reclamation()
