"""Deterministic A/B variations derived from a completed generation."""

from .generator import MAX_VARIATIONS, VariationGenerator

__all__ = ["MAX_VARIATIONS", "VariationGenerator"]
