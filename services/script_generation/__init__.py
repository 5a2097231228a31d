"""LLM-driven script generation with post-processing and quality scoring."""

from .postprocessor import NormalizedGeneration, normalize, parse_generation
from .quality import quality_score
from .worker import GenerationResult, GenerationWorker

__all__ = [
    "GenerationResult",
    "GenerationWorker",
    "NormalizedGeneration",
    "normalize",
    "parse_generation",
    "quality_score",
]
