"""Completion driver implementations."""

from .azure_driver import AzureOpenAICompletionDriver
from .base import CompletionDriver, CompletionResult
from .openai_driver import OpenAICompletionDriver

__all__ = [
    "AzureOpenAICompletionDriver",
    "CompletionDriver",
    "CompletionResult",
    "OpenAICompletionDriver",
]
