"""Stylization workers invoked by the job runner."""

from .providers_base import StylizationWorker, StylizedImage
from .providers_factory import create_worker
from .providers_gemini import GeminiStylizer

__all__ = [
    "GeminiStylizer",
    "StylizationWorker",
    "StylizedImage",
    "create_worker",
]
