"""Factory for stylization workers."""

from .providers_base import StylizationWorker
from .providers_gemini import GeminiStylizer


def create_worker(name: str, *, model: str | None = None) -> StylizationWorker:
    """Instantiate a stylization worker by provider name."""
    lower = name.lower()
    if lower == "gemini":
        return GeminiStylizer(model=model) if model else GeminiStylizer()
    raise ValueError(f"Unsupported provider '{name}'")
