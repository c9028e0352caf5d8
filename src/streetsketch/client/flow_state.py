"""Explicit state of one stylize flow, owned by a single controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from ..providers.style_prompts import DEFAULT_STYLE
from ..sources.street_view import StreetViewPov

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .poller import Poller


class FlowStep(StrEnum):
    INITIAL = "initial"
    FRAMING = "framing"
    STYLING = "styling"
    GENERATING = "generating"
    DONE = "done"


@dataclass(slots=True)
class FlowState:
    """Everything the flow knows about the current request."""

    step: FlowStep = FlowStep.INITIAL
    address: str = ""
    pov: StreetViewPov = field(default_factory=StreetViewPov)
    art_style: str = DEFAULT_STYLE
    preview_url: str | None = None
    generated_image: str | None = None
    error: str | None = None
    job_id: str | None = None
    poller: "Poller | None" = None
