"""Flow controller driving framing, styling and generation for one user."""

from __future__ import annotations

import logging
from dataclasses import replace

from ..jobs.job_errors import FlowStateError, SubmissionRejectedError
from ..jobs.job_models import StylizeJobRequest
from ..providers.style_prompts import ART_STYLES
from ..sources.street_view import StreetViewPov, StreetViewSource
from .flow_state import FlowState, FlowStep
from .poller import PollOutcome, PollState
from .submitter import JobSubmitter, stop_active_poller

logger = logging.getLogger(__name__)

INVALID_ADDRESS_MESSAGE = "Please enter a valid address."
FORBIDDEN_MESSAGE = "Failed to load Street View image (Error 403). Check API key."
NOT_FOUND_MESSAGE = "Could not find a Street View image for that address."
TIMEOUT_MESSAGE = "Stylization timed out. Please try again."
GENERIC_FAILURE_MESSAGE = "Failed to generate the image. Please try again."
SUBMISSION_FAILURE_MESSAGE = "Could not start the stylization job. Please try again."


def describe_failure(message: str | None) -> str:
    """Map a runner failure message to the text shown to the user."""
    text = message or ""
    if "403" in text:
        return FORBIDDEN_MESSAGE
    if "404" in text:
        return NOT_FOUND_MESSAGE
    return GENERIC_FAILURE_MESSAGE


class StylizeController:
    """Owns one :class:`FlowState` and every transition applied to it."""

    def __init__(
        self,
        *,
        submitter: JobSubmitter,
        source: StreetViewSource,
        state: FlowState | None = None,
    ) -> None:
        self.submitter = submitter
        self.source = source
        self.state = state or FlowState()

    # ------------------------------------------------------------------
    # Framing
    # ------------------------------------------------------------------
    def submit_address(self, address: str) -> FlowState:
        if not address.strip():
            self.state.error = INVALID_ADDRESS_MESSAGE
            return self.state
        stop_active_poller(self.state)
        self.state.address = address.strip()
        self.state.pov = StreetViewPov()
        self.state.generated_image = None
        self.state.error = None
        self.state.step = FlowStep.FRAMING
        self._refresh_preview()
        return self.state

    def set_pov(
        self,
        *,
        heading: int | None = None,
        pitch: int | None = None,
        fov: int | None = None,
    ) -> FlowState:
        if self.state.step is not FlowStep.FRAMING:
            raise FlowStateError("Camera can only be adjusted while framing")
        pov = self.state.pov
        self.state.pov = replace(
            pov,
            heading=pov.heading if heading is None else heading,
            pitch=pov.pitch if pitch is None else pitch,
            fov=pov.fov if fov is None else fov,
        ).clamped()
        self._refresh_preview()
        return self.state

    def capture(self) -> FlowState:
        if self.state.step is not FlowStep.FRAMING or not self.state.preview_url:
            raise FlowStateError("Nothing to capture yet")
        self.state.step = FlowStep.STYLING
        return self.state

    def select_style(self, art_style: str) -> FlowState:
        if art_style not in ART_STYLES:
            raise ValueError(f"Unsupported art style '{art_style}'")
        self.state.art_style = art_style
        return self.state

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    async def stylize(self) -> FlowState:
        """Submit the captured frame and wait until the job resolves."""
        if self.state.step not in (FlowStep.STYLING, FlowStep.DONE) or not self.state.preview_url:
            raise FlowStateError("Capture a frame before stylizing")
        request = StylizeJobRequest(
            image_url=self.state.preview_url, art_style=self.state.art_style
        )
        try:
            poller = await self.submitter.submit(self.state, request)
        except SubmissionRejectedError:
            self.state.error = SUBMISSION_FAILURE_MESSAGE
            return self.state

        # the previous image stays until a new job is accepted
        self.state.generated_image = None
        outcome = await poller.wait()
        self.apply_outcome(outcome)
        return self.state

    def apply_outcome(self, outcome: PollOutcome) -> None:
        """Fold a poller outcome into the flow state."""
        if outcome.state is PollState.CANCELLED or outcome.job_id != self.state.job_id:
            return
        self.state.poller = None
        self.state.job_id = None
        if outcome.state is PollState.RESOLVED_COMPLETE:
            self.state.generated_image = outcome.result
            self.state.error = None
            self.state.step = FlowStep.DONE
            return
        self.state.step = FlowStep.STYLING
        if outcome.state is PollState.TIMED_OUT:
            self.state.error = TIMEOUT_MESSAGE
        else:
            self.state.error = describe_failure(outcome.message)
        logger.info(
            "client.flow.failed",
            extra={"job_id": outcome.job_id, "poll_state": outcome.state.value},
        )

    # ------------------------------------------------------------------
    # Resets
    # ------------------------------------------------------------------
    def recapture(self) -> FlowState:
        stop_active_poller(self.state)
        self.state.generated_image = None
        self.state.error = None
        self.state.step = FlowStep.FRAMING
        return self.state

    def start_over(self) -> FlowState:
        stop_active_poller(self.state)
        self.state = FlowState()
        return self.state

    def _refresh_preview(self) -> None:
        self.state.preview_url = self.source.image_url(self.state.address, self.state.pov)
