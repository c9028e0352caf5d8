"""Client flow: submit a stylization job and poll for its outcome."""

from .controller import StylizeController
from .flow_state import FlowState, FlowStep
from .job_client import RemoteJobStore, StylizeApiClient
from .poller import PollOutcome, Poller, PollState
from .submitter import JobSubmitter

__all__ = [
    "FlowState",
    "FlowStep",
    "JobSubmitter",
    "PollOutcome",
    "PollState",
    "Poller",
    "RemoteJobStore",
    "StylizeApiClient",
    "StylizeController",
]
