"""
Cost gate between claim deduplication and evidence gathering.

Searching and verifying dozens of claims is slow and costs money, so above
a threshold the fact-check stops and asks the user to confirm. A confirmed
request re-runs the whole pipeline; the gate never resumes mid-run.
"""

from dataclasses import dataclass
from enum import Enum

from app.constants import PipelineDefaults


class GateState(str, Enum):
    AWAITING_DECISION = "awaiting_decision"
    PROCEEDING = "proceeding"


@dataclass(frozen=True)
class GateDecision:
    state: GateState
    claim_count: int
    threshold: int

    @property
    def proceed(self) -> bool:
        return self.state == GateState.PROCEEDING

    @property
    def message(self) -> str:
        return (
            f"Found {self.claim_count} claims to check (more than {self.threshold}). "
            "Confirm to search and verify all of them."
        )


class ConfirmationGate:
    def __init__(self, threshold: int = PipelineDefaults.CLAIM_CONFIRM_THRESHOLD):
        self.threshold = threshold

    def evaluate(self, claim_count: int, confirmed: bool) -> GateDecision:
        if claim_count > self.threshold and not confirmed:
            state = GateState.AWAITING_DECISION
        else:
            state = GateState.PROCEEDING
        return GateDecision(state=state, claim_count=claim_count, threshold=self.threshold)
