"""
Governance Proposals

Defines proposal lifecycle states, the Proposal dataclass, and the
ProposalStore that owns proposal records and the global id counter.
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Dict, List, Optional

from ..constants import (
    GOVERNANCE_MAX_DESCRIPTION_LENGTH,
    GOVERNANCE_MAX_TITLE_LENGTH,
)
from ..logger import get_logger
from .errors import (
    InvalidProposalError,
    ProposalLifecycleError,
    ProposalNotFoundError,
)

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class ProposalStatus(IntEnum):
    """Lifecycle stage. Proposals are created ACTIVE."""
    ACTIVE = 1      # Voting window open (or closed but not yet finalized)
    PASSED = 2      # Finalized with votes_for > votes_against
    FAILED = 3      # Finalized without a strict majority
    EXECUTED = 4    # Passed and flagged as executed


_VALID_TRANSITIONS: Dict[ProposalStatus, set] = {
    ProposalStatus.ACTIVE:   {ProposalStatus.PASSED, ProposalStatus.FAILED},
    ProposalStatus.PASSED:   {ProposalStatus.EXECUTED},
    # Terminal states
    ProposalStatus.FAILED:   set(),
    ProposalStatus.EXECUTED: set(),
}


def validate_proposal_text(title: str, description: str):
    """Boundary check for caller-supplied proposal text."""
    if not isinstance(title, str):
        raise InvalidProposalError("Proposal title must be a string")
    if not isinstance(description, str):
        raise InvalidProposalError("Proposal description must be a string")
    if len(title) > GOVERNANCE_MAX_TITLE_LENGTH:
        raise InvalidProposalError(
            f"Proposal title exceeds {GOVERNANCE_MAX_TITLE_LENGTH} characters "
            f"({len(title)})"
        )
    if len(description) > GOVERNANCE_MAX_DESCRIPTION_LENGTH:
        raise InvalidProposalError(
            f"Proposal description exceeds {GOVERNANCE_MAX_DESCRIPTION_LENGTH} "
            f"characters ({len(description)})"
        )


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Proposal:
    """
    A governance proposal.

    Fields:
        id:             Sequential identifier, starting at 1
        proposer:       Identity of the submitter
        title:          Short title (≤ 100 chars)
        description:    Rationale (≤ 500 chars)
        start_height:   Block height at submission
        end_height:     start_height + voting period; voting is closed from here on
        votes_for:      Sum of voting power cast in favour
        votes_against:  Sum of voting power cast against
        status:         Current lifecycle stage
        executed:       Set once by execute
    """
    id: int
    proposer: str
    title: str
    description: str
    start_height: int
    end_height: int
    votes_for: int = 0
    votes_against: int = 0
    status: ProposalStatus = ProposalStatus.ACTIVE
    executed: bool = False
    _history: List[Dict[str, Any]] = field(default_factory=list, repr=False)

    def __post_init__(self):
        if self.end_height < self.start_height:
            raise InvalidProposalError(
                f"end_height {self.end_height} precedes start_height {self.start_height}"
            )
        if self._history:
            return
        self._history.append({
            "from": "INIT",
            "to": self.status.name,
            "reason": "created",
            "height": self.start_height,
        })

    # ── Properties ────────────────────────────────────────────────────

    @property
    def total_votes(self) -> int:
        return self.votes_for + self.votes_against

    @property
    def is_finalized(self) -> bool:
        return self.status != ProposalStatus.ACTIVE

    @property
    def history(self) -> List[Dict[str, Any]]:
        return list(self._history)

    def is_voting_ended(self, height: int) -> bool:
        return height >= self.end_height

    # ── State transitions ─────────────────────────────────────────────

    def transition_to(self, new_status: ProposalStatus, reason: str = "", height: Optional[int] = None):
        """
        Advance proposal to *new_status*.

        Raises ProposalLifecycleError on invalid transitions.
        """
        allowed = _VALID_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise ProposalLifecycleError(
                f"Cannot transition from {self.status.name} → {new_status.name}. "
                f"Allowed: {[s.name for s in allowed]}"
            )
        old = self.status
        self._history.append({
            "from": old.name,
            "to": new_status.name,
            "reason": reason,
            "height": height,
        })
        self.status = new_status
        logger.info(
            f"Proposal #{self.id} ({self.title}): "
            f"{old.name} → {new_status.name} | {reason}"
        )

    # ── Serialization ─────────────────────────────────────────────────

    def snapshot(self) -> "Proposal":
        """Detached copy; changing it never touches the stored record."""
        return replace(self, _history=[dict(h) for h in self._history])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "proposer": self.proposer,
            "title": self.title,
            "description": self.description,
            "votesFor": self.votes_for,
            "votesAgainst": self.votes_against,
            "startHeight": self.start_height,
            "endHeight": self.end_height,
            "status": self.status.name,
            "executed": self.executed,
            "history": self.history,
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.id} '{self.title}' status={self.status.name} "
            f"for={self.votes_for} against={self.votes_against}>"
        )


# ══════════════════════════════════════════════════════════════════════
#  STORE
# ══════════════════════════════════════════════════════════════════════

class ProposalStore:
    """
    Owns proposal records keyed by id and the monotonic id counter.

    Transition helpers do not check governance preconditions (timing,
    authorization); the engine does that before calling them.
    """

    def __init__(self):
        self._proposals: Dict[int, Proposal] = {}
        self._counter = 0

    @property
    def counter(self) -> int:
        return self._counter

    def create(
        self,
        proposer: str,
        title: str,
        description: str,
        start_height: int,
        end_height: int,
    ) -> int:
        proposal_id = self._counter + 1
        self._proposals[proposal_id] = Proposal(
            id=proposal_id,
            proposer=proposer,
            title=title,
            description=description,
            start_height=start_height,
            end_height=end_height,
        )
        self._counter = proposal_id
        return proposal_id

    def get(self, proposal_id: int) -> Optional[Proposal]:
        return self._proposals.get(proposal_id)

    def require(self, proposal_id: int) -> Proposal:
        proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise ProposalNotFoundError(f"Proposal #{proposal_id} not found")
        return proposal

    def apply_vote(self, proposal_id: int, support: bool, power: int):
        proposal = self.require(proposal_id)
        if support:
            proposal.votes_for += power
        else:
            proposal.votes_against += power

    def set_status(self, proposal_id: int, new_status: ProposalStatus, reason: str = "", height: Optional[int] = None):
        self.require(proposal_id).transition_to(new_status, reason, height)

    def mark_executed(self, proposal_id: int, height: Optional[int] = None):
        proposal = self.require(proposal_id)
        proposal.transition_to(ProposalStatus.EXECUTED, "Executed", height)
        proposal.executed = True

    def list_proposals(self, status: Optional[ProposalStatus] = None) -> List[Proposal]:
        proposals = sorted(self._proposals.values(), key=lambda p: p.id)
        if status is None:
            return proposals
        return [p for p in proposals if p.status == status]

    def __len__(self) -> int:
        return len(self._proposals)

    def __repr__(self) -> str:
        return f"<ProposalStore proposals={len(self._proposals)} counter={self._counter}>"
