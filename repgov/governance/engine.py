"""
Governance Engine

Orchestrates submit / vote / finalize / execute and the owner-gated admin
operations over the proposal, vote and reputation stores.

Each public operation runs inside `_transaction()` and performs every
precondition check before its first write, so a call that raises leaves
all state exactly as it found it.
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from ..constants import GOVERNANCE_VOTING_PERIOD_BLOCKS
from ..exceptions import ConfigurationError
from ..logger import get_logger
from .errors import (
    AlreadyExecutedError,
    AlreadyFinalizedError,
    AlreadyVotedError,
    InvalidParameterError,
    ProposalNotPassedError,
    UnauthorizedError,
    VotingEndedError,
    VotingNotEndedError,
)
from .ledger import VoteLedger, VoteRecord
from .power import VotingPowerCalculator
from .proposals import (
    Proposal,
    ProposalStatus,
    ProposalStore,
    validate_proposal_text,
)
from .reputation import ReputationStore, UserReputation

logger = get_logger(__name__)


class GovernanceEngine:
    """
    Reputation-weighted governance state machine.

    Responsibilities:
        - Allocate proposals with a voting window of `voting_period` blocks
        - Accept one vote per (proposal, voter), weighted by current reputation
        - Finalize once the window closes (strict majority passes)
        - Flag passed proposals as executed
        - Maintain proposer / voter reputation counters
    """

    def __init__(
        self,
        owner: str,
        clock: Callable[[], int],
        voting_period: int = GOVERNANCE_VOTING_PERIOD_BLOCKS,
        proposals: Optional[ProposalStore] = None,
        votes: Optional[VoteLedger] = None,
        reputation: Optional[ReputationStore] = None,
    ):
        """
        Args:
            owner:          Identity allowed to call admin operations (fixed)
            clock:          Callable() → int   (current block height)
            voting_period:  Voting window length in blocks
        """
        if not owner:
            raise ConfigurationError("Governance owner identity is required")
        self._owner = owner
        self._clock = clock
        self._voting_period = self._validate_period(voting_period)

        self.proposals = proposals if proposals is not None else ProposalStore()
        self.votes = votes if votes is not None else VoteLedger()
        self.reputation = reputation if reputation is not None else ReputationStore()
        self.power = VotingPowerCalculator(self.reputation)

        self._lock = threading.RLock()

    # ── Internals ─────────────────────────────────────────────────────

    @contextmanager
    def _transaction(self):
        with self._lock:
            yield

    @staticmethod
    def _validate_period(period) -> int:
        if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
            raise InvalidParameterError(
                f"Voting period must be a positive number of blocks, got {period!r}"
            )
        return period

    def _require_owner(self, caller: str):
        if caller != self._owner:
            raise UnauthorizedError(f"{caller} is not the governance owner")

    @property
    def owner(self) -> str:
        return self._owner

    def current_height(self) -> int:
        return int(self._clock())

    # ── Proposals ─────────────────────────────────────────────────────

    def submit_proposal(self, proposer: str, title: str, description: str) -> int:
        validate_proposal_text(title, description)
        with self._transaction():
            start = self.current_height()
            end = start + self._voting_period
            proposal_id = self.proposals.create(proposer, title, description, start, end)
            self.reputation.increment_total_proposals(proposer)
        logger.info(
            f"Proposal #{proposal_id} submitted by {proposer}: '{title}' "
            f"(height {start}, voting ends at height {end})"
        )
        return proposal_id

    # ── Voting ────────────────────────────────────────────────────────

    def vote(self, proposal_id: int, voter: str, support: bool) -> VoteRecord:
        """
        Cast a reputation-weighted vote.

        The voter's power is computed now and stored on the record; later
        reputation changes do not alter tallies already counted.
        """
        with self._transaction():
            proposal = self.proposals.require(proposal_id)
            height = self.current_height()
            if proposal.is_voting_ended(height):
                raise VotingEndedError(
                    f"Voting on proposal #{proposal_id} ended at height "
                    f"{proposal.end_height} (current height {height})"
                )
            if self.votes.has_voted(proposal_id, voter):
                raise AlreadyVotedError(
                    f"{voter} has already voted on proposal #{proposal_id}"
                )

            power = self.power.voting_power(voter)
            record = self.votes.record_vote(proposal_id, voter, support, power, height)
            self.proposals.apply_vote(proposal_id, record.support, power)
            self.reputation.increment_votes_cast(voter)

        logger.info(
            f"Vote: {voter} → {'FOR' if record.support else 'AGAINST'} "
            f"on proposal #{proposal_id} (power={power})"
        )
        return record

    # ── Finalization / execution ──────────────────────────────────────

    def finalize(self, proposal_id: int) -> bool:
        """Close voting on a proposal. Returns True if it passed."""
        with self._transaction():
            proposal = self.proposals.require(proposal_id)
            height = self.current_height()
            if not proposal.is_voting_ended(height):
                raise VotingNotEndedError(
                    f"Voting on proposal #{proposal_id} runs until height "
                    f"{proposal.end_height} (current height {height})"
                )
            if proposal.status != ProposalStatus.ACTIVE:
                raise AlreadyFinalizedError(
                    f"Proposal #{proposal_id} already finalized "
                    f"(status={proposal.status.name})"
                )

            passed = proposal.votes_for > proposal.votes_against
            tally = f"{proposal.votes_for} for / {proposal.votes_against} against"
            if passed:
                self.proposals.set_status(proposal_id, ProposalStatus.PASSED, tally, height)
                self.reputation.increment_successful(proposal.proposer)
            else:
                self.proposals.set_status(proposal_id, ProposalStatus.FAILED, tally, height)
        return passed

    def execute(self, proposal_id: int) -> Proposal:
        """
        Flag a passed proposal as executed.

        Execution has no side effects beyond the flag and status change.
        """
        with self._transaction():
            proposal = self.proposals.require(proposal_id)
            if proposal.executed:
                raise AlreadyExecutedError(f"Proposal #{proposal_id} already executed")
            if proposal.status != ProposalStatus.PASSED:
                raise ProposalNotPassedError(
                    f"Proposal #{proposal_id} has not passed "
                    f"(status={proposal.status.name})"
                )
            self.proposals.mark_executed(proposal_id, self.current_height())
            return proposal.snapshot()

    # ── Admin ─────────────────────────────────────────────────────────

    def admin_set_voting_period(self, caller: str, new_period: int):
        """Change the window for proposals submitted from now on."""
        with self._transaction():
            self._require_owner(caller)
            old = self._voting_period
            self._voting_period = self._validate_period(new_period)
        logger.info(f"Voting period: {old} → {new_period} blocks (by {caller})")

    def admin_set_initial_voting_power(self, caller: str, identity: str, power: int):
        """Bootstrap *identity* with a voting-power floor."""
        with self._transaction():
            self._require_owner(caller)
            self.power.set_override(identity, power)

    # ── Queries ───────────────────────────────────────────────────────

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        """Copy of the proposal, or None if the id is unknown."""
        with self._transaction():
            proposal = self.proposals.get(proposal_id)
            return proposal.snapshot() if proposal is not None else None

    def get_user_reputation(self, identity: str) -> UserReputation:
        return self.reputation.get(identity)

    def calculate_reputation(self, identity: str) -> int:
        return self.reputation.calculate_reputation(identity)

    def get_voting_power(self, identity: str) -> int:
        return self.power.voting_power(identity)

    def is_voting_ended(self, proposal_id: int) -> bool:
        return self.proposals.require(proposal_id).is_voting_ended(self.current_height())

    def get_proposal_counter(self) -> int:
        return self.proposals.counter

    def has_user_voted(self, proposal_id: int, identity: str) -> bool:
        return self.votes.has_voted(proposal_id, identity)

    def get_vote(self, proposal_id: int, identity: str) -> Optional[VoteRecord]:
        return self.votes.get_vote(proposal_id, identity)

    def get_votes(self, proposal_id: int) -> List[VoteRecord]:
        return self.votes.get_votes(proposal_id)

    def get_voting_period(self) -> int:
        return self._voting_period

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self._owner,
            "height": self.current_height(),
            "votingPeriod": self._voting_period,
            "proposalCounter": self.proposals.counter,
            "activeProposals": len(self.proposals.list_proposals(ProposalStatus.ACTIVE)),
            "votesCast": len(self.votes),
            "identities": len(self.reputation),
        }

    def __repr__(self) -> str:
        return (
            f"<GovernanceEngine proposals={self.proposals.counter} "
            f"period={self._voting_period}>"
        )
