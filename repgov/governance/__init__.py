"""
RepGov Reputation-Weighted Governance

Provides:
  - GovernanceError and the governance error taxonomy    (errors.py)
  - UserReputation / ReputationStore                     (reputation.py)
  - VotingPowerCalculator                                (power.py)
  - ProposalStatus / Proposal / ProposalStore            (proposals.py)
  - VoteRecord / VoteLedger                              (ledger.py)
  - BlockHeightClock                                     (clock.py)
  - GovernanceEngine                                     (engine.py)
"""

from .errors import (
    AlreadyExecutedError,
    AlreadyFinalizedError,
    AlreadyVotedError,
    GovernanceError,
    InvalidParameterError,
    InvalidProposalError,
    ProposalLifecycleError,
    ProposalNotFoundError,
    ProposalNotPassedError,
    UnauthorizedError,
    VotingEndedError,
    VotingNotEndedError,
)
from .reputation import (
    ReputationStore,
    UserReputation,
    calculate_reputation_score,
)
from .power import VotingPowerCalculator
from .proposals import (
    Proposal,
    ProposalStatus,
    ProposalStore,
)
from .ledger import VoteLedger, VoteRecord
from .clock import BlockHeightClock
from .engine import GovernanceEngine

__all__ = [
    # Errors
    "AlreadyExecutedError",
    "AlreadyFinalizedError",
    "AlreadyVotedError",
    "GovernanceError",
    "InvalidParameterError",
    "InvalidProposalError",
    "ProposalLifecycleError",
    "ProposalNotFoundError",
    "ProposalNotPassedError",
    "UnauthorizedError",
    "VotingEndedError",
    "VotingNotEndedError",
    # Reputation
    "ReputationStore",
    "UserReputation",
    "calculate_reputation_score",
    "VotingPowerCalculator",
    # Proposals / votes
    "Proposal",
    "ProposalStatus",
    "ProposalStore",
    "VoteLedger",
    "VoteRecord",
    # Engine
    "BlockHeightClock",
    "GovernanceEngine",
]
