"""
Reputation Store

Per-identity lifetime counters and the reputation score derived from them.
The score is never stored; it is recomputed from the counters on every read
so it cannot drift from the formula.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict

from ..constants import (
    GOVERNANCE_SUCCESS_RATE_SCALE,
    GOVERNANCE_VOTES_PER_REPUTATION,
)
from ..logger import get_logger

logger = get_logger(__name__)


def calculate_reputation_score(
    total_proposals: int,
    successful_proposals: int,
    total_votes_cast: int,
) -> int:
    """
    Derived reputation: proposal success rate (percent) plus one point per
    ten votes cast. Integer division throughout.

    An identity that has never proposed scores 0, regardless of votes cast.
    """
    if total_proposals == 0:
        return 0
    success_rate = successful_proposals * GOVERNANCE_SUCCESS_RATE_SCALE // total_proposals
    activity = total_votes_cast // GOVERNANCE_VOTES_PER_REPUTATION
    return success_rate + activity


@dataclass
class UserReputation:
    """Lifetime counters for one identity."""
    total_proposals: int = 0
    successful_proposals: int = 0
    total_votes_cast: int = 0

    @property
    def reputation_score(self) -> int:
        return calculate_reputation_score(
            self.total_proposals,
            self.successful_proposals,
            self.total_votes_cast,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalProposals": self.total_proposals,
            "successfulProposals": self.successful_proposals,
            "totalVotesCast": self.total_votes_cast,
            "reputationScore": self.reputation_score,
        }


class ReputationStore:
    """
    Keyed store of `UserReputation` records.

    Records are created lazily: reading an unknown identity returns the
    all-zero default without inserting it.
    """

    def __init__(self):
        self._records: Dict[str, UserReputation] = {}

    def get(self, identity: str) -> UserReputation:
        """Return a copy of *identity*'s record (zero default if absent)."""
        record = self._records.get(identity)
        if record is None:
            return UserReputation()
        return replace(record)

    def _record(self, identity: str) -> UserReputation:
        record = self._records.get(identity)
        if record is None:
            record = UserReputation()
            self._records[identity] = record
        return record

    def increment_total_proposals(self, identity: str) -> UserReputation:
        record = self._record(identity)
        record.total_proposals += 1
        return replace(record)

    def increment_successful(self, identity: str) -> UserReputation:
        record = self._record(identity)
        record.successful_proposals += 1
        logger.debug(
            f"Reputation: {identity} successful proposals = {record.successful_proposals}"
        )
        return replace(record)

    def increment_votes_cast(self, identity: str) -> UserReputation:
        record = self._record(identity)
        record.total_votes_cast += 1
        return replace(record)

    def calculate_reputation(self, identity: str) -> int:
        record = self._records.get(identity)
        if record is None:
            return 0
        return record.reputation_score

    def __contains__(self, identity: str) -> bool:
        return identity in self._records

    def __len__(self) -> int:
        return len(self._records)

    def to_dict(self) -> Dict[str, Any]:
        return {identity: r.to_dict() for identity, r in self._records.items()}

    def __repr__(self) -> str:
        return f"<ReputationStore identities={len(self._records)}>"
