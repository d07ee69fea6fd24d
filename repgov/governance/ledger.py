"""
Vote Ledger

One immutable VoteRecord per (proposal, voter) pair. The existence of a
record is the sole guard against double voting.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..logger import get_logger
from .errors import AlreadyVotedError

logger = get_logger(__name__)


@dataclass(frozen=True)
class VoteRecord:
    """An individual vote cast by a voter."""
    proposal_id: int
    voter: str
    support: bool           # True = for, False = against
    voting_power: int       # Snapshot at cast time, never re-evaluated
    cast_height: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "voter": self.voter,
            "vote": self.support,
            "votingPower": self.voting_power,
            "castHeight": self.cast_height,
        }


class VoteLedger:
    """Append-only map of (proposal_id, voter) → VoteRecord."""

    def __init__(self):
        self._records: Dict[Tuple[int, str], VoteRecord] = {}
        self._by_proposal: Dict[int, List[VoteRecord]] = {}

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return (proposal_id, voter) in self._records

    def record_vote(
        self,
        proposal_id: int,
        voter: str,
        support: bool,
        power: int,
        cast_height: int = 0,
    ) -> VoteRecord:
        key = (proposal_id, voter)
        if key in self._records:
            raise AlreadyVotedError(
                f"{voter} has already voted on proposal #{proposal_id}"
            )
        record = VoteRecord(
            proposal_id=proposal_id,
            voter=voter,
            support=bool(support),
            voting_power=power,
            cast_height=cast_height,
        )
        self._records[key] = record
        self._by_proposal.setdefault(proposal_id, []).append(record)
        return record

    def get_vote(self, proposal_id: int, voter: str) -> Optional[VoteRecord]:
        return self._records.get((proposal_id, voter))

    def get_votes(self, proposal_id: int) -> List[VoteRecord]:
        return list(self._by_proposal.get(proposal_id, []))

    def voter_count(self, proposal_id: int) -> int:
        return len(self._by_proposal.get(proposal_id, []))

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"<VoteLedger votes={len(self._records)}>"
