"""
Reputation-Weighted Voting Power

    power = max(1 + reputation // 10, admin override)

The base power of 1 means every identity can always cast a vote. An admin
may bootstrap an identity with an override, which acts as a floor: earned
reputation can raise power above it but never push it below.
"""

from typing import Dict, Optional

from ..constants import (
    GOVERNANCE_BASE_VOTING_POWER,
    GOVERNANCE_REPUTATION_PER_POWER,
)
from ..logger import get_logger
from .errors import InvalidParameterError
from .reputation import ReputationStore

logger = get_logger(__name__)


def power_from_reputation(reputation: int) -> int:
    return GOVERNANCE_BASE_VOTING_POWER + reputation // GOVERNANCE_REPUTATION_PER_POWER


class VotingPowerCalculator:
    """Derives a voter's current weight from the reputation store."""

    def __init__(self, reputation: ReputationStore):
        self._reputation = reputation
        self._overrides: Dict[str, int] = {}

    def voting_power(self, identity: str) -> int:
        earned = power_from_reputation(self._reputation.calculate_reputation(identity))
        override = self._overrides.get(identity, 0)
        return max(earned, override)

    # ── Admin overrides ───────────────────────────────────────────────

    @staticmethod
    def validate_power(power) -> int:
        if isinstance(power, bool) or not isinstance(power, int) or power < 0:
            raise InvalidParameterError(
                f"Voting power must be a non-negative integer, got {power!r}"
            )
        return power

    def set_override(self, identity: str, power: int):
        self._overrides[identity] = self.validate_power(power)
        logger.info(f"Voting power override: {identity} → {power}")

    def get_override(self, identity: str) -> Optional[int]:
        return self._overrides.get(identity)

    def __repr__(self) -> str:
        return f"<VotingPowerCalculator overrides={len(self._overrides)}>"
