"""
RepGov gov_* RPC Methods

JSON-RPC surface over the GovernanceEngine. Mutating methods take the
caller identity as `sender`; the transport in front of the node is trusted
to have authenticated it.
"""

from typing import Any, Dict, List, Optional

from ...governance.engine import GovernanceEngine
from ..server import RPCError, RPCErrorCode, RPCModule, rpc_method


def _require_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise RPCError(RPCErrorCode.INVALID_PARAMS, f"{name} must be an integer")
    return value


def _require_str(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise RPCError(RPCErrorCode.INVALID_PARAMS, f"{name} must be a non-empty string")
    return value


class GovernanceModule(RPCModule):
    """
    Governance RPC methods (gov_* namespace).

    `context` is the GovernanceEngine.
    """

    namespace = "gov"

    @property
    def engine(self) -> GovernanceEngine:
        return self.context

    # ── Read-only ─────────────────────────────────────────────────────

    @rpc_method
    async def getProposal(self, proposal_id: int) -> Optional[Dict[str, Any]]:
        """Returns the proposal as a dict, or null if the id is unknown."""
        proposal = self.engine.get_proposal(_require_int("proposal_id", proposal_id))
        return proposal.to_dict() if proposal else None

    @rpc_method
    async def getUserReputation(self, identity: str) -> Dict[str, Any]:
        return self.engine.get_user_reputation(_require_str("identity", identity)).to_dict()

    @rpc_method
    async def calculateReputation(self, identity: str) -> int:
        return self.engine.calculate_reputation(_require_str("identity", identity))

    @rpc_method
    async def getVotingPower(self, identity: str) -> int:
        return self.engine.get_voting_power(_require_str("identity", identity))

    @rpc_method
    async def isVotingEnded(self, proposal_id: int) -> bool:
        return self.engine.is_voting_ended(_require_int("proposal_id", proposal_id))

    @rpc_method
    async def getProposalCounter(self) -> int:
        return self.engine.get_proposal_counter()

    @rpc_method
    async def hasUserVoted(self, proposal_id: int, identity: str) -> bool:
        return self.engine.has_user_voted(
            _require_int("proposal_id", proposal_id),
            _require_str("identity", identity),
        )

    @rpc_method
    async def getVotes(self, proposal_id: int) -> List[Dict[str, Any]]:
        return [v.to_dict() for v in self.engine.get_votes(_require_int("proposal_id", proposal_id))]

    @rpc_method
    async def getVotingPeriod(self) -> int:
        return self.engine.get_voting_period()

    @rpc_method
    async def blockHeight(self) -> int:
        return self.engine.current_height()

    # ── Mutating ──────────────────────────────────────────────────────

    @rpc_method
    async def submitProposal(self, sender: str, title: str, description: str) -> int:
        """Returns the new proposal id."""
        return self.engine.submit_proposal(_require_str("sender", sender), title, description)

    @rpc_method
    async def vote(self, sender: str, proposal_id: int, support: bool) -> Dict[str, Any]:
        if not isinstance(support, bool):
            raise RPCError(RPCErrorCode.INVALID_PARAMS, "support must be a boolean")
        record = self.engine.vote(
            _require_int("proposal_id", proposal_id),
            _require_str("sender", sender),
            support,
        )
        return record.to_dict()

    @rpc_method
    async def finalize(self, proposal_id: int) -> bool:
        """Returns true if the proposal passed."""
        return self.engine.finalize(_require_int("proposal_id", proposal_id))

    @rpc_method
    async def execute(self, proposal_id: int) -> Dict[str, Any]:
        return self.engine.execute(_require_int("proposal_id", proposal_id)).to_dict()

    @rpc_method
    async def setVotingPeriod(self, sender: str, period: int) -> bool:
        self.engine.admin_set_voting_period(_require_str("sender", sender), period)
        return True

    @rpc_method
    async def setInitialVotingPower(self, sender: str, identity: str, power: int) -> bool:
        self.engine.admin_set_initial_voting_power(
            _require_str("sender", sender),
            _require_str("identity", identity),
            power,
        )
        return True
