"""
Governance error taxonomy.

Every rule violation raised by the governance core derives from
`GovernanceError` and carries a stable numeric `code`, which the RPC layer
forwards to callers unchanged.
"""

from ..exceptions import RepGovException


class GovernanceError(RepGovException):
    """Base governance exception."""
    code = 199


class UnauthorizedError(GovernanceError):
    """Caller lacks the privilege the operation requires."""
    code = 100


class ProposalNotFoundError(GovernanceError):
    """Referenced proposal id has no record."""
    code = 101


class AlreadyVotedError(GovernanceError):
    """Voter already cast a vote on this proposal."""
    code = 102


class VotingEndedError(GovernanceError):
    """Vote arrived at or after the proposal's end height."""
    code = 103


class VotingNotEndedError(GovernanceError):
    """Finalize attempted before the proposal's end height."""
    code = 104


class AlreadyExecutedError(GovernanceError):
    """Proposal has already been executed."""
    code = 105


class AlreadyFinalizedError(GovernanceError):
    """Proposal is no longer ACTIVE."""
    code = 106


class ProposalNotPassedError(UnauthorizedError):
    """Execute attempted on a proposal that did not pass."""


class InvalidProposalError(GovernanceError):
    """Proposal title or description is out of bounds."""
    code = 107


class InvalidParameterError(GovernanceError):
    """Admin parameter is out of range."""
    code = 108


class ProposalLifecycleError(GovernanceError):
    """Illegal status transition."""
    code = 109
