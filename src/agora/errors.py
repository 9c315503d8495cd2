"""Rejections raised by the voting process.

Every failure is a synchronous, non-retryable rejection of the current
call. A call that raises leaves all process state unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agora.models.voting import Phase


class VotingError(Exception):
    """Base class for all voting process rejections."""


class Unauthorized(VotingError):
    """Raised when the caller lacks the role an operation requires."""


class NotAuthorized(Unauthorized):
    """Raised when the caller is not a registered participant."""


class PhaseViolation(VotingError):
    """Raised when the current phase is not the one an operation requires."""

    def __init__(self, expected: Phase, actual: Phase) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Phase violation: expected {expected.value}, current phase is {actual.value}"
        )


class AlreadyRegistered(VotingError):
    """Raised on a second registration of the same identity."""


class AlreadyVoted(VotingError):
    """Raised when a participant attempts a second vote."""


class DuplicateProposal(VotingError):
    """Raised when a byte-identical description is already registered."""


class InvalidProposalIndex(VotingError):
    """Raised when a vote references a proposal index out of range."""
