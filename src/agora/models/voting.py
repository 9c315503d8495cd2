"""Voting process data models.

The process moves through six phases. The administrator may set any
phase at any time; every other operation is gated on the exact phase
it requires.

Participants are keyed by identity. Proposals are keyed by their
registration-order index, which is stable and dense (0..N-1).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class Phase(str, enum.Enum):
    """Stage of the voting process. Exactly one is current at a time."""
    REGISTERING_PARTICIPANTS = "registering_participants"
    PROPOSALS_OPEN = "proposals_open"
    PROPOSALS_CLOSED = "proposals_closed"
    VOTING_OPEN = "voting_open"
    VOTING_CLOSED = "voting_closed"
    TALLIED = "tallied"


@dataclass
class Participant:
    """Voting state of a single registered identity.

    has_voted flips False -> True exactly once. voted_proposal_index
    is not meaningful unless has_voted is True.
    """
    identity: str
    is_registered: bool = True
    has_voted: bool = False
    voted_proposal_index: Optional[int] = None


@dataclass
class Proposal:
    """A textual option. vote_count is only ever incremented by a vote."""
    index: int
    description: str
    vote_count: int = 0


# Value of WinningProposalIndex before any tally has run.
DEFAULT_WINNING_INDEX = 0
