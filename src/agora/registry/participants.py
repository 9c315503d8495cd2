"""Participant registry: who may propose and vote, and how they voted.

Identities are registered at most once and never removed. Each
registered participant may record exactly one vote.

Phase and administrator gating is the service layer's responsibility;
this registry only enforces its own invariants.
"""

from __future__ import annotations

from typing import Optional

from agora.errors import AlreadyRegistered, AlreadyVoted, NotAuthorized
from agora.models.voting import Participant


class ParticipantRegistry:
    """Registry of participants keyed by identity.

    Thread-safety: this class is not thread-safe. The caller must
    synchronise access if used from multiple threads.
    """

    def __init__(self) -> None:
        self._participants: dict[str, Participant] = {}

    def register(self, identity: str) -> Participant:
        """Register a new participant.

        Raises ValueError if the identity is blank, AlreadyRegistered if
        it is already present.
        """
        canonical = identity.strip()
        if not canonical:
            raise ValueError("Cannot register participant with blank identity")
        if canonical in self._participants:
            raise AlreadyRegistered(f"Participant already registered: {canonical}")
        participant = Participant(identity=canonical)
        self._participants[canonical] = participant
        return participant

    def is_registered(self, identity: str) -> bool:
        participant = self._participants.get(identity.strip())
        return participant is not None and participant.is_registered

    def get(self, identity: str) -> Optional[Participant]:
        """Look up a participant by identity."""
        return self._participants.get(identity.strip())

    def check_can_vote(self, identity: str) -> Participant:
        """Return the participant if it may still vote.

        Raises NotAuthorized for unknown identities and AlreadyVoted
        if the participant has voted before.
        """
        participant = self.get(identity)
        if participant is None or not participant.is_registered:
            raise NotAuthorized(f"{identity}: not a registered participant")
        if participant.has_voted:
            raise AlreadyVoted(f"{participant.identity}: already voted")
        return participant

    def record_vote(self, identity: str, proposal_index: int) -> None:
        """Mark the participant as having voted for proposal_index."""
        participant = self.check_can_vote(identity)
        participant.has_voted = True
        participant.voted_proposal_index = proposal_index

    def revoke_vote(self, identity: str) -> None:
        """Undo record_vote. Only used to roll back a failed audit append."""
        participant = self._participants[identity.strip()]
        participant.has_voted = False
        participant.voted_proposal_index = None

    def remove(self, identity: str) -> None:
        """Undo register. Only used to roll back a failed audit append."""
        self._participants.pop(identity.strip(), None)

    def all_participants(self) -> list[Participant]:
        return list(self._participants.values())

    @property
    def count(self) -> int:
        return len(self._participants)

    @property
    def voted_count(self) -> int:
        return sum(1 for p in self._participants.values() if p.has_voted)
