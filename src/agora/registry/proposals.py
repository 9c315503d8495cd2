"""Proposal registry: the ordered, content-unique list of proposals.

Indices are assigned in registration order and are stable and dense
(0..N-1). Entries are never reordered or removed.

Uniqueness is exact textual equality of the description (case
sensitive, no normalisation). The default check is a linear scan over
existing descriptions, which is fine for governance-sized proposal
counts. A content-hash index can be selected instead; it accepts and
rejects exactly the same descriptions.
"""

from __future__ import annotations

import dataclasses
import enum
import hashlib

from agora.errors import DuplicateProposal, InvalidProposalIndex
from agora.models.voting import Proposal


class UniquenessMode(str, enum.Enum):
    """How duplicate descriptions are detected."""
    LINEAR_SCAN = "linear_scan"
    CONTENT_HASH = "content_hash"


def _content_hash(description: str) -> str:
    return "sha256:" + hashlib.sha256(description.encode("utf-8")).hexdigest()


class ProposalRegistry:
    """Ordered proposal sequence.

    Thread-safety: this class is not thread-safe. The caller must
    synchronise access if used from multiple threads.
    """

    def __init__(self, mode: UniquenessMode = UniquenessMode.LINEAR_SCAN) -> None:
        self._mode = UniquenessMode(mode)
        self._proposals: list[Proposal] = []
        self._by_hash: dict[str, int] = {}

    @property
    def mode(self) -> UniquenessMode:
        return self._mode

    def __len__(self) -> int:
        return len(self._proposals)

    def contains(self, description: str) -> bool:
        """True if a byte-identical description is already registered."""
        if self._mode == UniquenessMode.CONTENT_HASH:
            # Hash hit is confirmed against the stored text.
            index = self._by_hash.get(_content_hash(description))
            return index is not None and self._proposals[index].description == description
        for proposal in self._proposals:
            if proposal.description == description:
                return True
        return False

    def register(self, description: str) -> int:
        """Append a proposal and return its index.

        Raises DuplicateProposal if the description already exists.
        """
        if self.contains(description):
            raise DuplicateProposal(f"Proposal already registered: {description!r}")
        index = len(self._proposals)
        self._proposals.append(Proposal(index=index, description=description))
        self._by_hash[_content_hash(description)] = index
        return index

    def check_index(self, index: int) -> None:
        """Raise InvalidProposalIndex unless 0 <= index < len."""
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidProposalIndex(f"Proposal index must be an integer, got {index!r}")
        if not (0 <= index < len(self._proposals)):
            raise InvalidProposalIndex(
                f"Proposal index {index} out of range (0..{len(self._proposals) - 1})"
                if self._proposals
                else f"Proposal index {index} out of range (no proposals registered)"
            )

    def increment_vote(self, index: int) -> None:
        self.check_index(index)
        self._proposals[index].vote_count += 1

    def decrement_vote(self, index: int) -> None:
        """Undo increment_vote. Only used to roll back a failed audit append."""
        self._proposals[index].vote_count -= 1

    def remove_last(self) -> None:
        """Undo register. Only used to roll back a failed audit append."""
        removed = self._proposals.pop()
        self._by_hash.pop(_content_hash(removed.description), None)

    def get(self, index: int) -> Proposal:
        self.check_index(index)
        return dataclasses.replace(self._proposals[index])

    def list(self) -> tuple[Proposal, ...]:
        """Read-only snapshot of all proposals in index order."""
        return tuple(dataclasses.replace(p) for p in self._proposals)

    def total_votes(self) -> int:
        return sum(p.vote_count for p in self._proposals)
