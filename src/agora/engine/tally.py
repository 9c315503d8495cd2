"""Tally engine: picks the winning proposal once voting has closed.

Tie-break policy: the first proposal to reach the maximum vote count
wins. The scan uses a strict > comparison, so a later proposal with an
equal count never displaces an earlier leader. Ties therefore resolve
to the lowest index.

An empty proposal sequence yields DEFAULT_WINNING_INDEX. That index
does not refer to a real proposal; callers must check.
"""

from __future__ import annotations

from typing import Sequence

from agora.models.voting import DEFAULT_WINNING_INDEX, Proposal


class TallyEngine:
    """Pure tally over an ordered proposal sequence."""

    def tally(self, proposals: Sequence[Proposal]) -> int:
        """Return the index of the winning proposal.

        Reads vote counts only; never mutates the proposals.
        """
        winning_index = DEFAULT_WINNING_INDEX
        winning_count = 0
        for position, proposal in enumerate(proposals):
            if proposal.vote_count > winning_count:
                winning_count = proposal.vote_count
                winning_index = position
        return winning_index
