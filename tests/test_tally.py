"""Tests for the tally engine: proves first-maximum tie-break and purity."""

from agora.engine.tally import TallyEngine
from agora.models.voting import DEFAULT_WINNING_INDEX, Proposal


def _proposals(*counts: int) -> list[Proposal]:
    return [
        Proposal(index=i, description=f"P{i}", vote_count=c)
        for i, c in enumerate(counts)
    ]


class TestFirstMaximumWins:
    def test_tie_resolves_to_lowest_index(self) -> None:
        assert TallyEngine().tally(_proposals(3, 5, 5, 1)) == 1

    def test_clear_winner(self) -> None:
        assert TallyEngine().tally(_proposals(1, 2, 7)) == 2

    def test_all_tied_picks_first(self) -> None:
        assert TallyEngine().tally(_proposals(4, 4, 4)) == 0

    def test_later_strictly_greater_displaces(self) -> None:
        assert TallyEngine().tally(_proposals(2, 2, 3)) == 2


class TestDegenerateInputs:
    def test_empty_returns_default(self) -> None:
        assert TallyEngine().tally([]) == DEFAULT_WINNING_INDEX

    def test_all_zero_returns_default(self) -> None:
        assert TallyEngine().tally(_proposals(0, 0)) == DEFAULT_WINNING_INDEX


class TestPurity:
    def test_does_not_mutate_proposals(self) -> None:
        proposals = _proposals(3, 5, 5, 1)
        TallyEngine().tally(proposals)
        assert [p.vote_count for p in proposals] == [3, 5, 5, 1]
