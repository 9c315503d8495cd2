"""Workflow state machine: owns the current phase of the process.

Unlike a fail-closed transition table, phase changes here are total:
the administrator may move to any phase from any phase, including the
current one, a prior one, or skipping ahead. The only check on a
transition is that the caller is the administrator.

Every other operation is gated on an exact phase via require().
"""

from __future__ import annotations

from agora.errors import PhaseViolation, Unauthorized
from agora.identity.context import Caller
from agora.models.voting import Phase


class WorkflowStateMachine:
    """Holds the single process-wide phase.

    Thread-safety: this class is not thread-safe. The owning service
    serialises access.
    """

    def __init__(self, initial_phase: Phase = Phase.REGISTERING_PARTICIPANTS) -> None:
        self._phase = initial_phase

    def current_phase(self) -> Phase:
        return self._phase

    def set_phase(self, caller: Caller, new_phase: Phase) -> tuple[Phase, Phase]:
        """Set the current phase. Returns (previous, new).

        Raises Unauthorized if the caller is not the administrator.
        """
        if not caller.is_administrator:
            raise Unauthorized(
                f"{caller.identity}: only the administrator can change phase"
            )
        previous = self._phase
        self._phase = Phase(new_phase)
        return previous, self._phase

    def require(self, expected: Phase) -> None:
        """Raise PhaseViolation unless the current phase is expected."""
        if self._phase != expected:
            raise PhaseViolation(expected=expected, actual=self._phase)

    def restore(self, phase: Phase) -> None:
        """Force the phase without a caller check (event-log replay only)."""
        self._phase = Phase(phase)
