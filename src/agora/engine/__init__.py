"""Voting engine: phase state machine and tally."""

from agora.engine.state_machine import WorkflowStateMachine
from agora.engine.tally import TallyEngine

__all__ = ["WorkflowStateMachine", "TallyEngine"]
