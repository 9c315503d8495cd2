"""Core data models for the Agora voting process."""

from agora.models.voting import (
    DEFAULT_WINNING_INDEX,
    Participant,
    Phase,
    Proposal,
)

__all__ = [
    "DEFAULT_WINNING_INDEX",
    "Participant",
    "Phase",
    "Proposal",
]
