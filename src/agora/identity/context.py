"""Caller identity resolution.

Authentication happens outside this package. By the time an operation
is invoked the caller's identity is already established; this module
only answers "who is calling, and are they the administrator?".

The administrator identity is fixed when the context is constructed
and cannot change for the lifetime of the process.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Caller:
    """An already-authenticated caller."""
    identity: str
    is_administrator: bool


class IdentityContext:
    """Resolves caller ids against the fixed administrator identity."""

    def __init__(self, administrator_id: str) -> None:
        canonical = administrator_id.strip()
        if not canonical:
            raise ValueError("Administrator identity cannot be blank")
        self._administrator_id = canonical

    @property
    def administrator_id(self) -> str:
        return self._administrator_id

    def resolve(self, caller_id: str) -> Caller:
        identity = caller_id.strip()
        return Caller(
            identity=identity,
            is_administrator=identity == self._administrator_id,
        )
