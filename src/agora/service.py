"""Agora service: the composition root of the voting process.

This is the primary interface for programmatic access to Agora. It owns
all mutable process state and orchestrates the subsystems:
- Identity resolution (administrator vs. everyone else)
- Phase governance (WorkflowStateMachine)
- Participant and proposal registries
- Tallying (TallyEngine)
- Audit trail (EventLog)

Every public operation runs the same fixed sequence: resolve the
caller, check their role, check the required phase, delegate to the
owning registry or engine, then record exactly one event. A rejected
call raises a VotingError and leaves state untouched.

All public operations are serialised by a single lock, so a vote can
never be observed half-applied.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from agora import __version__
from agora.engine.state_machine import WorkflowStateMachine
from agora.engine.tally import TallyEngine
from agora.errors import NotAuthorized, Unauthorized, VotingError
from agora.identity.context import Caller, IdentityContext
from agora.models.voting import DEFAULT_WINNING_INDEX, Phase, Proposal
from agora.persistence.event_log import EventKind, EventLog, EventRecord
from agora.policy.resolver import PolicyResolver
from agora.registry.participants import ParticipantRegistry
from agora.registry.proposals import ProposalRegistry, UniquenessMode


class VotingService:
    """Governed voting process facade.

    Usage:
        service = VotingService(administrator_id="chair")

        service.register_participant("chair", "alice")
        service.set_phase("chair", Phase.PROPOSALS_OPEN)
        index = service.register_proposal("alice", "Extend opening hours")
        service.set_phase("chair", Phase.VOTING_OPEN)
        service.cast_vote("alice", index)
        service.set_phase("chair", Phase.VOTING_CLOSED)
        service.run_tally("chair")
        service.set_phase("chair", Phase.TALLIED)
        service.get_winner("alice")

    Persistence (optional):
        service = VotingService("chair", event_log=EventLog(path))
        # Existing events in the log are replayed on construction.
    """

    def __init__(
        self,
        administrator_id: str,
        event_log: Optional[EventLog] = None,
        initial_phase: Phase = Phase.REGISTERING_PARTICIPANTS,
        uniqueness: UniquenessMode = UniquenessMode.LINEAR_SCAN,
    ) -> None:
        self._identity = IdentityContext(administrator_id)
        self._state_machine = WorkflowStateMachine(initial_phase)
        self._participants = ParticipantRegistry()
        self._proposals = ProposalRegistry(uniqueness)
        self._tally_engine = TallyEngine()
        self._winning_index = DEFAULT_WINNING_INDEX
        self._tally_computed = False
        # Proposals the stored winner was chosen from; 0 means no real winner.
        self._tallied_proposal_count = 0
        self._lock = threading.Lock()

        # In-memory log if none is supplied; events are always recorded.
        self._event_log = event_log if event_log is not None else EventLog()
        self._event_counter = 0
        if self._event_log.count:
            self._replay(self._event_log.events())
        self._event_counter = self._event_log.count

    @classmethod
    def from_policy(
        cls,
        resolver: PolicyResolver,
        event_log: Optional[EventLog] = None,
    ) -> VotingService:
        """Build a service from loaded configuration."""
        return cls(
            administrator_id=resolver.administrator_id(),
            event_log=event_log,
            initial_phase=resolver.initial_phase(),
            uniqueness=resolver.proposal_uniqueness(),
        )

    @classmethod
    def from_event_log(
        cls,
        event_log: EventLog,
        administrator_id: str,
        initial_phase: Phase = Phase.REGISTERING_PARTICIPANTS,
        uniqueness: UniquenessMode = UniquenessMode.LINEAR_SCAN,
    ) -> VotingService:
        """Rebuild a service by replaying every event already in event_log.

        Raises ValueError if the log does not fit the given configuration.
        New operations keep appending to the same log.
        """
        return cls(
            administrator_id=administrator_id,
            event_log=event_log,
            initial_phase=initial_phase,
            uniqueness=uniqueness,
        )

    # ------------------------------------------------------------------
    # Administrative operations
    # ------------------------------------------------------------------

    def register_participant(self, caller_id: str, identity: str) -> None:
        """Register an identity as an eligible participant.

        Raises Unauthorized, PhaseViolation or AlreadyRegistered.
        """
        with self._lock:
            caller = self._require_administrator(caller_id)
            self._state_machine.require(Phase.REGISTERING_PARTICIPANTS)
            participant = self._participants.register(identity)

            def _rollback() -> None:
                self._participants.remove(participant.identity)

            self._record_event(
                EventKind.PARTICIPANT_REGISTERED,
                caller,
                {"identity": participant.identity},
                on_rollback=_rollback,
            )

    def set_phase(self, caller_id: str, phase: Phase) -> None:
        """Move the process to any phase. No ordering is enforced."""
        with self._lock:
            caller = self._identity.resolve(caller_id)
            previous, current = self._state_machine.set_phase(caller, phase)

            def _rollback() -> None:
                self._state_machine.restore(previous)

            self._record_event(
                EventKind.PHASE_CHANGED,
                caller,
                {"previous": previous.value, "next": current.value},
                on_rollback=_rollback,
            )

    def run_tally(self, caller_id: str) -> int:
        """Compute and store the winning proposal index."""
        with self._lock:
            caller = self._require_administrator(caller_id)
            self._state_machine.require(Phase.VOTING_CLOSED)
            previous = (
                self._winning_index, self._tally_computed, self._tallied_proposal_count,
            )
            proposals = self._proposals.list()
            self._winning_index = self._tally_engine.tally(proposals)
            self._tally_computed = True
            self._tallied_proposal_count = len(proposals)

            def _rollback() -> None:
                (
                    self._winning_index,
                    self._tally_computed,
                    self._tallied_proposal_count,
                ) = previous

            self._record_event(
                EventKind.TALLY_COMPUTED,
                caller,
                {"winning_index": self._winning_index},
                on_rollback=_rollback,
            )
            return self._winning_index

    # ------------------------------------------------------------------
    # Participant operations
    # ------------------------------------------------------------------

    def register_proposal(self, caller_id: str, description: str) -> int:
        """Register a proposal and return its index.

        Raises NotAuthorized, PhaseViolation or DuplicateProposal.
        """
        with self._lock:
            caller = self._require_participant(caller_id)
            self._state_machine.require(Phase.PROPOSALS_OPEN)
            index = self._proposals.register(description)
            self._record_event(
                EventKind.PROPOSAL_REGISTERED,
                caller,
                {"index": index, "description": description},
                on_rollback=self._proposals.remove_last,
            )
            return index

    def cast_vote(self, caller_id: str, proposal_index: int) -> None:
        """Cast the caller's single vote.

        Both the duplicate-vote check and the index check pass before
        either registry is touched: the vote is applied to both or to
        neither.
        """
        with self._lock:
            caller = self._require_participant(caller_id)
            self._state_machine.require(Phase.VOTING_OPEN)
            self._participants.check_can_vote(caller.identity)
            self._proposals.check_index(proposal_index)

            self._participants.record_vote(caller.identity, proposal_index)
            self._proposals.increment_vote(proposal_index)

            def _rollback() -> None:
                self._proposals.decrement_vote(proposal_index)
                self._participants.revoke_vote(caller.identity)

            self._record_event(
                EventKind.VOTE_CAST,
                caller,
                {"identity": caller.identity, "proposal_index": proposal_index},
                on_rollback=_rollback,
            )

    def list_proposals(self, caller_id: str) -> tuple[Proposal, ...]:
        """Snapshot of all proposals in index order. Any phase."""
        with self._lock:
            self._require_participant(caller_id)
            return self._proposals.list()

    def get_vote_of(self, caller_id: str, identity: str) -> Optional[int]:
        """Return the proposal index identity voted for.

        None if identity never voted or is not a participant.
        """
        with self._lock:
            self._require_participant(caller_id)
            self._state_machine.require(Phase.TALLIED)
            participant = self._participants.get(identity)
            if participant is None or not participant.has_voted:
                return None
            return participant.voted_proposal_index

    def get_winner(self, caller_id: str) -> int:
        """Return the stored winning proposal index."""
        with self._lock:
            self._require_participant(caller_id)
            self._state_machine.require(Phase.TALLIED)
            return self._winning_index

    def get_winning_proposal(self, caller_id: str) -> Optional[Proposal]:
        """Return the winning proposal.

        None unless a tally has run over at least one proposal. Proposals
        registered after the tally are never reported as the winner.
        """
        with self._lock:
            self._require_participant(caller_id)
            self._state_machine.require(Phase.TALLIED)
            if not self._tally_computed or self._tallied_proposal_count == 0:
                return None
            return self._proposals.get(self._winning_index)

    # ------------------------------------------------------------------
    # Ungated reads
    # ------------------------------------------------------------------

    def current_phase(self) -> Phase:
        return self._state_machine.current_phase()

    def is_registered(self, identity: str) -> bool:
        return self._participants.is_registered(identity)

    @property
    def administrator_id(self) -> str:
        return self._identity.administrator_id

    def events(self, kind: Optional[EventKind] = None) -> list[EventRecord]:
        return self._event_log.events(kind)

    def status(self) -> dict[str, Any]:
        """Return a process-wide status summary."""
        with self._lock:
            return {
                "version": __version__,
                "administrator": self._identity.administrator_id,
                "phase": self._state_machine.current_phase().value,
                "participants": {
                    "registered": self._participants.count,
                    "voted": self._participants.voted_count,
                },
                "proposals": {
                    "total": len(self._proposals),
                    "votes": self._proposals.total_votes(),
                    "uniqueness": self._proposals.mode.value,
                },
                "tally": {
                    "computed": self._tally_computed,
                    "winning_index": self._winning_index,
                },
                "events": self._event_log.count,
            }

    def check_invariants(self) -> list[str]:
        """Audit the global invariants. Returns violations; empty means healthy."""
        with self._lock:
            errors: list[str] = []
            proposals = self._proposals.list()
            voters = [p for p in self._participants.all_participants() if p.has_voted]

            total = sum(p.vote_count for p in proposals)
            if total != len(voters):
                errors.append(
                    f"Vote total {total} != participants who voted {len(voters)}"
                )

            for position, proposal in enumerate(proposals):
                if proposal.index != position:
                    errors.append(
                        f"Proposal at position {position} carries index {proposal.index}"
                    )
                if proposal.vote_count < 0:
                    errors.append(f"Proposal {position} has negative vote count")

            descriptions = [p.description for p in proposals]
            if len(set(descriptions)) != len(descriptions):
                errors.append("Duplicate proposal descriptions registered")

            expected_counts = [0] * len(proposals)
            for voter in voters:
                idx = voter.voted_proposal_index
                if idx is None or not (0 <= idx < len(proposals)):
                    errors.append(
                        f"{voter.identity}: voted for invalid proposal index {idx}"
                    )
                    continue
                expected_counts[idx] += 1
            for position, proposal in enumerate(proposals):
                if proposal.vote_count != expected_counts[position]:
                    errors.append(
                        f"Proposal {position}: vote_count {proposal.vote_count} "
                        f"!= recorded votes {expected_counts[position]}"
                    )
            return errors

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_administrator(self, caller_id: str) -> Caller:
        caller = self._identity.resolve(caller_id)
        if not caller.is_administrator:
            raise Unauthorized(f"{caller.identity}: administrator only")
        return caller

    def _require_participant(self, caller_id: str) -> Caller:
        caller = self._identity.resolve(caller_id)
        if not self._participants.is_registered(caller.identity):
            raise NotAuthorized(f"{caller.identity}: not a registered participant")
        return caller

    def _next_event_id(self) -> str:
        self._event_counter += 1
        return f"EVT-{self._event_counter:08d}"

    def _record_event(
        self,
        kind: EventKind,
        caller: Caller,
        payload: dict[str, Any],
        on_rollback: Optional[Callable[[], None]] = None,
    ) -> EventRecord:
        """Append the audit event for a mutation that has just been applied.

        Fail-closed: if the append fails the mutation is rolled back and
        the error propagates, so no state change exists without its
        audit record.
        """
        event = EventRecord.create(
            event_id=self._next_event_id(),
            event_kind=kind,
            actor_id=caller.identity,
            payload=payload,
        )
        try:
            self._event_log.append(event)
        except (OSError, ValueError):
            self._event_counter -= 1
            if on_rollback is not None:
                on_rollback()
            raise
        return event

    def _replay(self, events: list[EventRecord]) -> None:
        """Rebuild state from previously recorded events.

        Events were gated when first recorded, so replay applies them
        directly. Any event that does not fit the replayed state means
        the log and configuration disagree; that is rejected outright.
        """
        for event in events:
            try:
                self._apply(event)
            except (VotingError, KeyError, ValueError) as e:
                raise ValueError(
                    f"Inconsistent event log at {event.event_id} "
                    f"({event.event_kind.value}): {e}"
                ) from e

    def _apply(self, event: EventRecord) -> None:
        payload = event.payload
        if event.event_kind == EventKind.PARTICIPANT_REGISTERED:
            self._participants.register(payload["identity"])
        elif event.event_kind == EventKind.PHASE_CHANGED:
            previous = Phase(payload["previous"])
            self._state_machine.require(previous)
            self._state_machine.restore(Phase(payload["next"]))
        elif event.event_kind == EventKind.PROPOSAL_REGISTERED:
            index = self._proposals.register(payload["description"])
            if index != payload["index"]:
                raise ValueError(
                    f"proposal index {payload['index']} replayed as {index}"
                )
        elif event.event_kind == EventKind.VOTE_CAST:
            identity = payload["identity"]
            proposal_index = payload["proposal_index"]
            self._participants.check_can_vote(identity)
            self._proposals.check_index(proposal_index)
            self._participants.record_vote(identity, proposal_index)
            self._proposals.increment_vote(proposal_index)
        elif event.event_kind == EventKind.TALLY_COMPUTED:
            self._winning_index = payload["winning_index"]
            self._tally_computed = True
            self._tallied_proposal_count = len(self._proposals)
