"""Agora CLI: command-line interface for the voting process.

Usage:
    python -m agora.cli status
    python -m agora.cli register-participant --as chair alice
    python -m agora.cli set-phase --as chair proposals_open
    python -m agora.cli register-proposal --as alice "Extend opening hours"
    python -m agora.cli cast-vote --as alice 0
    python -m agora.cli run-tally --as chair
    python -m agora.cli winner --as alice
    python -m agora.cli check-invariants

Process state is the event log in the data directory, replayed on every
invocation. A .env file in the working directory is loaded first;
AGORA_ADMINISTRATOR_ID overrides the configured administrator.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from agora.errors import VotingError
from agora.models.voting import Phase
from agora.persistence.event_log import EventLog
from agora.policy.resolver import PolicyResolver
from agora.service import VotingService


DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "config"
DEFAULT_DATA = Path(__file__).resolve().parents[2] / "data"
ADMIN_ENV_VAR = "AGORA_ADMINISTRATOR_ID"


def _make_service(config_dir: Path, data_dir: Path = DEFAULT_DATA) -> VotingService:
    """Create a VotingService backed by the durable event log."""
    data_dir.mkdir(parents=True, exist_ok=True)
    resolver = PolicyResolver.from_config_dir(
        config_dir, administrator_override=os.environ.get(ADMIN_ENV_VAR),
    )
    event_log = EventLog(storage_path=data_dir / "events.jsonl")
    return VotingService.from_policy(resolver, event_log=event_log)


def _fail(error: Exception) -> int:
    print(f"Failed: {error}", file=sys.stderr)
    return 1


def cmd_status(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_set_phase(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    try:
        service.set_phase(args.caller, Phase(args.phase))
    except VotingError as e:
        return _fail(e)
    print(f"Phase: {service.current_phase().value}")
    return 0


def cmd_register_participant(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    try:
        service.register_participant(args.caller, args.identity)
    except VotingError as e:
        return _fail(e)
    print(f"Registered participant: {args.identity.strip()}")
    return 0


def cmd_register_proposal(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    try:
        index = service.register_proposal(args.caller, args.description)
    except VotingError as e:
        return _fail(e)
    print(f"Registered proposal {index}: {args.description}")
    return 0


def cmd_cast_vote(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    try:
        service.cast_vote(args.caller, args.index)
    except VotingError as e:
        return _fail(e)
    print(f"Vote cast for proposal {args.index}")
    return 0


def cmd_run_tally(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    try:
        index = service.run_tally(args.caller)
    except VotingError as e:
        return _fail(e)
    print(f"Winning proposal index: {index}")
    return 0


def cmd_list_proposals(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    try:
        proposals = service.list_proposals(args.caller)
    except VotingError as e:
        return _fail(e)
    print(json.dumps(
        [
            {"index": p.index, "description": p.description, "vote_count": p.vote_count}
            for p in proposals
        ],
        indent=2,
        ensure_ascii=False,
    ))
    return 0


def cmd_vote_of(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    try:
        index = service.get_vote_of(args.caller, args.identity)
    except VotingError as e:
        return _fail(e)
    print(json.dumps({"identity": args.identity, "proposal_index": index}))
    return 0


def cmd_winner(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    try:
        index = service.get_winner(args.caller)
        proposal = service.get_winning_proposal(args.caller)
    except VotingError as e:
        return _fail(e)
    print(json.dumps(
        {
            "winning_index": index,
            "description": proposal.description if proposal else None,
            "vote_count": proposal.vote_count if proposal else None,
        },
        ensure_ascii=False,
    ))
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Replay the log and audit the global invariants."""
    service = _make_service(args.config, args.data)
    errors = service.check_invariants()
    if errors:
        for error in errors:
            print(f"FAIL: {error}", file=sys.stderr)
        return 1
    print(f"Invariant checks passed ({service.status()['events']} events).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agora",
        description="Agora: governed voting process CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=DEFAULT_DATA,
        help="Path to data directory holding events.jsonl (default: data/)",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show process status")

    def _with_caller(name: str, help_text: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--as", dest="caller", required=True, help="Caller identity")
        return p

    p_phase = _with_caller("set-phase", "Set the current phase (administrator)")
    p_phase.add_argument("phase", choices=[p.value for p in Phase])

    p_reg = _with_caller("register-participant", "Register a participant (administrator)")
    p_reg.add_argument("identity", help="Identity to register")

    p_prop = _with_caller("register-proposal", "Register a proposal")
    p_prop.add_argument("description", help="Proposal text (exact match uniqueness)")

    p_vote = _with_caller("cast-vote", "Vote for a proposal by index")
    p_vote.add_argument("index", type=int, help="Proposal index")

    _with_caller("run-tally", "Compute the winner (administrator)")
    _with_caller("list-proposals", "List proposals")

    p_of = _with_caller("vote-of", "Show which proposal an identity voted for")
    p_of.add_argument("identity", help="Identity to look up")

    _with_caller("winner", "Show the winning proposal")

    sub.add_parser("check-invariants", help="Audit global voting invariants")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "set-phase": cmd_set_phase,
        "register-participant": cmd_register_participant,
        "register-proposal": cmd_register_proposal,
        "cast-vote": cmd_cast_vote,
        "run-tally": cmd_run_tally,
        "list-proposals": cmd_list_proposals,
        "vote-of": cmd_vote_of,
        "winner": cmd_winner,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except (ValueError, OSError) as e:
        # Unreadable config, tampered or inconsistent event log.
        return _fail(e)


if __name__ == "__main__":
    raise SystemExit(main())
