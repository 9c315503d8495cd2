"""Tests for PolicyResolver: proves config loading and validation."""

import json
from pathlib import Path

import pytest

from agora.models.voting import Phase
from agora.policy.resolver import PolicyResolver
from agora.registry.proposals import UniquenessMode
from agora.service import VotingService


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


def _write(tmp_path: Path, params: dict) -> Path:
    (tmp_path / "process.json").write_text(json.dumps(params), encoding="utf-8")
    return tmp_path


class TestShippedConfig:
    def test_loads(self) -> None:
        resolver = PolicyResolver.from_config_dir(CONFIG_DIR)
        assert resolver.administrator_id() == "chair"
        assert resolver.initial_phase() == Phase.REGISTERING_PARTICIPANTS
        assert resolver.proposal_uniqueness() == UniquenessMode.LINEAR_SCAN


class TestValidation:
    def test_defaults(self, tmp_path: Path) -> None:
        resolver = PolicyResolver.from_config_dir(_write(tmp_path, {"administrator_id": "root"}))
        assert resolver.as_dict() == {
            "administrator_id": "root",
            "initial_phase": "registering_participants",
            "proposal_uniqueness": "linear_scan",
        }

    def test_missing_admin_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="administrator_id"):
            PolicyResolver.from_config_dir(_write(tmp_path, {}))

    def test_unknown_phase_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="initial_phase"):
            PolicyResolver.from_config_dir(
                _write(tmp_path, {"administrator_id": "root", "initial_phase": "open"})
            )

    def test_unknown_uniqueness_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="proposal_uniqueness"):
            PolicyResolver.from_config_dir(
                _write(tmp_path, {"administrator_id": "root", "proposal_uniqueness": "fuzzy"})
            )

    def test_override_replaces_admin(self, tmp_path: Path) -> None:
        resolver = PolicyResolver.from_config_dir(
            _write(tmp_path, {"administrator_id": "root"}),
            administrator_override="deputy",
        )
        assert resolver.administrator_id() == "deputy"


class TestServiceFromPolicy:
    def test_service_uses_policy(self, tmp_path: Path) -> None:
        resolver = PolicyResolver.from_config_dir(_write(tmp_path, {
            "administrator_id": "root",
            "initial_phase": "proposals_open",
            "proposal_uniqueness": "content_hash",
        }))
        service = VotingService.from_policy(resolver)
        assert service.administrator_id == "root"
        assert service.current_phase() == Phase.PROPOSALS_OPEN
        assert service.status()["proposals"]["uniqueness"] == "content_hash"
