"""Policy resolver: loads process configuration from a config directory.

The config directory holds process.json:

    {
      "administrator_id": "chair",
      "initial_phase": "registering_participants",
      "proposal_uniqueness": "linear_scan"
    }

Only administrator_id is required. Invalid values fail at load time,
never at first use.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from agora.models.voting import Phase
from agora.registry.proposals import UniquenessMode


PROCESS_FILE = "process.json"


class PolicyResolver:
    """Typed access to the process configuration."""

    def __init__(self, params: dict[str, Any]) -> None:
        admin = params.get("administrator_id")
        if not isinstance(admin, str) or not admin.strip():
            raise ValueError("administrator_id must be a non-empty string")
        try:
            self._initial_phase = Phase(
                params.get("initial_phase", Phase.REGISTERING_PARTICIPANTS.value)
            )
        except ValueError:
            raise ValueError(
                f"Unknown initial_phase: {params.get('initial_phase')!r}"
            ) from None
        try:
            self._uniqueness = UniquenessMode(
                params.get("proposal_uniqueness", UniquenessMode.LINEAR_SCAN.value)
            )
        except ValueError:
            raise ValueError(
                f"Unknown proposal_uniqueness: {params.get('proposal_uniqueness')!r}"
            ) from None
        self._administrator_id = admin.strip()
        self._params = dict(params)

    @classmethod
    def from_config_dir(
        cls,
        config_dir: Path,
        administrator_override: Optional[str] = None,
    ) -> PolicyResolver:
        """Load process.json from config_dir.

        administrator_override, when given, replaces the configured
        administrator_id.
        """
        path = config_dir / PROCESS_FILE
        with path.open("r", encoding="utf-8") as handle:
            params = json.load(handle)
        if administrator_override:
            params["administrator_id"] = administrator_override
        return cls(params)

    def administrator_id(self) -> str:
        return self._administrator_id

    def initial_phase(self) -> Phase:
        return self._initial_phase

    def proposal_uniqueness(self) -> UniquenessMode:
        return self._uniqueness

    def as_dict(self) -> dict[str, Any]:
        return {
            "administrator_id": self._administrator_id,
            "initial_phase": self._initial_phase.value,
            "proposal_uniqueness": self._uniqueness.value,
        }
