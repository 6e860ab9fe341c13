"""Shared workflow graph configuration.

``GraphConfig()`` always carries the built-in module ids and slot names.
Nothing is read from disk unless a caller asks for it with
``GraphConfig.from_file(path)``.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_CONDITIONAL_MODULES = ["if"]
DEFAULT_FAN_OUT_MODULES = ["parallel-task"]
DEFAULT_BLOCKING_OUTPUT = "output_1"
DEFAULT_NON_BLOCKING_OUTPUT = "output_2"


# ---------------------------------------------------------------------------
# Low-level config file access
# ---------------------------------------------------------------------------


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load a JSON configuration file; missing or invalid files read as empty."""
    path = Path(path)
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8-sig") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# GraphConfig – shared by the walker and the graph tool
# ---------------------------------------------------------------------------


@dataclass
class GraphConfig:
    """Module ids and slot names that drive traversal.

    The blocking output is also the then-branch of a conditional node and the
    non-blocking output its else-branch.
    """

    conditional_modules: list[str] = field(
        default_factory=lambda: list(DEFAULT_CONDITIONAL_MODULES)
    )
    fan_out_modules: list[str] = field(default_factory=lambda: list(DEFAULT_FAN_OUT_MODULES))
    blocking_output: str = DEFAULT_BLOCKING_OUTPUT
    non_blocking_output: str = DEFAULT_NON_BLOCKING_OUTPUT

    @classmethod
    def from_file(cls, path: str | Path) -> "GraphConfig":
        """Build a config from the ``graph`` section of a JSON file.

        Keys absent from the section keep their defaults.
        """
        section = load_config_file(path).get("graph", {})
        if not isinstance(section, dict):
            section = {}
        config = cls()
        if "conditional_modules" in section:
            config.conditional_modules = list(section["conditional_modules"])
        if "fan_out_modules" in section:
            config.fan_out_modules = list(section["fan_out_modules"])
        if "blocking_output" in section:
            config.blocking_output = section["blocking_output"]
        if "non_blocking_output" in section:
            config.non_blocking_output = section["non_blocking_output"]
        return config
