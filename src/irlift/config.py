"""Configuration for IRLIFT.

Defaults live in the :class:`LiftConfig` dataclass; YAML files override
them key by key through OmegaConf, which also rejects unknown keys and
values of the wrong type.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException


TRAVERSALS = ("recursive", "worklist")
OUTPUT_FORMATS = ("smt", "json")


@dataclass
class LiftConfig:
    """Configuration for a lifting run.

    Attributes:
        memoize: Translate each shared IR value once per conversion
        traversal: "recursive" descent or explicit "worklist" post-order walk
        verify_module: Run the LLVM verifier on parsed modules
        output_format: CLI rendering of the lifted tree ("smt" or "json")
        log_level: Logging level for the CLI
    """

    memoize: bool = False
    traversal: str = "recursive"
    verify_module: bool = True
    output_format: str = "smt"
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration."""
        if self.traversal not in TRAVERSALS:
            raise ValueError(f"traversal must be one of {TRAVERSALS}, got {self.traversal!r}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, overrides: Optional[dict[str, Any]] = None) -> "LiftConfig":
        """Merge ``overrides`` over the defaults."""
        base = OmegaConf.structured(cls)
        try:
            merged = OmegaConf.merge(base, OmegaConf.create(overrides or {}))
        except OmegaConfBaseException as e:
            raise ValueError(f"Invalid configuration: {e}") from e
        return cls(**OmegaConf.to_container(merged, resolve=True))


def load_config(path: Union[str, Path]) -> LiftConfig:
    """Load configuration from a YAML file.

    An empty file yields the defaults.
    """
    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {path} must be a mapping")

    # Allow the options to sit under a top-level "lift" section
    if "lift" in data and isinstance(data["lift"], dict):
        data = data["lift"]

    return LiftConfig.from_dict(data)
