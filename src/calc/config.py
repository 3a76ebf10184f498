"""Parser configuration, optionally loaded from YAML.

Example ``calc.yaml``:

    int_bits: 64
    overflow: error     # or "widen"
    rebase_workers: 4
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field


class ParserConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    int_bits: int = Field(default=64, ge=1, le=1023)  # unsigned width; 2**1023 - 1 still fits a float
    overflow: Literal["error", "widen"] = "error"
    rebase_workers: int = Field(default=1, ge=1)

    @property
    def int_max(self) -> int:
        return (1 << self.int_bits) - 1


def load_config(path: str | Path) -> ParserConfig:
    """Load a ParserConfig from a YAML file. An empty file gives the defaults."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return ParserConfig()
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
    return ParserConfig(**data)
