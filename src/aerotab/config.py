"""Engine settings and their YAML loader."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

DEFAULT_TOLERANCE: float = 100.0 * sys.float_info.epsilon


class EngineSettings(BaseModel):
    """Tunable numeric policy for the evaluation engine.

    Attributes:
        barycentric_tolerance: Weights at or above ``-tolerance`` count as
            lying inside a simplex
        coincidence_tolerance: Distance below which an ungridded query is an
            exact data-point hit
        normalise_triangulation: Scale each coordinate column to [0, 1]
            before triangulating
        qhull_options: Options forwarded to ``scipy.spatial.Delaunay``
        strict_out_of_hull: Raise instead of returning NaN outside the hull
        cache_simplex: Try the last used simplex before searching
    """

    barycentric_tolerance: float = Field(default=DEFAULT_TOLERANCE, ge=0.0)
    coincidence_tolerance: float = Field(default=DEFAULT_TOLERANCE, ge=0.0)
    normalise_triangulation: bool = True
    qhull_options: str | None = None
    strict_out_of_hull: bool = False
    cache_simplex: bool = True

    model_config = ConfigDict(frozen=True, extra="forbid")


def load_settings(config_path: Path | str) -> EngineSettings:
    """Read engine settings from a YAML file.

    The file either holds the settings mapping directly or nests it under a
    top-level ``engine`` key.

    Args:
        config_path: Path to the YAML file

    Returns:
        Validated engine settings

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the payload is not a mapping or holds invalid keys
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(payload, dict):
        raise ValueError("Settings YAML must define a top-level mapping")

    section: Any = payload.get("engine", payload)
    if not isinstance(section, dict):
        raise ValueError("engine must be a mapping")

    try:
        return EngineSettings(**section)
    except ValidationError as exc:
        raise ValueError(f"Invalid engine settings in {path}: {exc}") from exc
