"""
Run configuration.

The one tunable knob is the sample cutoff; it can come from the
environment (``PREFERENCE_INDEX_SAMPLE_CUTOFF``) and is overridden by
an explicit CLI value.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError
from .filters import ProfileFilter
from .preference import DEFAULT_SAMPLE_CUTOFF

SAMPLE_CUTOFF_ENV = "PREFERENCE_INDEX_SAMPLE_CUTOFF"

DEFAULT_MATCHES_PATH = Path("matches.csv")
DEFAULT_DEMOGRAPHICS_PATH = Path("demographics.csv")
DEFAULT_HISPANIC_DEMOGRAPHICS_PATH = Path("hispanic_demographics.csv")


def sample_cutoff_from_env() -> Optional[int]:
    """Return the cutoff set in the environment, if any."""
    raw = os.getenv(SAMPLE_CUTOFF_ENV, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{SAMPLE_CUTOFF_ENV} must be an integer, got '{raw}'") from None


class AnalysisConfig(BaseModel):
    """Inputs and knobs for one analysis run."""

    model_config = ConfigDict(frozen=True)

    matches_path: Path = Field(default=DEFAULT_MATCHES_PATH, description="Match log CSV")
    demographics_path: Path = Field(default=DEFAULT_DEMOGRAPHICS_PATH, description="General population CSV")
    hispanic_demographics_path: Path = Field(
        default=DEFAULT_HISPANIC_DEMOGRAPHICS_PATH,
        description="Hispanic subpopulation CSV",
    )
    sample_cutoff: int = Field(
        default=DEFAULT_SAMPLE_CUTOFF,
        ge=0,
        description="Minimum matches before a race is scored (0 = score everything)",
    )
    profile_filter: ProfileFilter = Field(default_factory=ProfileFilter)

    @classmethod
    def build(cls, sample_cutoff: Optional[int] = None, **values: Any) -> "AnalysisConfig":
        """
        Build a config, resolving the cutoff as CLI > environment > default.

        Raises:
            ConfigurationError: on invalid values
        """
        if sample_cutoff is None:
            sample_cutoff = sample_cutoff_from_env()
        if sample_cutoff is not None:
            values["sample_cutoff"] = sample_cutoff

        cleaned: Dict[str, Any] = {k: v for k, v in values.items() if v is not None}
        try:
            return cls(**cleaned)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
