"""Optional profile filters applied before aggregation."""

import logging
from typing import Iterable, List

from pydantic import BaseModel, ConfigDict

from .models import Profile, WhoLastReplied

logger = logging.getLogger(__name__)


class ProfileFilter(BaseModel):
    """
    Restrict a run to a subset of matches.

    All flags off keeps every profile. Flags combine with AND.
    """

    model_config = ConfigDict(frozen=True)

    matched_only: bool = False
    met_only: bool = False
    convo_only: bool = False
    specified_only: bool = False

    @property
    def is_active(self) -> bool:
        return self.matched_only or self.met_only or self.convo_only or self.specified_only

    def accepts(self, profile: Profile) -> bool:
        if self.matched_only and not profile.matched:
            return False
        if self.met_only and profile.who_last_replied is not WhoLastReplied.MET:
            return False
        if self.convo_only and not profile.convo:
            return False
        if self.specified_only and not profile.ethnicity_specified:
            return False
        return True

    def apply(self, profiles: Iterable[Profile]) -> List[Profile]:
        profiles = list(profiles)
        kept = [p for p in profiles if self.accepts(p)]
        if self.is_active:
            logger.info(f"Filters kept {len(kept)} of {len(profiles)} profiles")
        return kept

    def describe(self) -> str:
        active = [name for name, enabled in self.model_dump().items() if enabled]
        return ", ".join(active) if active else "none"
