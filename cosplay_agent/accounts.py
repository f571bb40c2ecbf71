"""Account profile lookup used to resolve physical attributes."""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from .models import AccountProfile

logger = logging.getLogger(__name__)


class AbstractAccountDirectory:
    """Interface for account stores."""
    async def get_profile(self, account_id: str) -> Optional[AccountProfile]:
        #Return the stored profile, or None for an unknown account
        raise NotImplementedError


class InMemoryAccountDirectory(AbstractAccountDirectory):
    def __init__(self, profiles: Iterable[AccountProfile] = ()) -> None:
        self._profiles: Dict[str, AccountProfile] = {p.account_id: p for p in profiles}

    async def get_profile(self, account_id: str) -> Optional[AccountProfile]:
        return self._profiles.get(str(account_id))

    @classmethod
    def from_json_file(cls, path: str) -> "InMemoryAccountDirectory":
        """Load profiles from a JSON list of {id, height, weight, gender} objects."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        profiles = [
            AccountProfile(
                account_id=str(entry["id"]),
                height=entry.get("height"),
                weight=entry.get("weight"),
                gender=entry.get("gender"),
            )
            for entry in raw
        ]
        logger.info("Loaded %d account profiles from %s", len(profiles), path)
        return cls(profiles)
