"""
Snapshot Schemas - Validated shapes for everything that is persisted.

Persisted data is never trusted. Every field has a default, and
restored data is validated before the engine sees it.

LOCAL CACHE KEYS (string-keyed, string values):
- tapalka_score     balance as an integer string
- tapalka_energy    current energy as a float string
- tapalka_upgrades  JSON object {kind: level}
- tapalka_income    last known income per minute
- tapalka_saved_at  epoch seconds of the last local write
"""

from __future__ import annotations
from typing import Annotated, Any, Optional
import json

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..economy.catalog import (
    DEFAULT_INCOME_PER_MINUTE,
    MAX_LEVEL,
    MIN_LEVEL,
    UpgradeKind,
    default_levels,
)
from .errors import CorruptLocalSnapshot

SCORE_KEY = "tapalka_score"
ENERGY_KEY = "tapalka_energy"
UPGRADES_KEY = "tapalka_upgrades"
INCOME_KEY = "tapalka_income"
SAVED_AT_KEY = "tapalka_saved_at"

CACHE_KEYS = (SCORE_KEY, ENERGY_KEY, UPGRADES_KEY, INCOME_KEY, SAVED_AT_KEY)

Level = Annotated[int, Field(ge=MIN_LEVEL, le=MAX_LEVEL)]


class EconomySnapshot(BaseModel):
    """
    Point-in-time copy of a player's economy.

    Frozen so it can be handed to a flush worker safely.
    energy=None means "never saved": the engine starts at full energy.
    """
    balance: int = Field(default=0, ge=0)
    energy: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    upgrades: dict[UpgradeKind, Level] = Field(default_factory=default_levels)
    income_per_minute: float = Field(default=DEFAULT_INCOME_PER_MINUTE, ge=0, allow_inf_nan=False)
    saved_at: float = Field(default=0.0, allow_inf_nan=False)

    model_config = {"frozen": True}

    @field_validator("upgrades")
    @classmethod
    def fill_missing_levels(cls, value: dict[UpgradeKind, int]) -> dict[UpgradeKind, int]:
        levels = default_levels()
        levels.update(value)
        return levels

    def to_cache_entries(self) -> dict[str, str]:
        """Flatten into the local cache's string entries."""
        entries = {
            SCORE_KEY: str(self.balance),
            UPGRADES_KEY: json.dumps({k.value: v for k, v in self.upgrades.items()}, sort_keys=True),
            INCOME_KEY: repr(self.income_per_minute),
            SAVED_AT_KEY: repr(self.saved_at),
        }
        if self.energy is not None:
            entries[ENERGY_KEY] = repr(self.energy)
        return entries

    @classmethod
    def from_cache_entries(cls, entries: dict[str, str | None]) -> EconomySnapshot | None:
        """
        Rebuild from local cache entries.

        Returns None when nothing was ever saved. Missing keys take their
        defaults; malformed values raise CorruptLocalSnapshot.
        """
        if all(v is None for v in entries.values()):
            return None

        data: dict[str, Any] = {}
        try:
            if entries.get(SCORE_KEY) is not None:
                data["balance"] = int(float(entries[SCORE_KEY]))
            if entries.get(ENERGY_KEY) is not None:
                data["energy"] = float(entries[ENERGY_KEY])
            if entries.get(UPGRADES_KEY) is not None:
                data["upgrades"] = json.loads(entries[UPGRADES_KEY])
            if entries.get(INCOME_KEY) is not None:
                data["income_per_minute"] = float(entries[INCOME_KEY])
            if entries.get(SAVED_AT_KEY) is not None:
                data["saved_at"] = float(entries[SAVED_AT_KEY])
            return cls.model_validate(data)
        except (ValueError, TypeError, OverflowError, ValidationError) as e:
            raise CorruptLocalSnapshot(str(e)) from e


class RemoteRecord(BaseModel):
    """
    A player's row in the remote store.

    display_name and avatar_url belong to the profile layer; the engine
    only reads and writes the economy fields.
    """
    player_id: str
    balance: int = Field(default=0, ge=0)
    income_per_minute: float = Field(default=DEFAULT_INCOME_PER_MINUTE, ge=0, allow_inf_nan=False)
    last_accrual_at: float = Field(default=0.0, allow_inf_nan=False)
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


# Fields the engine is allowed to write to the remote store
REMOTE_FIELDS = frozenset(RemoteRecord.model_fields) - {"player_id"}
