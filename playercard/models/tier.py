"""
Raid tier models.

A tier (Warcraft Logs "zone") is an ordered list of encounters. Index 0 is
the first boss; the last index is the deepest. Only one tier is active at a
time and it drives best-kill computation.
"""

from dataclasses import dataclass, field
from datetime import datetime

from playercard.models.player_card import Difficulty


@dataclass(frozen=True)
class Encounter:
    """A single boss encounter."""

    id: int
    name: str


@dataclass
class TierConfig:
    """
    The configured content tier.

    Attributes:
        zone_id: Warcraft Logs zone id
        encounter_order: Encounter ids, first boss to deepest
        encounter_names: Encounter id -> display name
        is_active: Whether this tier drives best-kill computation
        tier_name: Display name chosen by an administrator
        tier_url: Warcraft Logs URL the zone id was imported from
    """

    zone_id: int
    encounter_order: list[int]
    encounter_names: dict[int, str] = field(default_factory=dict)
    is_active: bool = False
    tier_name: str = ""
    tier_url: str = ""
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def encounters(self) -> list[Encounter]:
        """Encounters in tier order, falling back to a generic name."""
        return [
            Encounter(id=eid, name=self.encounter_names.get(eid, f"Boss {eid}"))
            for eid in self.encounter_order
        ]


@dataclass
class ZoneEncounters:
    """Encounter list of a zone as reported upstream."""

    zone_id: int
    zone_name: str
    encounters: list[Encounter] = field(default_factory=list)


@dataclass(frozen=True)
class Kill:
    """One recorded kill of an encounter."""

    difficulty: Difficulty
    kill_date: datetime | None = None


@dataclass
class EncounterProgress:
    """Kills a character has recorded against one encounter."""

    encounter_id: int
    encounter_name: str
    kills: list[Kill] = field(default_factory=list)


@dataclass
class ZoneProgression:
    """A character's kill history for one zone."""

    encounters: list[EncounterProgress] = field(default_factory=list)

    def for_encounter(self, encounter_id: int) -> EncounterProgress | None:
        for progress in self.encounters:
            if progress.encounter_id == encounter_id:
                return progress
        return None
