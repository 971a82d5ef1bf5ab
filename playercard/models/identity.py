"""
Character identity models.

A character is keyed everywhere (upstream and local cache) by the triple
(region, realm slug, character name). Profile URLs can also reference a
character by an opaque numeric id, which must be resolved upstream first.
"""

from dataclasses import dataclass
from enum import Enum


class Region(str, Enum):
    """Warcraft Logs server regions."""

    US = "US"
    EU = "EU"
    KR = "KR"
    TW = "TW"
    CN = "CN"


@dataclass(frozen=True)
class ResolvedIdentity:
    """
    Fully normalized character identity.

    Attributes:
        region: One of the five region codes
        realm: Lowercase realm slug (e.g., "area-52")
        character_name: Capitalized name (e.g., "Testchar")
    """

    region: Region
    realm: str
    character_name: str

    def __str__(self) -> str:
        return f"{self.character_name}-{self.realm}-{self.region.value}"


@dataclass(frozen=True)
class SlugReference:
    """A profile URL naming region/realm/character directly."""

    identity: ResolvedIdentity
    original_url: str


@dataclass(frozen=True)
class NumericIdReference:
    """A profile URL naming the character by upstream id only."""

    character_id: str
    original_url: str


CharacterReference = SlugReference | NumericIdReference
