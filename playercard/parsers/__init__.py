from playercard.parsers.character_url import (
    InvalidReferenceError,
    build_character_url,
    is_character_url,
    parse_character_url,
    realm_slug,
    resolve_identity,
)
from playercard.parsers.zone_url import parse_zone_url

__all__ = [
    "InvalidReferenceError",
    "build_character_url",
    "is_character_url",
    "parse_character_url",
    "parse_zone_url",
    "realm_slug",
    "resolve_identity",
]
