"""
Warcraft Logs character URL parser.

Parses and validates Warcraft Logs character profile URLs.
Supports two formats:
1. Slug format: https://www.warcraftlogs.com/character/{region}/{realm}/{characterName}
2. ID format:   https://www.warcraftlogs.com/character/id/{characterId}
"""

import re
import unicodedata
from urllib.parse import urlsplit

from playercard.models.identity import (
    CharacterReference,
    NumericIdReference,
    Region,
    ResolvedIdentity,
    SlugReference,
)

UPSTREAM_DOMAIN = "warcraftlogs.com"
CHARACTER_SEGMENT = "character"
ID_SEGMENT = "id"

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 12

_REALM_PATTERN = re.compile(r"[a-z0-9-]+")
_NAME_PATTERN = re.compile(r"[A-Za-z]+")
_ID_PATTERN = re.compile(r"[0-9]+")

_EXPECTED_FORMAT = (
    "Expected format: https://www.warcraftlogs.com/character/{region}/{realm}/{characterName} "
    "or https://www.warcraftlogs.com/character/id/{characterId}"
)


class InvalidReferenceError(ValueError):
    """Raised when a character URL cannot be parsed or fails validation."""


def normalize_region(region: str | Region) -> Region:
    """Validate a region code and return it as a Region."""
    if isinstance(region, Region):
        return region
    try:
        return Region(region.strip().upper())
    except ValueError:
        valid = ", ".join(r.value for r in Region)
        raise InvalidReferenceError(
            f"Invalid region '{region}'. Must be one of: {valid}"
        ) from None


def normalize_realm(realm: str) -> str:
    """
    Validate and normalize a realm slug.

    Realm slugs are lowercase letters, digits and hyphens. Case is folded;
    any other character (including '_') is rejected.
    """
    normalized = realm.strip().lower()
    if not normalized:
        raise InvalidReferenceError("Realm cannot be empty")
    if not _REALM_PATTERN.fullmatch(normalized):
        raise InvalidReferenceError(
            f"Invalid realm slug '{realm}'. Realm must contain only letters, numbers, and hyphens"
        )
    return normalized


def normalize_character_name(name: str) -> str:
    """Validate a character name and capitalize it (e.g., 'tESTchar' -> 'Testchar')."""
    normalized = name.strip()
    if not normalized:
        raise InvalidReferenceError("Character name cannot be empty")
    if not MIN_NAME_LENGTH <= len(normalized) <= MAX_NAME_LENGTH:
        raise InvalidReferenceError(
            f"Invalid character name length '{name}'. "
            f"Must be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters"
        )
    if not _NAME_PATTERN.fullmatch(normalized):
        raise InvalidReferenceError(f"Invalid character name '{name}'. Must contain only letters")
    return normalized[0].upper() + normalized[1:].lower()


def resolve_identity(region: str | Region, realm: str, character_name: str) -> ResolvedIdentity:
    """Normalize all three identity fields."""
    return ResolvedIdentity(
        region=normalize_region(region),
        realm=normalize_realm(realm),
        character_name=normalize_character_name(character_name),
    )


def realm_slug(realm_name: str) -> str:
    """
    Convert a realm display name to its slug.

    Examples:
        "Area 52" -> "area-52"
        "Mal'Ganis" -> "malganis"
    """
    ascii_name = (
        unicodedata.normalize("NFKD", realm_name).encode("ascii", "ignore").decode("ascii")
    )
    slug = ascii_name.strip().lower().replace("'", "")
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    return re.sub(r"-{2,}", "-", slug).strip("-")


def is_upstream_host(hostname: str | None) -> bool:
    """True for warcraftlogs.com and its subdomains."""
    if not hostname:
        return False
    host = hostname.lower()
    return host == UPSTREAM_DOMAIN or host.endswith("." + UPSTREAM_DOMAIN)


def split_upstream_url(url: str) -> tuple[list[str], str]:
    """
    Validate the host of a Warcraft Logs URL.

    Returns:
        Tuple of (non-empty path segments, trimmed url)
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidReferenceError("URL is required and must be a non-empty string")

    trimmed = url.strip()
    to_parse = trimmed if trimmed.lower().startswith("http") else f"https://{trimmed}"

    try:
        parts = urlsplit(to_parse)
        hostname = parts.hostname
    except ValueError:
        raise InvalidReferenceError(f"Invalid URL format: {trimmed}") from None

    if not is_upstream_host(hostname):
        raise InvalidReferenceError(
            f"Invalid domain. Expected {UPSTREAM_DOMAIN}, got: {hostname or 'none'}"
        )

    return [segment for segment in parts.path.split("/") if segment], trimmed


def parse_character_url(url: str) -> CharacterReference:
    """
    Parse and validate a Warcraft Logs character profile URL.

    Args:
        url: Profile URL, with or without scheme

    Returns:
        SlugReference with a normalized identity, or NumericIdReference

    Raises:
        InvalidReferenceError: If the URL is malformed or fails validation
    """
    segments, trimmed = split_upstream_url(url)

    if len(segments) < 2:
        raise InvalidReferenceError(f"Invalid URL structure. {_EXPECTED_FORMAT}")

    section = segments[0]
    if section != CHARACTER_SEGMENT:
        raise InvalidReferenceError(
            f"Invalid URL path. Expected '/{CHARACTER_SEGMENT}/...', got: '/{section}/...'"
        )

    if segments[1] == ID_SEGMENT:
        if len(segments) < 3:
            raise InvalidReferenceError("Character ID is missing from URL")
        character_id = segments[2]
        if not _ID_PATTERN.fullmatch(character_id) or int(character_id) == 0:
            raise InvalidReferenceError(
                f"Invalid character ID '{character_id}'. Character ID must be a positive number."
            )
        return NumericIdReference(character_id=str(int(character_id)), original_url=trimmed)

    if len(segments) < 4:
        raise InvalidReferenceError(f"Invalid URL structure. {_EXPECTED_FORMAT}")

    region, realm, character_name = segments[1], segments[2], segments[3]
    try:
        identity = resolve_identity(region, realm, character_name)
    except InvalidReferenceError as e:
        raise InvalidReferenceError(f"URL validation failed: {e}") from e

    return SlugReference(identity=identity, original_url=trimmed)


def is_character_url(url: str) -> bool:
    """Check whether a string parses as a Warcraft Logs character URL."""
    try:
        parse_character_url(url)
    except InvalidReferenceError:
        return False
    return True


def build_character_url(region: str | Region, realm: str, character_name: str) -> str:
    """
    Build a slug-format character URL.

    Exact inverse of parse_character_url for the slug form.
    """
    identity = resolve_identity(region, realm, character_name)
    return (
        f"https://www.{UPSTREAM_DOMAIN}/{CHARACTER_SEGMENT}/"
        f"{identity.region.value.lower()}/{identity.realm}/{identity.character_name.lower()}"
    )
