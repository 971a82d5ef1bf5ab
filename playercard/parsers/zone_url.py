"""
Warcraft Logs zone URL parser.

Extracts the zone id from tier URLs such as:
- https://www.warcraftlogs.com/zone/rankings/44
- https://www.warcraftlogs.com/zone/statistics/44
- https://www.warcraftlogs.com/zone/reports/44
- https://www.warcraftlogs.com/anything?zone=44
"""

import re
from urllib.parse import parse_qs, urlsplit

from playercard.parsers.character_url import InvalidReferenceError, split_upstream_url

_ZONE_PATH = re.compile(r"/zone/(?:rankings|statistics|reports|encounters?)/(\d+)")


def _positive_int(value: str) -> int | None:
    if value.isascii() and value.isdigit() and int(value) > 0:
        return int(value)
    return None


def parse_zone_url(url: str) -> int:
    """
    Parse a Warcraft Logs zone id from a tier URL.

    Raises:
        InvalidReferenceError: If the URL is not a Warcraft Logs URL or
            carries no positive zone id
    """
    _, trimmed = split_upstream_url(url)
    parts = urlsplit(trimmed if trimmed.lower().startswith("http") else f"https://{trimmed}")

    match = _ZONE_PATH.search(parts.path)
    if match:
        zone_id = _positive_int(match.group(1))
        if zone_id is not None:
            return zone_id

    for value in parse_qs(parts.query).get("zone", []):
        zone_id = _positive_int(value)
        if zone_id is not None:
            return zone_id

    raise InvalidReferenceError(
        "Could not extract zone ID from URL. Accepted formats: "
        "https://www.warcraftlogs.com/zone/rankings/<id>, "
        "https://www.warcraftlogs.com/zone/statistics/<id>, "
        "or any Warcraft Logs URL with ?zone=<id> parameter"
    )
