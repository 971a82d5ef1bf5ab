"""
Warcraft Logs class index lookup.

Warcraft Logs numbers classes ALPHABETICALLY, not in Blizzard's canonical
order: class 2 is Druid (not Paladin), class 12 is Demon Hunter. The two
classes added after the original ten are appended at the end.
"""

import logging

logger = logging.getLogger(__name__)

UNKNOWN_CLASS = "Unknown"

WCL_CLASS_NAMES: dict[int, str] = {
    1: "Death Knight",
    2: "Druid",
    3: "Hunter",
    4: "Mage",
    5: "Monk",
    6: "Paladin",
    7: "Priest",
    8: "Rogue",
    9: "Shaman",
    10: "Warlock",
    11: "Warrior",
    12: "Demon Hunter",
    13: "Evoker",
}


def get_class_name(class_id: int | None) -> str:
    """Convert a Warcraft Logs class index to a class name."""
    name = WCL_CLASS_NAMES.get(class_id, UNKNOWN_CLASS) if class_id is not None else UNKNOWN_CLASS
    logger.debug("Class index %s -> %s", class_id, name)
    return name
