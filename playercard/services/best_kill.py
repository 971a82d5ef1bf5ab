"""
Best-kill resolver.

Picks the single kill a player card displays for the active tier. Depth of
progression wins over everything else: the deepest encounter with any kill
is chosen, then its hardest difficulty. Percentiles play no part.
"""

from collections.abc import Mapping, Sequence

from playercard.models.player_card import BestKill
from playercard.models.tier import ZoneProgression


def compute_best_kill(
    progression: ZoneProgression,
    encounter_order: Sequence[int],
    encounter_names: Mapping[int, str],
) -> BestKill | None:
    """
    Select the deepest, hardest kill in a tier.

    Args:
        progression: The character's kills for the tier's zone
        encounter_order: Encounter ids from first boss to deepest
        encounter_names: Encounter id -> display name

    Returns:
        The best kill, or None when nothing in the tier was killed
    """
    for order_index in range(len(encounter_order) - 1, -1, -1):
        encounter_id = encounter_order[order_index]
        progress = progression.for_encounter(encounter_id)
        if progress is None or not progress.kills:
            continue

        hardest = max((kill.difficulty for kill in progress.kills), key=lambda d: d.rank)
        return BestKill(
            boss_id=encounter_id,
            boss_name=encounter_names.get(encounter_id) or f"Boss {encounter_id}",
            difficulty=hardest,
            encounter_order_index=order_index,
        )

    return None
