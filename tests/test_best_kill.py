"""Tests for best-kill selection within a tier."""

from playercard.models.player_card import Difficulty
from playercard.models.tier import EncounterProgress, Kill, ZoneProgression
from playercard.services.best_kill import compute_best_kill

ENCOUNTER_ORDER = [101, 102, 103, 104, 105, 106, 107, 108]
ENCOUNTER_NAMES = {eid: f"Encounter {i}" for i, eid in enumerate(ENCOUNTER_ORDER)}


def _progression(kills: dict[int, list[Difficulty]]) -> ZoneProgression:
    return ZoneProgression(
        encounters=[
            EncounterProgress(
                encounter_id=eid,
                encounter_name=f"Upstream {eid}",
                kills=[Kill(difficulty=d) for d in difficulties],
            )
            for eid, difficulties in kills.items()
        ]
    )


class TestComputeBestKill:
    def test_deepest_encounter_wins_then_hardest_difficulty(self) -> None:
        progression = _progression(
            {
                ENCOUNTER_ORDER[2]: [Difficulty.HEROIC],
                ENCOUNTER_ORDER[5]: [Difficulty.NORMAL, Difficulty.MYTHIC],
            }
        )

        best = compute_best_kill(progression, ENCOUNTER_ORDER, ENCOUNTER_NAMES)

        assert best is not None
        assert best.encounter_order_index == 5
        assert best.boss_id == ENCOUNTER_ORDER[5]
        assert best.difficulty == Difficulty.MYTHIC
        assert best.boss_name == "Encounter 5"

    def test_depth_beats_difficulty(self) -> None:
        progression = _progression(
            {
                ENCOUNTER_ORDER[0]: [Difficulty.MYTHIC],
                ENCOUNTER_ORDER[7]: [Difficulty.NORMAL],
            }
        )

        best = compute_best_kill(progression, ENCOUNTER_ORDER, ENCOUNTER_NAMES)

        assert best is not None
        assert best.encounter_order_index == 7
        assert best.difficulty == Difficulty.NORMAL

    def test_difficulty_ranked_not_by_order_seen(self) -> None:
        progression = _progression(
            {ENCOUNTER_ORDER[3]: [Difficulty.MYTHIC, Difficulty.HEROIC, Difficulty.NORMAL]}
        )

        best = compute_best_kill(progression, ENCOUNTER_ORDER, ENCOUNTER_NAMES)

        assert best is not None
        assert best.difficulty == Difficulty.MYTHIC

    def test_no_kills_returns_none(self) -> None:
        assert compute_best_kill(ZoneProgression(), ENCOUNTER_ORDER, ENCOUNTER_NAMES) is None

    def test_encounter_without_kills_is_skipped(self) -> None:
        progression = _progression({ENCOUNTER_ORDER[6]: [], ENCOUNTER_ORDER[1]: [Difficulty.HEROIC]})

        best = compute_best_kill(progression, ENCOUNTER_ORDER, ENCOUNTER_NAMES)

        assert best is not None
        assert best.encounter_order_index == 1

    def test_kills_outside_tier_are_ignored(self) -> None:
        progression = _progression({999: [Difficulty.MYTHIC]})

        assert compute_best_kill(progression, ENCOUNTER_ORDER, ENCOUNTER_NAMES) is None

    def test_name_falls_back_to_boss_id(self) -> None:
        progression = _progression({ENCOUNTER_ORDER[0]: [Difficulty.NORMAL]})

        best = compute_best_kill(progression, ENCOUNTER_ORDER, {})

        assert best is not None
        assert best.boss_name == f"Boss {ENCOUNTER_ORDER[0]}"
