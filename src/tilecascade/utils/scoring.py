from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from tilecascade.config import ScoringConfig
from tilecascade.systems.board_ops import Match


@dataclass(slots=True)
class ScoreBreakdown:
    score: int
    base_points: int
    multiplier: float
    combo_count: int
    tiles_cleared: int


def calculate_score(matches: Sequence[Match], combo_count: int, scoring: ScoringConfig) -> ScoreBreakdown:
    """Score one cascade step.

    The summed match lengths are scaled by ``combo_multiplier ** (combo_count - 1)``
    and floored; match-4/match-5 bonuses are flat per qualifying match and are
    not scaled.
    """
    tiles_cleared = sum(len(match) for match in matches)
    base_points = tiles_cleared * scoring.base_score
    multiplier = scoring.combo_multiplier ** (combo_count - 1)
    score = math.floor(base_points * multiplier)
    for match in matches:
        if len(match) == 4:
            score += scoring.match4_bonus
        elif len(match) >= 5:
            score += scoring.match5_bonus
    return ScoreBreakdown(
        score=score,
        base_points=base_points,
        multiplier=multiplier,
        combo_count=combo_count,
        tiles_cleared=tiles_cleared,
    )
