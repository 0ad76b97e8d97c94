"""
Readiness Scorer - How much of a node's prerequisite structure is complete.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Collection, Dict, Iterable, List, Optional

from pydantic import BaseModel

from lyceum.engines.graph.model import PrerequisiteEdge


class ReadinessResult(BaseModel):
    """Readiness of one learner for one node."""

    satisfied: bool
    score: float

    required: List[PrerequisiteEdge]
    completed_required: List[PrerequisiteEdge]
    missing_required: List[PrerequisiteEdge]

    recommended: List[PrerequisiteEdge]
    completed_recommended: List[PrerequisiteEdge]

    def counts(self) -> Dict[str, int]:
        """Summary counts for display."""
        return {
            "required_total": len(self.required),
            "required_completed": len(self.completed_required),
            "recommended_total": len(self.recommended),
            "recommended_completed": len(self.completed_recommended),
        }


class ReadinessScorer:
    """
    Two-tier readiness score.

    Required prerequisites carry REQUIRED_WEIGHT points scaled by the fraction
    completed; recommended ones carry RECOMMENDED_WEIGHT the same way. A tier
    with no edges contributes its full weight, so a node without recommended
    material still reaches 100 once the required work is done.

    Only ``satisfied`` (every required prerequisite completed) gates
    availability; the score is informational.

    The 70/30 split is a tunable parameter (see Settings).
    """

    REQUIRED_WEIGHT = 70.0
    RECOMMENDED_WEIGHT = 30.0

    @classmethod
    def score(
        cls,
        edges: Iterable[PrerequisiteEdge],
        completed_ids: Collection[str],
        required_weight: Optional[float] = None,
        recommended_weight: Optional[float] = None,
    ) -> ReadinessResult:
        """
        Score readiness for a node.

        Args:
            edges: The node's own prerequisite edges
            completed_ids: Node ids the learner has mastered
            required_weight: Override for REQUIRED_WEIGHT
            recommended_weight: Override for RECOMMENDED_WEIGHT

        Returns:
            ReadinessResult with the score rounded half-up to 2 decimals
        """
        if required_weight is None:
            required_weight = cls.REQUIRED_WEIGHT
        if recommended_weight is None:
            recommended_weight = cls.RECOMMENDED_WEIGHT

        required: List[PrerequisiteEdge] = []
        recommended: List[PrerequisiteEdge] = []
        for edge in edges:
            (required if edge.required else recommended).append(edge)

        completed_required = [e for e in required if e.prerequisite_id in completed_ids]
        missing_required = [e for e in required if e.prerequisite_id not in completed_ids]
        completed_recommended = [e for e in recommended if e.prerequisite_id in completed_ids]

        total = cls._tier_points(required_weight, len(completed_required), len(required))
        total += cls._tier_points(recommended_weight, len(completed_recommended), len(recommended))

        return ReadinessResult(
            satisfied=not missing_required,
            score=cls._round(total),
            required=required,
            completed_required=completed_required,
            missing_required=missing_required,
            recommended=recommended,
            completed_recommended=completed_recommended,
        )

    @staticmethod
    def _tier_points(weight: float, done: int, total: int) -> Decimal:
        weight_d = Decimal(str(weight))
        if total == 0:
            return weight_d
        return weight_d * done / total

    @staticmethod
    def _round(value: Decimal) -> float:
        return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def score_readiness(
    edges: Iterable[PrerequisiteEdge],
    completed_ids: Collection[str],
    required_weight: Optional[float] = None,
    recommended_weight: Optional[float] = None,
) -> ReadinessResult:
    """Shortcut for ``ReadinessScorer.score``."""
    return ReadinessScorer.score(edges, completed_ids, required_weight, recommended_weight)
