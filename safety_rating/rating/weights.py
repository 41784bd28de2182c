"""PSR weight schemes, selected by employer linkage."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from safety_rating.utils.config import LINKED_WEIGHTS, SOLO_WEIGHTS, WEIGHT_TOTAL


class RatingMode(str, Enum):
    """Weighting mode. Determined only by whether an active link exists."""

    SOLO = "solo"
    LINKED = "linked"


@dataclass(frozen=True)
class WeightScheme:
    """Integer percentage weights per component, summing to 100."""

    mode: RatingMode
    weights: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        total = sum(self.weights.values())
        if total != WEIGHT_TOTAL:
            raise ValueError(
                f"{self.mode.value} weights sum to {total}, expected {WEIGHT_TOTAL}"
            )
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))

    @property
    def components(self) -> tuple[str, ...]:
        return tuple(self.weights)

    def fraction(self, component: str) -> float:
        """Weight of a component as a fraction of 1.0."""
        return self.weights[component] / WEIGHT_TOTAL


WEIGHT_SCHEMES: dict[RatingMode, WeightScheme] = {
    RatingMode.SOLO: WeightScheme(RatingMode.SOLO, SOLO_WEIGHTS),
    RatingMode.LINKED: WeightScheme(RatingMode.LINKED, LINKED_WEIGHTS),
}


def select_mode(linked: bool) -> RatingMode:
    """Map the employer link flag to a rating mode."""
    return RatingMode.LINKED if linked else RatingMode.SOLO


def select_weight_scheme(linked: bool) -> WeightScheme:
    """Weight scheme for the given linkage state."""
    return WEIGHT_SCHEMES[select_mode(linked)]
