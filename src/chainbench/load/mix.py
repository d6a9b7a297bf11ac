"""
Operation-kind and target selection for load batches.
"""

import random
from typing import Dict, List, Mapping, Optional, Sequence

from ..models.config import TargetSelection
from ..sources.base import Target
from ..validation import ConfigurationError


class OperationMix:
    """Weighted draw of operation kinds."""

    def __init__(self, weights: Mapping[str, float], rng: Optional[random.Random] = None):
        positive: Dict[str, float] = {
            str(kind): float(weight) for kind, weight in weights.items() if float(weight) > 0
        }
        if not positive:
            raise ConfigurationError(
                "Operation mix must contain at least one kind with a positive weight",
                field_name="load.operation_mix",
                value=dict(weights),
            )
        self._weights = positive
        self._total = sum(positive.values())
        self._rng = rng or random.Random()

    @property
    def kinds(self) -> List[str]:
        return list(self._weights)

    @property
    def weights(self) -> Dict[str, float]:
        return dict(self._weights)

    def choose(self) -> str:
        r = self._rng.random() * self._total
        upto = 0.0
        for kind, weight in self._weights.items():
            upto += weight
            if upto >= r:
                return kind
        # float rounding
        return next(iter(self._weights))


class TargetSelector:
    """
    Assigns targets to the operations of a sustained batch.

    ``deterministic`` cycles round-robin over the targets, continuing where
    the previous batch stopped. ``random-per-batch`` draws one target for the
    whole batch.
    """

    def __init__(
        self,
        targets: Sequence[Target],
        mode: TargetSelection = TargetSelection.RANDOM_PER_BATCH,
        rng: Optional[random.Random] = None,
    ):
        if not targets:
            raise ConfigurationError("At least one load target is required", field_name="targets")
        self._targets = list(targets)
        self.mode = mode
        self._rng = rng or random.Random()
        self._cursor = 0

    def for_batch(self, size: int) -> List[Target]:
        if self.mode is TargetSelection.DETERMINISTIC:
            chosen = []
            for _ in range(size):
                chosen.append(self._targets[self._cursor])
                self._cursor = (self._cursor + 1) % len(self._targets)
            return chosen

        target = self._rng.choice(self._targets)
        return [target] * size
