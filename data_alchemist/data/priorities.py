"""
Prioritization weights and preset profiles.

Weights are relative: the sum is reported, never normalized.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, replace


@dataclass(frozen=True)
class PrioritizationWeights:
    priority_level: float = 0.3
    fulfillment: float = 0.25
    fairness: float = 0.2
    workload: float = 0.15
    efficiency: float = 0.1

    @property
    def total(self) -> float:
        return round(sum(asdict(self).values()), 6)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    def with_updates(self, **weights: float) -> "PrioritizationWeights":
        return replace(self, **weights)


@dataclass(frozen=True)
class PrioritizationProfile:
    id: str
    name: str
    description: str
    weights: PrioritizationWeights

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "weights": self.weights.to_dict(),
        }


PRESET_PROFILES: dict[str, PrioritizationProfile] = {
    "balanced": PrioritizationProfile(
        id="balanced",
        name="Balanced",
        description="Default mix leaning on client priority level",
        weights=PrioritizationWeights(),
    ),
    "fulfillment-first": PrioritizationProfile(
        id="fulfillment-first",
        name="Maximize Fulfillment",
        description="Fill as many requested tasks as possible",
        weights=PrioritizationWeights(
            priority_level=0.2, fulfillment=0.5, fairness=0.1, workload=0.1, efficiency=0.1,
        ),
    ),
    "fairness-first": PrioritizationProfile(
        id="fairness-first",
        name="Fair Distribution",
        description="Spread work evenly across clients and workers",
        weights=PrioritizationWeights(
            priority_level=0.1, fulfillment=0.2, fairness=0.4, workload=0.2, efficiency=0.1,
        ),
    ),
}
