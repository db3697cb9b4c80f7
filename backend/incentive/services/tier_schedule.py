"""
tier_schedule.py — Ordered incentive bands for one production nature.

Bands are sorted by ``min`` ascending once, at construction.  Lookups are a
linear scan; a nature carries a handful of bands (well under 20), so no
interval index is built.
"""

from typing import Iterable, List, Optional, Tuple

from incentive.models.schemas import IncentiveTier


class TierSchedule:
    """Immutable, ``min``-sorted view over a nature's incentive tiers."""

    def __init__(self, tiers: Iterable[IncentiveTier]) -> None:
        self._tiers: Tuple[IncentiveTier, ...] = tuple(sorted(tiers, key=lambda t: t.min))

    def __len__(self) -> int:
        return len(self._tiers)

    def __iter__(self):
        return iter(self._tiers)

    @property
    def tiers(self) -> Tuple[IncentiveTier, ...]:
        return self._tiers

    def first(self) -> Optional[IncentiveTier]:
        """Lowest band by ``min``; used for every shortfall."""
        return self._tiers[0] if self._tiers else None

    def match(self, quantity: float) -> Optional[IncentiveTier]:
        """First band whose inclusive ``[min, max]`` contains ``quantity``."""
        for tier in self._tiers:
            if tier.contains(quantity):
                return tier
        return None

    def bands_through(self, tier: IncentiveTier) -> List[IncentiveTier]:
        """Every band with ``min <= tier.min``, ascending — the cascade path."""
        return [t for t in self._tiers if t.min <= tier.min]
