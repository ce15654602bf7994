from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional, Sequence

TIER_STRONG = "Strong"
TIER_MODERATE = "Moderate"
TIER_MIXED = "Mixed"


@dataclass(frozen=True)
class OptionResult:
    option: str
    votes: int
    percentage: float


@dataclass(frozen=True)
class PollResults:
    total_votes: int
    results: list[OptionResult]

    @property
    def winner(self) -> Optional[OptionResult]:
        return self.results[0] if self.results else None

    @property
    def tier(self) -> Optional[str]:
        return consensus_tier(self.winner.percentage) if self.winner else None

    def to_dict(self) -> dict:
        return {
            "total_votes": self.total_votes,
            "results": [asdict(r) for r in self.results],
            "winner": asdict(self.winner) if self.winner else None,
            "tier": self.tier,
        }


def percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    pct = Decimal(count) * 100 / Decimal(total)
    return float(pct.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def consensus_tier(top_percentage: float) -> str:
    if top_percentage >= 60:
        return TIER_STRONG
    if top_percentage >= 50:
        return TIER_MODERATE
    return TIER_MIXED


def compute_results(options: Sequence[str], votes: Mapping[str, int]) -> PollResults:
    """
    Rank options by descending count. sorted() is stable, so ties keep the
    poll's original option order.
    """
    total = sum(votes.get(o, 0) for o in options)
    ranked = sorted(options, key=lambda o: -votes.get(o, 0))
    return PollResults(
        total_votes=total,
        results=[OptionResult(o, votes.get(o, 0), percentage(votes.get(o, 0), total)) for o in ranked],
    )
