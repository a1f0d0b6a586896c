"""Join validated oracle results back to lost-item reports and rank them."""
from __future__ import annotations
from typing import Dict, Iterable, List, Sequence

from app.domain.match_schema import confidence_band
from app.models.items import LostItemReport, MatchResult, ScoredMatch

__all__ = ["rank", "confidence_band"]


def rank(results: Iterable[MatchResult], universe: Sequence[LostItemReport]) -> List[ScoredMatch]:
    """Unknown ids are dropped, duplicate ids keep their first occurrence, and
    the sort is stable so equal confidences keep the oracle's order."""
    by_id: Dict[str, LostItemReport] = {item.id: item for item in universe}
    seen = set()
    joined: List[ScoredMatch] = []
    for result in results:
        report = by_id.get(result.id)
        if report is None or result.id in seen:
            continue
        seen.add(result.id)
        joined.append(ScoredMatch(
            **report.model_dump(),
            confidence=result.confidence,
            reasoning=result.reasoning,
        ))
    return sorted(joined, key=lambda m: m.confidence, reverse=True)
