"""Match orchestration for one found item.

Pipeline: build request (images normalized concurrently) -> oracle query ->
response validation -> ranking. Only ConfigurationError and OracleCallFailure
propagate; everything else degrades inside its component.
"""
from __future__ import annotations
from typing import Callable, List, Optional, Sequence

from app.domain.match_schema import DEFAULT_MAX_CANDIDATES
from app.models.items import FoundItemReport, LostItemReport, ScoredMatch
from app.models.oracle import OracleConfig
from app.scripts.logging_config import get_logger, log_match_summary
from app.services import match_ranker, response_validator
from app.services.image_normalizer import ImageNormalizer
from app.services.oracle_client import OracleClient
from app.services.prompt_builder import build_request
from config import settings

logger = get_logger("oracle")


class MatchEngine:
    def __init__(
        self,
        client: OracleClient,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
        normalizer_factory: Callable[[], ImageNormalizer] = ImageNormalizer,
    ):
        self.client = client
        self.max_candidates = max_candidates
        self.normalizer_factory = normalizer_factory

    async def find_matches(self, found: FoundItemReport, lost_items: Sequence[LostItemReport]) -> List[ScoredMatch]:
        # configuration problems are fatal and reported before any work
        self.client.ensure_configured()
        if not lost_items:
            logger.info("no lost items to compare found=%s", found.id)
            return []

        async with self.normalizer_factory() as normalizer:
            request = await build_request(found, lost_items, normalizer, max_candidates=self.max_candidates)

        raw = await self.client.query(request)
        results = response_validator.normalize(raw)
        included = list(lost_items[:len(request.candidate_ids)])
        ranked = match_ranker.rank(results, included)
        log_match_summary(found.id, {
            'candidates': len(request.candidate_ids),
            'valid_entries': len(results),
            'ranked': len(ranked),
            'placeholders': request.placeholders,
        }, logger=logger)
        return ranked


_engine: Optional[MatchEngine] = None


def get_engine() -> MatchEngine:
    global _engine
    if _engine:
        return _engine
    client = OracleClient(OracleConfig.from_settings(settings))
    _engine = MatchEngine(client, max_candidates=settings.MATCH_MAX_CANDIDATES)
    return _engine
