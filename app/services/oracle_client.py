"""Single network boundary towards the matching oracle."""
from __future__ import annotations
import asyncio
import time
from typing import Optional

from app.domain.errors import OracleCallFailure
from app.domain.match_schema import MATCH_RESPONSE_SCHEMA
from app.models.oracle import OracleConfig, RawOracleOutput
from app.scripts.logging_config import get_logger, log_oracle_call
from app.services.oracle_providers import BaseOracleProvider, get_provider
from app.services.prompt_builder import OrchestratedRequest

logger = get_logger("oracle")


class OracleClient:
    """Sends an OrchestratedRequest plus the response-shape contract to a provider.

    Raises OracleUnavailable (a ConfigurationError) when the provider cannot be
    built, and OracleCallFailure for any error raised during the call itself.
    No retries: callers wrap the client if they want them.
    """

    def __init__(self, config: OracleConfig, provider: Optional[BaseOracleProvider] = None):
        self.config = config
        self._provider = provider

    def ensure_configured(self) -> BaseOracleProvider:
        if self._provider is None:
            self._provider = get_provider(self.config)
        return self._provider

    async def query(self, request: OrchestratedRequest) -> RawOracleOutput:
        provider = self.ensure_configured()
        if not request.candidate_ids:
            logger.info("oracle call skipped found=%s reason=no_candidates", request.found_id)
            return RawOracleOutput(provider=provider.name, model=provider.model, skipped=True)

        start = time.time()
        try:
            text = await asyncio.to_thread(
                provider.compare, request.parts, MATCH_RESPONSE_SCHEMA, self.config.timeout_seconds
            )
        except Exception as e:
            log_oracle_call(provider.name, provider.model, False, time.time() - start,
                            candidate_count=len(request.candidate_ids),
                            error=f"{type(e).__name__}: {str(e)[:180]}", logger=logger)
            raise OracleCallFailure(f"oracle call failed: {type(e).__name__}: {str(e)[:400]}") from e

        text = text or ""
        log_oracle_call(provider.name, provider.model, True, time.time() - start,
                        candidate_count=len(request.candidate_ids), chars=len(text), logger=logger)
        return RawOracleOutput(text=text, provider=provider.name, model=provider.model)
