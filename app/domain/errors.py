"""Exception hierarchy for the match orchestration engine.

Only ConfigurationError and OracleCallFailure leave the engine. Image
normalization failures are absorbed by the request builder, and
MalformedOracleOutput never escapes the response validator.
"""
from __future__ import annotations


class MatchError(Exception):
    """Base class for all matching errors."""


class ConfigurationError(MatchError):
    """Oracle credential or provider configuration is missing/invalid."""


class OracleUnavailable(ConfigurationError):
    """No usable oracle: credential absent or provider unknown."""


class NormalizationFailure(MatchError):
    def __init__(self, image_ref: str, reason: str):
        self.image_ref = image_ref
        self.reason = reason
        super().__init__(f"{reason} ref={_preview(image_ref)}")


class FetchFailure(NormalizationFailure):
    """Remote image could not be downloaded."""

    def __init__(self, image_ref: str, reason: str, status: int | None = None):
        self.status = status
        super().__init__(image_ref, reason)


class MalformedPayload(NormalizationFailure):
    """Embedded image text does not match data:<media-type>;base64,<payload>."""


class OracleCallFailure(MatchError):
    """Transport or remote error while querying the oracle."""


class MalformedOracleOutput(MatchError):
    """Oracle text could not be coerced into the match schema."""


def _preview(ref: str, limit: int = 60) -> str:
    if len(ref) <= limit:
        return ref
    return ref[:limit] + "..."
