"""Oracle output validation.

normalize() is total: whatever the oracle returned, the caller gets a list of
MatchResult (possibly empty) and never an exception. Malformed output is logged
and treated as "no matches". Oracle ordering is preserved; ranking happens in
match_ranker.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Union
import json
import math
import re

from app.domain.errors import MalformedOracleOutput
from app.domain.match_schema import CONFIDENCE_MAX, CONFIDENCE_MIN, REQUIRED_MATCH_FIELDS
from app.models.items import MatchResult
from app.models.oracle import RawOracleOutput
from app.scripts.logging_config import get_logger

logger = get_logger("oracle")

_FENCE_LANG_RE = re.compile(r"^json\s*\n", flags=re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{.*\}", flags=re.DOTALL)


def _attempt_parse(raw: str) -> Optional[Dict[str, Any]]:
    snippet = raw.strip()
    if '```' in snippet:
        for p in snippet.split('```'):
            if '{' in p and '}' in p:
                snippet = p
                break
    snippet = _FENCE_LANG_RE.sub('', snippet.strip()).strip()
    try:
        parsed = json.loads(snippet)
        if isinstance(parsed, dict):
            return parsed
    except (ValueError, RecursionError):
        pass
    # salvage outermost braces (prose around the object)
    m = _OBJECT_RE.search(raw)
    if m:
        try:
            parsed = json.loads(m.group(0))
            if isinstance(parsed, dict):
                return parsed
        except (ValueError, RecursionError):
            pass
    return None


def _entries(raw: Any) -> List[Any]:
    if isinstance(raw, RawOracleOutput):
        raw = raw.text
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", "replace")
    if isinstance(raw, str):
        payload = _attempt_parse(raw) if raw.strip() else None
    elif isinstance(raw, dict):
        payload = raw
    else:
        payload = None
    if payload is None:
        raise MalformedOracleOutput("oracle output is not a JSON object")
    matches = payload.get("matches")
    if not isinstance(matches, list):
        raise MalformedOracleOutput("oracle output has no 'matches' list")
    return matches


def coerce_confidence(value: Any) -> Optional[float]:
    """Number (or numeric string, optional trailing %) clamped into [0, 100]; None if unusable."""
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            score = float(value)
        elif isinstance(value, str):
            score = float(value.strip().rstrip('%').strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(score):
        return None
    return min(max(score, CONFIDENCE_MIN), CONFIDENCE_MAX)


def _clean(entry: Any) -> Optional[MatchResult]:
    if not isinstance(entry, dict):
        return None
    if any(k not in entry for k in REQUIRED_MATCH_FIELDS):
        return None
    raw_id = entry.get("id")
    if isinstance(raw_id, bool) or not isinstance(raw_id, (str, int)):
        return None
    match_id = str(raw_id).strip()
    if not match_id:
        return None
    reasoning = entry.get("reasoning")
    if not isinstance(reasoning, str):
        return None
    confidence = coerce_confidence(entry.get("confidence"))
    if confidence is None:
        return None
    return MatchResult(id=match_id, confidence=confidence, reasoning=reasoning.strip())


def normalize(raw: Union[RawOracleOutput, str, Dict[str, Any], None]) -> List[MatchResult]:
    try:
        entries = _entries(raw)
    except MalformedOracleOutput as e:
        preview = raw.text if isinstance(raw, RawOracleOutput) else raw
        logger.warning("malformed oracle output: %s preview=%r", e, str(preview)[:200])
        return []
    results: List[MatchResult] = []
    dropped = 0
    for entry in entries:
        cleaned = _clean(entry)
        if cleaned is None:
            dropped += 1
            continue
        results.append(cleaned)
    if dropped:
        logger.info("oracle entries dropped=%d kept=%d", dropped, len(results))
    return results
