"""Fixed contracts shared by the request builder, oracle client and ranker."""

DEFAULT_MAX_CANDIDATES = 20

# Response shape declared to the oracle out-of-band (JSON Schema subset).
MATCH_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "matches": {
            "type": "array",
            "description": "List of potential matches with confidence scores and reasoning.",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string", "description": "The ID of the lost item."},
                    "confidence": {
                        "type": "number",
                        "description": "A confidence score between 0 and 100 indicating the likelihood of a match.",
                    },
                    "reasoning": {
                        "type": "string",
                        "description": "A brief explanation of why this item is considered a match, comparing visual features and description.",
                    },
                },
                "required": ["id", "confidence", "reasoning"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["matches"],
    "additionalProperties": False,
}

REQUIRED_MATCH_FIELDS = ["id", "confidence", "reasoning"]

CONFIDENCE_MIN = 0.0
CONFIDENCE_MAX = 100.0

# Presentation bands (inclusive lower bounds)
HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 50

FOUND_IMAGE_PLACEHOLDER = "[Image of found item is unavailable]"
CANDIDATE_IMAGE_PLACEHOLDER = "[Image unavailable]"

EMPTY_ORACLE_TEXT = '{"matches": []}'


def confidence_band(score: float) -> str:
    if score >= HIGH_CONFIDENCE:
        return "high"
    if score >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"
