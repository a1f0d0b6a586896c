"""Prompt builder for assembling the multi-part comparison request.

build_request orchestrates:
  - candidate truncation (first N in input order)
  - concurrent image normalization for the found item + every candidate
  - fixed part order: framing, found image, separator, candidate blocks
A failed image never aborts the build; that slot becomes a text placeholder.
"""
from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from app.domain.errors import NormalizationFailure
from app.domain.match_schema import (
    CANDIDATE_IMAGE_PLACEHOLDER,
    DEFAULT_MAX_CANDIDATES,
    FOUND_IMAGE_PLACEHOLDER,
)
from app.models.items import FoundItemReport, LostItemReport
from app.scripts.logging_config import get_logger
from app.services.image_normalizer import ImageNormalizer, ImagePart

logger = get_logger("oracle")


@dataclass(frozen=True)
class TextPart:
    text: str


PromptPart = Union[TextPart, ImagePart]


@dataclass
class OrchestratedRequest:
    found_id: str
    parts: List[PromptPart] = field(default_factory=list)
    candidate_ids: List[str] = field(default_factory=list)
    placeholders: int = 0

    def text(self) -> str:
        return "\n".join(p.text for p in self.parts if isinstance(p, TextPart))


def _framing(found: FoundItemReport) -> str:
    return (
        "You are an intelligent lost and found matching system for a university.\n"
        "Your task is to identify potential matches for a found item from a list of lost item reports.\n\n"
        "CRITICAL INSTRUCTION: You must visually compare the image of the found item with the images "
        "provided for the candidate lost items. Do not rely on the text alone.\n"
        "Also analyze the text descriptions (name, color, brand, location, date).\n\n"
        "FOUND ITEM DETAILS:\n"
        f'- Name: "{found.item_name}"\n'
        f'- Description: "{found.description}"\n'
        f'- Location Found: "{found.location_found}"\n'
        f'- Date Found: "{found.date_found}"\n\n'
        "Below is the image of the found item:"
    )


SEPARATOR = (
    "\n--------------------------------------------------\n"
    "CANDIDATE LOST ITEMS:\n"
    "Analyze each candidate below and determine if it matches the found item."
)


def _candidate_block(item: LostItemReport) -> str:
    return (
        f"\n--- Candidate ID: {item.id} ---\n"
        f"- Name: {item.item_name}\n"
        f"- Description: {item.description}\n"
        f"- Date Lost: {item.date_lost}\n"
        f"- Last Known Location: {item.last_known_location}\n"
        "- Image:"
    )


async def _safe_normalize(normalizer: ImageNormalizer, image_ref: str, owner_id: str) -> Optional[ImagePart]:
    try:
        return await normalizer.normalize(image_ref)
    except NormalizationFailure as e:
        logger.warning("image slot degraded owner=%s type=%s reason=%s", owner_id, type(e).__name__, e.reason)
        return None


async def build_request(
    found: FoundItemReport,
    candidates: Sequence[LostItemReport],
    normalizer: ImageNormalizer,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> OrchestratedRequest:
    included = list(candidates[:max(0, max_candidates)])
    if len(candidates) > len(included):
        logger.info("candidate cap applied found=%s total=%d included=%d", found.id, len(candidates), len(included))

    images = await asyncio.gather(
        _safe_normalize(normalizer, found.image, found.id),
        *(_safe_normalize(normalizer, item.image, item.id) for item in included),
    )
    found_image, candidate_images = images[0], images[1:]

    req = OrchestratedRequest(found_id=found.id)
    req.parts.append(TextPart(_framing(found)))
    if found_image:
        req.parts.append(found_image)
    else:
        req.parts.append(TextPart(FOUND_IMAGE_PLACEHOLDER))
        req.placeholders += 1
    req.parts.append(TextPart(SEPARATOR))

    for item, image in zip(included, candidate_images):
        req.parts.append(TextPart(_candidate_block(item)))
        if image:
            req.parts.append(image)
        else:
            req.parts.append(TextPart(CANDIDATE_IMAGE_PLACEHOLDER))
            req.placeholders += 1
        req.candidate_ids.append(item.id)
    return req
