"""
Success Story Ranking

Asks the LLM to order success stories by relevance to a user profile.
"""

import logging
from typing import Any, Dict, List, Sequence

from sparkpath_mentor import prompts
from sparkpath_mentor.errors import UpstreamUnavailable
from sparkpath_mentor.llm_gateway import LLMGateway
from sparkpath_mentor.response_parser import parse_ranking_indices

logger = logging.getLogger(__name__)


def rank_by_indices(items: Sequence[Any], indices: List[int]) -> List[Any]:
    """Reorder `items` by 0-based `indices`, skipping out-of-range and repeated entries."""
    ranked = []
    seen = set()
    for index in indices:
        if 0 <= index < len(items) and index not in seen:
            seen.add(index)
            ranked.append(items[index])
    return ranked


async def rank_success_stories(
    gateway: LLMGateway,
    stories: List[Dict[str, Any]],
    profile: Dict[str, Any],
    limit: int = 5,
) -> List[Dict[str, Any]]:
    """
    Rank stories for a profile and return the top `limit`.

    Falls back to the incoming order if the LLM is unavailable or its answer
    contains no usable index.
    """
    if not stories:
        return []

    try:
        text = await gateway.complete(prompts.story_ranking_prompt(stories, profile), None, 300)
    except UpstreamUnavailable as e:
        logger.warning(f"⚠️ [StoryRanking] Ranking unavailable, keeping stored order: {e}")
        return stories[:limit]

    ranked = rank_by_indices(stories, parse_ranking_indices(text))
    return (ranked or stories)[:limit]
