"""
Career Pathways

Five-step pathway generated by the LLM for the user's category and primary
subcategory, stored once per user. A career advisor can move the user to a
different category/subcategory, which regenerates the steps and rewrites the
user's profile.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sparkpath_mentor import prompts
from sparkpath_mentor.errors import RecordNotFound, UpstreamUnavailable, ValidationFailure
from sparkpath_mentor.llm_gateway import LLMGateway
from sparkpath_mentor.record_store import RecordStore, Tables
from sparkpath_mentor.response_parser import parse_pathway_steps
from sparkpath_mentor.taxonomy import is_valid_selection, resolve_category

logger = logging.getLogger(__name__)


def default_steps(subcategory: str) -> List[Dict[str, Any]]:
    """Generic pathway used when the LLM gives nothing usable."""
    steps = [
        ("Build Foundational Knowledge", f"Learn the fundamentals of {subcategory}", "2-3 months"),
        ("Gain Practical Experience", "Work on real projects and build your portfolio", "3-6 months"),
        ("Network and Find Mentors", "Connect with professionals in your field", "Ongoing"),
        ("Seek Entry-Level Opportunities", "Apply for internships or junior positions", "1-2 months"),
        ("Continue Learning and Growing", "Stay updated with industry trends", "Ongoing"),
    ]
    return [
        {
            "stepNumber": number,
            "title": title,
            "description": description,
            "estimatedTime": estimated_time,
            "resources": [],
            "completed": False,
        }
        for number, (title, description, estimated_time) in enumerate(steps, start=1)
    ]


class PathwayPlanner:
    """Creates, reads and overrides career pathways."""

    def __init__(self, gateway: LLMGateway, store: RecordStore):
        self.gateway = gateway
        self.store = store

    async def generate_steps(
        self, category: str, subcategory: str, location: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        try:
            text = await self.gateway.complete(
                prompts.career_pathway_prompt(category, subcategory, location), None, 1500
            )
        except UpstreamUnavailable as e:
            logger.warning(f"⚠️ [Pathways] Generation unavailable, using default steps: {e}")
            return default_steps(subcategory)

        steps = parse_pathway_steps(text)
        if steps is None:
            logger.warning(
                f"⚠️ [Pathways] Unparseable pathway for {category}/{subcategory}, using default steps"
            )
            return default_steps(subcategory)
        return steps

    async def for_user(self, user_id: str) -> Dict[str, Any]:
        """
        Return the user's pathway, generating and storing it on first request.

        Raises:
            ValidationFailure: the user has not confirmed a category and subcategory yet
        """
        existing = await self.store.query(Tables.PATHWAYS, {"userId": user_id}, index="userId-index")
        if existing:
            return existing[0]

        user = await self.store.get(Tables.USERS, {"userId": user_id})
        if not user or not user.get("category") or not user.get("subcategories"):
            raise ValidationFailure("User needs to complete assessment first")

        subcategory = user["subcategories"][0]
        pathway = {
            "pathwayId": str(uuid.uuid4()),
            "userId": user_id,
            "category": user["category"],
            "subcategory": subcategory,
            "steps": await self.generate_steps(user["category"], subcategory, user.get("location")),
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "overriddenByAdvisor": False,
            "advisorNotes": None,
        }
        await self.store.put(Tables.PATHWAYS, pathway)
        logger.info(f"🧭 [Pathways] Created pathway {pathway['pathwayId']} for {user_id}")
        return pathway

    async def override(
        self,
        pathway_id: str,
        new_category: str,
        new_subcategory: str,
        advisor_notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Move a pathway to another category/subcategory and regenerate its steps.

        Raises:
            ValidationFailure: the target is not in the category table
            RecordNotFound: no pathway with this id
        """
        category = resolve_category(new_category)
        if category is None or not is_valid_selection(category, [new_subcategory]):
            raise ValidationFailure(f"{new_subcategory!r} is not a subcategory of {new_category!r}")

        pathway = await self.store.get(Tables.PATHWAYS, {"pathwayId": pathway_id})
        if not pathway:
            raise RecordNotFound("Pathway not found")

        user = await self.store.get(Tables.USERS, {"userId": pathway["userId"]}) or {}
        steps = await self.generate_steps(category, new_subcategory, user.get("location"))

        updated = await self.store.update(
            Tables.PATHWAYS,
            {"pathwayId": pathway_id},
            {
                "category": category,
                "subcategory": new_subcategory,
                "steps": steps,
                "overriddenByAdvisor": True,
                "advisorNotes": advisor_notes,
            },
        )
        await self.store.update(
            Tables.USERS,
            {"userId": pathway["userId"]},
            {"category": category, "subcategories": [new_subcategory]},
        )
        logger.info(f"🔁 [Pathways] {pathway_id} overridden to {category}/{new_subcategory}")
        return updated
