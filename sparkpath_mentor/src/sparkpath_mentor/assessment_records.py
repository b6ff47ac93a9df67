"""
Assessment Records

Read access to completed assessments and the subcategory confirmation step,
the only mutation an assessment record ever receives.
"""

import logging
from typing import Any, Dict, List, Optional

from sparkpath_mentor.errors import ValidationFailure
from sparkpath_mentor.record_store import RecordStore, Tables
from sparkpath_mentor.taxonomy import is_valid_selection

logger = logging.getLogger(__name__)


class AssessmentRecords:
    def __init__(self, store: RecordStore):
        self.store = store

    async def get(self, assessment_id: str) -> Optional[Dict[str, Any]]:
        return await self.store.get(Tables.ASSESSMENTS, {"assessmentId": assessment_id})

    async def for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """A user's assessments, newest first."""
        records = await self.store.query(Tables.ASSESSMENTS, {"userId": user_id}, index="userId-index")
        return sorted(records, key=lambda r: r.get("completedAt") or "", reverse=True)

    async def save_selected_subcategories(
        self, user_id: str, assessment_id: str, selected: List[str]
    ) -> Dict[str, Any]:
        """
        Record the user's final subcategory choice and copy it onto their profile.

        Raises:
            ValidationFailure: unknown assessment, someone else's assessment,
                or a selection outside the recommended category
        """
        assessment = await self.get(assessment_id)
        if not assessment or assessment.get("userId") != user_id:
            raise ValidationFailure("Assessment not found")

        category = assessment["recommendedCategory"]
        if not selected or not is_valid_selection(category, selected):
            raise ValidationFailure(f"Selected subcategories must come from {category}")

        updated = await self.store.update(
            Tables.ASSESSMENTS,
            {"assessmentId": assessment_id},
            {"selectedSubcategories": list(selected)},
        )
        await self.store.update(
            Tables.USERS,
            {"userId": user_id},
            {"category": category, "subcategories": list(selected), "isNewUser": False},
        )
        logger.info(f"✅ [AssessmentRecords] {user_id} selected {selected} in {category}")
        return updated
