"""
Unit Tests for the subcategory confirmation step.
"""

import pytest
import pytest_asyncio

from sparkpath_mentor.assessment_records import AssessmentRecords
from sparkpath_mentor.errors import ValidationFailure
from sparkpath_mentor.record_store import InMemoryRecordStore, Tables


@pytest_asyncio.fixture
async def records():
    store = InMemoryRecordStore()
    await store.put(Tables.ASSESSMENTS, {
        "assessmentId": "a1",
        "userId": "u1",
        "sessionId": "s1",
        "questions": [],
        "recommendedCategory": "MUSIC",
        "recommendedSubcategories": ["Producer", "Songwriter"],
        "selectedSubcategories": [],
        "completedAt": "2026-01-01T00:00:00+00:00",
    })
    return AssessmentRecords(store)


class TestAssessmentRecords:

    @pytest.mark.asyncio
    async def test_save_selection_updates_assessment_and_user(self, records):
        await records.save_selected_subcategories("u1", "a1", ["Producer"])

        assessment = await records.get("a1")
        assert assessment["selectedSubcategories"] == ["Producer"]
        assert assessment["recommendedSubcategories"] == ["Producer", "Songwriter"]

        user = await records.store.get(Tables.USERS, {"userId": "u1"})
        assert user["category"] == "MUSIC"
        assert user["subcategories"] == ["Producer"]
        assert user["isNewUser"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id, assessment_id, selected", [
        ("u1", "missing", ["Producer"]),
        ("u2", "a1", ["Producer"]),
        ("u1", "a1", ["Acting"]),
        ("u1", "a1", []),
    ])
    async def test_rejects_invalid_selection(self, records, user_id, assessment_id, selected):
        with pytest.raises(ValidationFailure):
            await records.save_selected_subcategories(user_id, assessment_id, selected)

    @pytest.mark.asyncio
    async def test_for_user_newest_first(self, records):
        await records.store.put(Tables.ASSESSMENTS, {
            "assessmentId": "a2",
            "userId": "u1",
            "recommendedCategory": "SPORTS",
            "completedAt": "2026-02-01T00:00:00+00:00",
        })
        assert [a["assessmentId"] for a in await records.for_user("u1")] == ["a2", "a1"]
