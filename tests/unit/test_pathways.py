"""
Unit Tests for career pathway generation and advisor overrides.
"""

import pytest
import pytest_asyncio

from conftest import ScriptedGateway
from sparkpath_mentor.errors import PersistenceFailure, RecordNotFound, ValidationFailure
from sparkpath_mentor.pathways import PathwayPlanner, default_steps
from sparkpath_mentor.record_store import Tables


@pytest_asyncio.fixture
async def seeded_store(store):
    await store.put(Tables.USERS, {
        "userId": "u1",
        "category": "MUSIC",
        "subcategories": ["Producer", "Songwriter"],
        "location": "Atlanta",
    })
    return store


class TestDefaultSteps:

    def test_five_numbered_steps(self):
        steps = default_steps("Producer")
        assert [s["stepNumber"] for s in steps] == [1, 2, 3, 4, 5]
        assert steps[0]["description"] == "Learn the fundamentals of Producer"
        assert not any(s["completed"] for s in steps)


class TestPathwayGeneration:

    @pytest.mark.asyncio
    async def test_first_request_generates_and_stores(self, gateway, seeded_store):
        planner = PathwayPlanner(gateway, seeded_store)

        pathway = await planner.for_user("u1")

        assert pathway["category"] == "MUSIC"
        assert pathway["subcategory"] == "Producer"
        assert [s["title"] for s in pathway["steps"]] == ["Learn a DAW", "Collaborate"]
        assert pathway["overriddenByAdvisor"] is False
        assert gateway.calls[-1]["max_tokens"] == 1500
        assert "Location: Atlanta" in gateway.calls[-1]["prompt"]

        stored = await seeded_store.get(Tables.PATHWAYS, {"pathwayId": pathway["pathwayId"]})
        assert stored == pathway

    @pytest.mark.asyncio
    async def test_second_request_reuses_stored_pathway(self, gateway, seeded_store):
        planner = PathwayPlanner(gateway, seeded_store)
        first = await planner.for_user("u1")

        second = await planner.for_user("u1")

        assert second["pathwayId"] == first["pathwayId"]
        assert gateway.count("pathway") == 1

    @pytest.mark.asyncio
    async def test_unparseable_reply_falls_back_to_defaults(self, seeded_store):
        planner = PathwayPlanner(ScriptedGateway(pathways=["1. Learn\n2. Practice"]), seeded_store)

        pathway = await planner.for_user("u1")

        assert pathway["steps"] == default_steps("Producer")

    @pytest.mark.asyncio
    async def test_unavailable_llm_falls_back_to_defaults(self, gateway, seeded_store):
        gateway.fail_next = 1
        planner = PathwayPlanner(gateway, seeded_store)

        pathway = await planner.for_user("u1")

        assert pathway["steps"] == default_steps("Producer")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user", [
        None,
        {"userId": "u2"},
        {"userId": "u2", "category": "MUSIC", "subcategories": []},
    ])
    async def test_requires_completed_assessment(self, gateway, store, user):
        if user:
            await store.put(Tables.USERS, user)
        planner = PathwayPlanner(gateway, store)

        with pytest.raises(ValidationFailure):
            await planner.for_user("u2")
        assert gateway.count("pathway") == 0


class TestPathwayOverride:

    @pytest.mark.asyncio
    async def test_override_regenerates_and_moves_user(self, gateway, seeded_store):
        planner = PathwayPlanner(gateway, seeded_store)
        pathway = await planner.for_user("u1")

        updated = await planner.override(
            pathway["pathwayId"], "film and television", "Directing", "Loves storytelling"
        )

        assert updated["category"] == "FILM & TELEVISION"
        assert updated["subcategory"] == "Directing"
        assert updated["overriddenByAdvisor"] is True
        assert updated["advisorNotes"] == "Loves storytelling"
        assert gateway.count("pathway") == 2
        assert "Subcategory: Directing" in gateway.calls[-1]["prompt"]

        user = await seeded_store.get(Tables.USERS, {"userId": "u1"})
        assert user["category"] == "FILM & TELEVISION"
        assert user["subcategories"] == ["Directing"]
        assert user["location"] == "Atlanta"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("category, subcategory", [
        ("MUSIC", "Directing"),
        ("COOKING", "Chef"),
        ("MUSIC", ""),
    ])
    async def test_override_rejects_targets_outside_taxonomy(
        self, gateway, seeded_store, category, subcategory
    ):
        planner = PathwayPlanner(gateway, seeded_store)
        pathway = await planner.for_user("u1")

        with pytest.raises(ValidationFailure):
            await planner.override(pathway["pathwayId"], category, subcategory)

        stored = await seeded_store.get(Tables.PATHWAYS, {"pathwayId": pathway["pathwayId"]})
        assert stored == pathway
        user = await seeded_store.get(Tables.USERS, {"userId": "u1"})
        assert user["category"] == "MUSIC"

    @pytest.mark.asyncio
    async def test_override_unknown_pathway(self, gateway, seeded_store):
        planner = PathwayPlanner(gateway, seeded_store)
        with pytest.raises(RecordNotFound):
            await planner.override("missing", "MUSIC", "Producer")

    @pytest.mark.asyncio
    async def test_override_store_failure_propagates(self, gateway, seeded_store):
        planner = PathwayPlanner(gateway, seeded_store)
        pathway = await planner.for_user("u1")

        seeded_store.failing_tables.add(Tables.PATHWAYS)
        with pytest.raises(PersistenceFailure):
            await planner.override(pathway["pathwayId"], "MUSIC", "Songwriter")
