"""
Unit Tests for the Session Registry
"""

import pytest

from sparkpath_mentor.session_registry import SessionRegistry
from sparkpath_mentor.session_state import DialogueStage, Role, SessionKind, make_turn


class TestSessionRegistry:

    @pytest.fixture
    def registry(self):
        return SessionRegistry()

    def test_create_and_get(self, registry):
        session = registry.create("conn-1", SessionKind.ASSESSMENT, "u1")
        assert registry.get("conn-1") is session
        assert session.user_id == "u1"
        assert session.kind == SessionKind.ASSESSMENT
        assert session.stage == DialogueStage.GREETING
        assert session.transcript == []
        assert session.turn_count == 0

    def test_wellness_session_carries_course(self, registry):
        session = registry.create("conn-1", SessionKind.WELLNESS, "u1", "course-9")
        assert session.course_id == "course-9"
        assert session.chat_id == f"u1#{session.session_id}"

    def test_create_overwrites_existing(self, registry):
        first = registry.create("conn-1", SessionKind.ASSESSMENT, "u1")
        second = registry.create("conn-1", SessionKind.ASSESSMENT, "u1")
        assert registry.get("conn-1") is second
        assert first.session_id != second.session_id
        assert len(registry) == 1

    def test_delete(self, registry):
        registry.create("conn-1", SessionKind.ASSESSMENT, "u1")
        registry.delete("conn-1")
        assert registry.get("conn-1") is None
        registry.delete("conn-1")  # no-op

    def test_restore(self, registry):
        first = registry.create("conn-1", SessionKind.ASSESSMENT, "u1")
        registry.create("conn-1", SessionKind.WELLNESS, "u1", "c1")
        registry.restore("conn-1", first)
        assert registry.get("conn-1") is first
        registry.restore("conn-1", None)
        assert "conn-1" not in registry

    def test_lock_is_per_connection(self, registry):
        assert registry.lock_for("a") is registry.lock_for("a")
        assert registry.lock_for("a") is not registry.lock_for("b")

    def test_release_forgets_session_and_lock(self, registry):
        registry.create("conn-1", SessionKind.ASSESSMENT, "u1")
        lock = registry.lock_for("conn-1")
        registry.release("conn-1")
        assert registry.get("conn-1") is None
        assert registry.lock_for("conn-1") is not lock

    def test_turn_count_counts_user_turns(self, registry):
        session = registry.create("conn-1", SessionKind.ASSESSMENT, "u1")
        session.commit(
            [
                make_turn(Role.ASSISTANT, "hi"),
                make_turn(Role.USER, "a"),
                make_turn(Role.ASSISTANT, "q"),
                make_turn(Role.USER, "b"),
            ],
            DialogueStage.QUESTIONING,
        )
        assert session.turn_count == 2
