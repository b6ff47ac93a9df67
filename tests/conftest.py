"""
Shared fixtures: a scripted stand-in for the LLM gateway and a record store
that can be told to fail.
"""

import asyncio
import os
import sys
from typing import List, Optional

import pytest

# Add project root to path
project_root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
sys.path.insert(0, os.path.join(project_root, "sparkpath_mentor", "src"))
sys.path.insert(0, os.path.join(project_root, "backend"))

from sparkpath_mentor.config import Settings
from sparkpath_mentor.errors import PersistenceFailure, UpstreamUnavailable
from sparkpath_mentor.record_store import InMemoryRecordStore


HIGH_CONFIDENCE_MUSIC = (
    "CATEGORY: MUSIC\n"
    "CONFIDENCE: 85\n"
    "REASONING: Loves producing beats and writing songs."
)
LOW_CONFIDENCE_MUSIC = "CATEGORY: MUSIC\nCONFIDENCE: 40\nREASONING: Not sure yet."
PATHWAY_JSON = (
    'Here is the pathway:\n['
    '{"title": "Learn a DAW", "description": "Pick one and finish a beat a week.", '
    '"estimatedTime": "2 months", "resources": ["YouTube tutorials"]}, '
    '{"Title": "Collaborate", "Description": "Produce for local artists.", '
    '"Estimated time": "3 months", "Key resources/actions": "Open mic nights"}'
    ']'
)


class ScriptedGateway:
    """
    Replies by prompt kind. Analysis/subcategory/wellness replies are queues;
    the last entry repeats once the queue runs dry.
    """

    def __init__(
        self,
        analyses: Optional[List[str]] = None,
        subcategories: Optional[List[str]] = None,
        wellness: Optional[List[str]] = None,
        pathways: Optional[List[str]] = None,
        delay: float = 0.0,
    ):
        self.analyses = list(analyses or [HIGH_CONFIDENCE_MUSIC])
        self.subcategories = list(subcategories or ["Producer, Nonsense, Songwriter"])
        self.wellness = list(wellness or [
            "OUTCOME: UNHAPPY_WITH_COURSE\nREASONING: Pace too slow\nRECOMMENDATION: Meet a mentor"
        ])
        self.pathways = list(pathways or [PATHWAY_JSON])
        self.delay = delay
        self.calls = []
        self.fail_next = 0
        self.question_count = 0

    @staticmethod
    def _pop(queue: List[str]) -> str:
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def kind_of(self, prompt: str) -> str:
        if "determine the best career category" in prompt:
            return "analysis"
        if "recommend the top 3-5" in prompt:
            return "subcategories"
        if "Analyze this wellness check" in prompt:
            return "wellness_analysis"
        if "Rank these success stories" in prompt:
            return "ranking"
        if "Create a 5-step career pathway" in prompt:
            return "pathway"
        return "dialogue"

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call["kind"] == kind)

    async def complete(self, prompt, system_instructions=None, max_tokens=2000):
        if self.delay:
            await asyncio.sleep(self.delay)
        kind = self.kind_of(prompt)
        self.calls.append({
            "kind": kind,
            "prompt": prompt,
            "system": system_instructions,
            "max_tokens": max_tokens,
        })
        if self.fail_next:
            self.fail_next -= 1
            raise UpstreamUnavailable("scripted failure")

        if kind == "analysis":
            return self._pop(self.analyses)
        if kind == "subcategories":
            return self._pop(self.subcategories)
        if kind == "wellness_analysis":
            return self._pop(self.wellness)
        if kind == "ranking":
            return "2, 1"
        if kind == "pathway":
            return self._pop(self.pathways)
        self.question_count += 1
        return f"Question {self.question_count}: what do you enjoy most?"


class FlakyRecordStore(InMemoryRecordStore):
    """In-memory store whose writes to chosen tables fail on demand."""

    def __init__(self):
        super().__init__()
        self.failing_tables = set()
        self._one_shot = []

    def fail_once(self, table, when=lambda item: True):
        """Fail the next write to `table` whose item satisfies `when`."""
        self._one_shot.append((table, when))

    def _check(self, table, item=None):
        if table in self.failing_tables:
            raise PersistenceFailure(f"scripted failure on {table}")
        for entry in self._one_shot:
            if entry[0] == table and entry[1](item or {}):
                self._one_shot.remove(entry)
                raise PersistenceFailure(f"scripted one-off failure on {table}")

    async def put(self, table, item):
        self._check(table, item)
        return await super().put(table, item)

    async def update(self, table, key, changes):
        self._check(table, {**key, **changes})
        return await super().update(table, key, changes)


@pytest.fixture
def settings():
    return Settings(openai_api_key="test-key", llm_timeout_seconds=1.0)


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def store():
    return FlakyRecordStore()
