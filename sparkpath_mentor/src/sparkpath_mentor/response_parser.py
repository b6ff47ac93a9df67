"""
Response Parser

Pure extraction of structured fields from tagged-line LLM text.

Every function here is total: malformed or missing tags yield defaults
(no category, zero confidence, empty text, HAPPY_WITH_PATH) instead of errors.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class WellnessOutcome(str, Enum):
    """Wellness check outcomes."""
    HAPPY_WITH_PATH = "HAPPY_WITH_PATH"
    UNHAPPY_WITH_COURSE = "UNHAPPY_WITH_COURSE"
    UNHAPPY_WITH_CATEGORY = "UNHAPPY_WITH_CATEGORY"


@dataclass
class CategoryAnalysis:
    category: Optional[str] = None
    confidence: int = 0
    reasoning: str = ""


@dataclass
class WellnessAnalysis:
    outcome: WellnessOutcome = WellnessOutcome.HAPPY_WITH_PATH
    reasoning: str = ""
    recommendation: str = ""


def _line_after(tag: str, text: str) -> Optional[str]:
    """Rest of the line after `TAG:` (first occurrence)."""
    match = re.search(rf"{tag}:[ \t]*(.+)", text, re.IGNORECASE)
    return match.group(1).strip() if match else None


def _text_after(tag: str, text: str) -> Optional[str]:
    """Rest of the text after `TAG:` (first occurrence, spans lines)."""
    match = re.search(rf"{tag}:\s*(.+)", text, re.IGNORECASE | re.DOTALL)
    return match.group(1).strip() if match else None


def parse_category_analysis(text: Optional[str]) -> CategoryAnalysis:
    """
    Extract CATEGORY / CONFIDENCE / REASONING from a career analysis.

    Example:
        "CATEGORY: MUSIC\\nCONFIDENCE: 85\\nREASONING: loves producing"
        -> CategoryAnalysis("MUSIC", 85, "loves producing")
    """
    if not text:
        return CategoryAnalysis()

    category = _line_after("CATEGORY", text) or None

    confidence = 0
    match = re.search(r"CONFIDENCE:\s*(\d+)", text, re.IGNORECASE)
    if match:
        confidence = max(0, min(100, int(match.group(1))))

    reasoning = _text_after("REASONING", text) or ""

    return CategoryAnalysis(category=category, confidence=confidence, reasoning=reasoning)


def parse_subcategory_list(text: Optional[str], allowed: Iterable[str]) -> List[str]:
    """
    Split a comma-separated answer and keep only entries from `allowed`.

    Order is preserved; anything the LLM invented is dropped silently.
    """
    if not text:
        return []
    allowed_set = set(allowed)
    return [item.strip() for item in text.split(",") if item.strip() in allowed_set]


def _to_outcome(raw: Optional[str]) -> WellnessOutcome:
    if not raw:
        return WellnessOutcome.HAPPY_WITH_PATH
    key = re.sub(r"[\s\-]+", "_", raw.strip().strip("[]*\"'.").upper())
    try:
        return WellnessOutcome(key)
    except ValueError:
        return WellnessOutcome.HAPPY_WITH_PATH


def parse_wellness_outcome(text: Optional[str]) -> WellnessAnalysis:
    """
    Extract OUTCOME / REASONING / RECOMMENDATION from a wellness analysis.

    A missing or unrecognised OUTCOME falls back to HAPPY_WITH_PATH so that a
    bad LLM answer never escalates a student to an advisor.
    """
    if not text:
        return WellnessAnalysis()
    return WellnessAnalysis(
        outcome=_to_outcome(_line_after("OUTCOME", text)),
        reasoning=_line_after("REASONING", text) or "",
        recommendation=_text_after("RECOMMENDATION", text) or "",
    )


def parse_ranking_indices(text: Optional[str]) -> List[int]:
    """Turn a 1-based ranking like "3,1,2" into 0-based indices [2, 0, 1]."""
    if not text:
        return []
    return [int(n) - 1 for n in re.findall(r"\d+", text)]


_STEP_FIELDS = {
    "title": "title",
    "description": "description",
    "estimatedtime": "estimatedTime",
    "time": "estimatedTime",
    "resources": "resources",
    "keyresources": "resources",
    "keyresourcesactions": "resources",
    "actions": "resources",
}


def _normalize_step(raw: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None
    step: Dict[str, Any] = {}
    for key, value in raw.items():
        field = _STEP_FIELDS.get(re.sub(r"[^a-z]", "", str(key).lower()))
        if field and field not in step:
            step[field] = value

    title = step.get("title")
    if not isinstance(title, str) or not title.strip():
        return None

    resources = step.get("resources") or []
    if isinstance(resources, str):
        resources = [resources]
    return {
        "title": title.strip(),
        "description": str(step.get("description") or "").strip(),
        "estimatedTime": str(step.get("estimatedTime") or "").strip(),
        "resources": [str(r) for r in resources] if isinstance(resources, list) else [],
    }


def parse_pathway_steps(text: Optional[str]) -> Optional[List[Dict[str, Any]]]:
    """
    Parse a JSON array of pathway steps, tolerating prose around the array.

    Returns None when no usable step is found; steps are renumbered from 1
    and start uncompleted.
    """
    if not text:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        json_match = re.search(r"\[.*\]", text, re.DOTALL)
        if not json_match:
            return None
        try:
            data = json.loads(json_match.group())
        except json.JSONDecodeError:
            return None

    if isinstance(data, dict):
        data = data.get("steps")
    if not isinstance(data, list):
        return None

    steps = [step for step in (_normalize_step(raw) for raw in data) if step]
    for number, step in enumerate(steps, start=1):
        step["stepNumber"] = number
        step["completed"] = False
    return steps or None
