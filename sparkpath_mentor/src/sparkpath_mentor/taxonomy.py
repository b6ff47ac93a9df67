"""
Career Category Taxonomy

Fixed two-level table of career categories and their subcategories.
Used to validate LLM suggestions and served to the advisor override surface.
"""

import re
from typing import Dict, List, Optional


CATEGORY_SUBCATEGORIES: Dict[str, List[str]] = {
    "BUSINESS & MANAGEMENT": [
        "Talent Management", "Talent Agency", "Production Management",
        "Event Management", "Marketing & PR", "Business Development",
        "Legal", "Accounting/Finance", "Casting", "Administrative Support",
    ],
    "ANIMATION & VISUAL EFFECTS": [
        "Animator", "Graphic Design Artist",
    ],
    "WRITING & JOURNALISM": [
        "Entertainment Journalist", "Publicist", "Content Creator",
    ],
    "MUSIC": [
        "Musician/Singer", "Producer", "Songwriter", "Audio Engineer",
    ],
    "SPORTS": [
        "Broadcasting", "Game Day Operations", "Events Coordinator",
        "Sound Engineer", "Advertising", "Marketing", "Digital Design",
        "Merchandising", "Content Production", "Talent Recruitment",
    ],
    "FILM & TELEVISION": [
        "Acting", "Directing", "Writing", "Casting", "Cinematography",
        "Editing", "Sound Design", "Sound Engineer", "Costume Design",
        "Set Design/Engineer", "Equipment Operations", "Makeup Artists",
    ],
}

CATEGORIES: List[str] = list(CATEGORY_SUBCATEGORIES)


def _normalize(name: str) -> str:
    name = name.strip().strip("[]*\"'.").upper()
    name = re.sub(r"\bAND\b", "&", name)
    return re.sub(r"\s+", " ", name).strip()


_CATEGORY_ALIASES: Dict[str, str] = {_normalize(c): c for c in CATEGORIES}


def resolve_category(name: Optional[str]) -> Optional[str]:
    """
    Map free text from the LLM onto one of the fixed categories.

    Tolerates case, surrounding brackets/quotes and "and" for "&".
    Returns None for anything outside the table.
    """
    if not name:
        return None
    return _CATEGORY_ALIASES.get(_normalize(name))


def subcategories_for(category: str) -> List[str]:
    """Closed subcategory list for a category (empty for unknown categories)."""
    return list(CATEGORY_SUBCATEGORIES.get(category, []))


def is_valid_selection(category: str, subcategories: List[str]) -> bool:
    allowed = set(CATEGORY_SUBCATEGORIES.get(category, []))
    return bool(allowed) and all(s in allowed for s in subcategories)
