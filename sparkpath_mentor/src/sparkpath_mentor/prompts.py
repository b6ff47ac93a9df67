"""
Prompt templates for the assessment and wellness-check dialogues.
"""

from typing import Dict, List, Optional

from sparkpath_mentor.taxonomy import CATEGORIES


_CATEGORY_BULLETS = "\n".join(f"- {c}" for c in CATEGORIES)

CAREER_ASSESSMENT_SYSTEM_PROMPT = f"""You are a friendly career counselor chatbot helping young people discover their career path in the entertainment industry.

Your goal is to ask 5-7 conversational questions to determine which category fits best:
{_CATEGORY_BULLETS}

Guidelines:
1. Ask ONE question at a time
2. Be warm, encouraging, and conversational
3. Build on their previous answers
4. Ask about interests, strengths, what excites them
5. Keep responses concise (2-3 sentences max)"""

WELLNESS_CHECK_SYSTEM_PROMPT = """You are a supportive career counselor conducting a wellness check.

Ask the user:
1. How they're feeling about their course
2. If the career path still feels right
3. Any challenges they're facing

Be empathetic and encouraging."""

ASSESSMENT_GREETING_PROMPT = (
    "Greet a young person starting a career assessment. Ask them what excites them "
    "about entertainment. Keep it brief and friendly."
)

WELLNESS_GREETING_PROMPT = (
    "Start a wellness check. Ask how the user is feeling about their course and "
    "career path. Be warm and supportive."
)


def format_transcript(transcript: List[Dict[str, str]]) -> str:
    """Render turns as `role: message` lines, in order."""
    return "\n".join(f"{turn['role']}: {turn['message']}" for turn in transcript)


def next_question_prompt(transcript: List[Dict[str, str]], question_number: int) -> str:
    return (
        f"Conversation so far:\n{format_transcript(transcript)}\n\n"
        f"Ask the next question (question {question_number} of 5-7). "
        "Build on their previous answer."
    )


def category_analysis_prompt(transcript: List[Dict[str, str]]) -> str:
    return f"""Based on this conversation, determine the best career category:

{format_transcript(transcript)}

Analyze the user's interests and recommend ONE category from:
{_CATEGORY_BULLETS}

Respond in this exact format:
CATEGORY: [category name]
CONFIDENCE: [0-100]
REASONING: [brief explanation]"""


def subcategory_prompt(category: str, user_responses: str, allowed: List[str]) -> str:
    return f"""The user is interested in {category}. Based on their responses:
{user_responses}

From these subcategories, recommend the top 3-5 that best match their interests:
{', '.join(allowed)}

Format: Return ONLY a comma-separated list of subcategories, no explanation."""


def recommendation_message(category: str, reasoning: str, subcategories: List[str]) -> str:
    roles = ", ".join(subcategories) if subcategories else "a range of roles in this field"
    return (
        f"Based on our conversation, I recommend exploring **{category}**!\n\n"
        f"{reasoning}\n\n"
        f"Here are some specific roles that might interest you: {roles}.\n\n"
        "Which of these sound most exciting to you?"
    )


def wellness_follow_up_prompt(transcript: List[Dict[str, str]]) -> str:
    return (
        f"Conversation:\n{format_transcript(transcript)}\n\n"
        "Continue the wellness check conversation. Ask follow-up questions to "
        "understand their satisfaction."
    )


def wellness_analysis_prompt(transcript: List[Dict[str, str]]) -> str:
    return f"""Analyze this wellness check conversation:

{format_transcript(transcript)}

Determine the outcome:
- HAPPY_WITH_PATH
- UNHAPPY_WITH_COURSE
- UNHAPPY_WITH_CATEGORY

Format:
OUTCOME: [outcome]
REASONING: [brief explanation]
RECOMMENDATION: [specific next steps]"""


def story_ranking_prompt(stories: List[Dict], profile: Dict) -> str:
    lines = "\n".join(
        f"{i + 1}. {s.get('name', 'Unknown')} - {s.get('category', '')} - {s.get('location', '')}"
        for i, s in enumerate(stories)
    )
    return f"""Rank these success stories by relevance for a user with:
- Category: {profile.get('category')}
- Location: {profile.get('location')}
- Race: {profile.get('race')}
- Ethnicity: {profile.get('ethnicity')}

Stories:
{lines}

Return ONLY comma-separated story numbers in order of relevance (e.g., "3,1,5,2,4")."""


def career_pathway_prompt(category: str, subcategory: str, location: Optional[str] = None) -> str:
    return f"""Create a 5-step career pathway for someone interested in:
Category: {category}
Subcategory: {subcategory}
Location: {location or 'Unknown'}

Each step should include:
- Title
- Description (1 sentence)
- Estimated time
- Key resources/actions

Format as JSON array of steps."""
