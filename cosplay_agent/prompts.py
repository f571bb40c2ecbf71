"""Prompt construction for the cosplay oracle.

The system prompt fixes the section marker contract that parser.py relies on.
Bump PROMPT_VERSION whenever the contract text changes.
"""

from typing import List

from .config import MAX_KEYWORDS, RESPONSE_LANGUAGE
from .models import ResolvedAttributes, SuggestionRequest
from .utils import format_measure, format_vnd

PROMPT_VERSION = "2"

SECTION_MARKERS: List[str] = [
    "CHARACTER_DESCRIPTION",
    "DIFFICULTY_LEVEL",
    "SUITABILITY_SCORE",
    "BUDGET_ANALYSIS",
    "RECOMMENDATIONS",
    "ITEMS_LIST",
    "TIPS",
    "ALTERNATIVES",
    "TAOBAO_KEYWORDS",
]

UNLIMITED_BUDGET = "Unlimited"

_ANALYSIS_ASPECTS = [
    "Origin and setting (which anime/game/manga)",
    "Personality and character traits",
    "Detailed appearance (hair, eyes, height, build)",
    "Signature outfit and its meaning",
    "Signature poses and expressions",
    "Popularity in the cosplay community",
]

_ALL_TAGS = ", ".join(f"[{name}]" for name in SECTION_MARKERS)


# System prompt sent with every suggestion request.
SYSTEM_COSPLAY_PROMPT = (
    "You are a professional cosplay expert with deep knowledge of anime, manga, games and otaku culture. "
    "You know the characters, settings, personalities and meaning of each series.\n\n"
    "When analysing a cosplay character, cover: the character's origin (series, genre, release year); "
    "personality and role in the story; detailed appearance (hair, eyes, estimated height, build); "
    "signature costume and accessories (colours, materials, details); signature poses and expressions; "
    "popularity and cosplay difficulty; and how well the character suits the cosplayer's measurements.\n\n"
    "Format the answer with exactly these section markers, each on its own line, in this order:\n\n"
    "[CHARACTER_DESCRIPTION]\n"
    "Full description: origin, role, personality, appearance, standout features, outfit, "
    "accessories, signature poses, popularity.\n\n"
    "[DIFFICULTY_LEVEL]\n"
    "EASY, MEDIUM or HARD. One word only, based on costume, makeup and props complexity.\n\n"
    "[SUITABILITY_SCORE]\n"
    "A single number from 1 to 10 rating how well the character suits the cosplayer's body and traits.\n\n"
    "[BUDGET_ANALYSIS]\n"
    "Estimated total cost split by costume, accessories, makeup and props; comparison with the stated budget; "
    "ways to save or invest more; durability and reuse of the items.\n\n"
    "[RECOMMENDATIONS]\n"
    "Step by step guidance: main costume (buy or sew, materials), accessories, makeup, wig, props, contact lenses.\n\n"
    "[ITEMS_LIST]\n"
    "Checklist by priority: mandatory, important, optional, DIY-able. Give an estimated price for each item.\n\n"
    "[TIPS]\n"
    "Event preparation timeline, makeup techniques, posing, costume care and transport, "
    "acting the character, photography angles and lighting.\n\n"
    "[ALTERNATIVES]\n"
    "2-3 alternative characters (similar, easier, or a better body match) with the reason for each.\n\n"
    "[TAOBAO_KEYWORDS]\n"
    f"5-{MAX_KEYWORDS} precise Simplified Chinese Taobao search keywords for this exact character, one per line, "
    "each combining the character's Chinese name with cosplay, cos服, 假发, 道具 or similar terms. "
    "Write nothing else in this section.\n\n"
    f"IMPORTANT: include ALL nine sections {_ALL_TAGS}. Do not skip any section. "
    "Never use the '[' character anywhere except in the section markers themselves.\n\n"
    f"Answer in {RESPONSE_LANGUAGE} (except the Taobao keywords), with practical, achievable advice."
)


def build_user_prompt(request: SuggestionRequest, attributes: ResolvedAttributes) -> str:
    """Compose the user prompt from the request and resolved attributes."""
    lines = [
        f"I want to cosplay the character: {request.character_name}",
        "My details:",
        f"- Height: {format_measure(attributes.height)} cm",
        f"- Weight: {format_measure(attributes.weight)} kg",
        f"- Gender: {attributes.gender}",
    ]

    if request.budget is not None and request.budget > 0:
        lines.append(f"- Budget: {format_vnd(request.budget)} VND")
    else:
        lines.append(f"- Budget: {UNLIMITED_BUDGET}")

    if request.notes and request.notes.strip():
        lines.append(f"- Additional notes: {request.notes}")

    lines.append("")
    lines.append("Analyse this character in detail, including:")
    lines.extend(f"- {aspect}" for aspect in _ANALYSIS_ASPECTS)
    lines.append("Then give me a complete, practical cosplay suggestion.")
    return "\n".join(lines)
