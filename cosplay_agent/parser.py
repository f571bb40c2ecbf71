"""Parse the oracle's free text into a ParsedSuggestion.

Grammar: a section starts right after its first `[NAME]` marker and runs to the
next `[` or end of text. There is no nesting; a literal `[` inside a section's
prose ends that section early.
"""

import logging
import re
from typing import List

from .config import DEFAULT_SUITABILITY_SCORE, FALLBACK_DIFFICULTY, MAX_KEYWORDS
from .models import ParsedSuggestion, SuggestionParseError
from .prompts import SECTION_MARKERS
from .utils import contains_cjk

logger = logging.getLogger(__name__)

_SCORE_RE = re.compile(r"(10|[1-9])")

# Instruction or chatter lines the oracle sometimes leaves in the keyword section.
_KEYWORD_DENYLIST = (
    "generate",
    "search for",
    "congratulations",
    "successfully",
    "question",
    "don't",
    "tạo ra",
    "tìm kiếm",
    "chúc",
    "thành công",
    "câu hỏi",
    "đừng",
)


def extract_section(text: str, name: str) -> str:
    """Return the trimmed content of section `name`, or "" if the marker is absent."""
    marker = f"[{name}]"
    start = text.find(marker)
    if start == -1:
        return ""
    start += len(marker)
    end = text.find("[", start)
    if end == -1:
        end = len(text)
    return text[start:end].strip()


def extract_score(text: str) -> str:
    """First "10" or single digit 1-9 of the score section; "7" when there is none."""
    raw = extract_section(text, "SUITABILITY_SCORE")
    if not raw:
        return DEFAULT_SUITABILITY_SCORE
    match = _SCORE_RE.search(raw)
    if match:
        return match.group(1)
    return DEFAULT_SUITABILITY_SCORE


def _is_keyword_line(line: str) -> bool:
    lowered = line.lower()
    return contains_cjk(line) or "cosplay" in lowered or "cos" in lowered


def extract_keywords(text: str) -> List[str]:
    """Clean Taobao keyword lines, at most MAX_KEYWORDS, order kept."""
    section = extract_section(text, "TAOBAO_KEYWORDS")
    if not section:
        return []

    keywords: List[str] = []
    for line in section.splitlines():
        line = line.strip()
        if not line:
            continue
        lowered = line.lower()
        if any(phrase in lowered for phrase in _KEYWORD_DENYLIST):
            continue
        if line.startswith("- "):
            line = line[2:].strip()
        if not _is_keyword_line(line):
            continue
        keywords.append(line)
        if len(keywords) >= MAX_KEYWORDS:
            break
    return keywords


def parse_suggestion(text: str) -> ParsedSuggestion:
    """Extract all sections from the oracle text.

    Raises SuggestionParseError when the text carries none of the markers.
    """
    if not isinstance(text, str):
        raise SuggestionParseError(f"Expected oracle text, got {type(text).__name__}")
    if not any(f"[{name}]" in text for name in SECTION_MARKERS):
        raise SuggestionParseError("No section markers found in oracle text")

    return ParsedSuggestion(
        character_description=extract_section(text, "CHARACTER_DESCRIPTION"),
        difficulty_level=extract_section(text, "DIFFICULTY_LEVEL"),
        suitability_score=extract_score(text),
        budget_analysis=extract_section(text, "BUDGET_ANALYSIS"),
        recommendations=extract_section(text, "RECOMMENDATIONS"),
        items_list=extract_section(text, "ITEMS_LIST"),
        tips=extract_section(text, "TIPS"),
        alternatives=extract_section(text, "ALTERNATIVES"),
        keywords=extract_keywords(text),
    )


def fallback_suggestion(text: str, character_name: str) -> ParsedSuggestion:
    """Whole-text suggestion used when the oracle ignored the marker contract."""
    return ParsedSuggestion(
        difficulty_level=FALLBACK_DIFFICULTY,
        suitability_score=DEFAULT_SUITABILITY_SCORE,
        recommendations=text if isinstance(text, str) else str(text),
        keywords=[f"{character_name} cosplay"],
    )


def parse_or_fallback(text: str, character_name: str) -> ParsedSuggestion:
    try:
        return parse_suggestion(text)
    except Exception as e:
        logger.warning("Error parsing oracle answer, using raw text: %s", e)
        return fallback_suggestion(text, character_name)
