"""Utility functions for the cosplay agent."""
import re
from typing import Any, Dict, Optional

from .models import ConvertedProduct, FinalSuggestion, SuggestionEnvelope

_CJK_RE = re.compile(r"[\u4e00-\u9fff]")


def contains_cjk(text: str) -> bool:
    """True if the text holds at least one CJK unified ideograph."""
    return bool(_CJK_RE.search(text))


def format_vnd(amount: float) -> str:
    """Format an amount the vi-VN way: '.' groups thousands, ',' marks decimals."""
    text = f"{amount:,.3f}".rstrip("0").rstrip(".")
    return text.translate(str.maketrans({",": ".", ".": ","}))


def format_measure(value: Optional[float]) -> str:
    if value is None:
        return "unknown"
    return str(float(value))


def serialize_product(p: ConvertedProduct) -> Dict[str, Any]:
    """Convert a ConvertedProduct to the JSON shape used by the web client."""
    return {
        "id": p.id,
        "title": p.title,
        "titleEn": p.title_en,
        "price": p.price,
        "sellerName": p.seller_name,
        "imgUrl": p.img_url,
        "link": p.link,
        "priceVnd": p.price_vnd,
    }


def serialize_suggestion(s: FinalSuggestion) -> Dict[str, Any]:
    parsed = s.suggestion
    return {
        "characterName": s.character_name,
        "characterDescription": parsed.character_description,
        "difficultyLevel": parsed.difficulty_level,
        "suitabilityScore": parsed.suitability_score,
        "budgetAnalysis": parsed.budget_analysis,
        "recommendations": parsed.recommendations,
        "itemsList": parsed.items_list,
        "tips": parsed.tips,
        "alternatives": parsed.alternatives,
        "taobaoKeywords": list(parsed.keywords),
        "processingTimeMs": s.processing_time_ms,
        "products": [serialize_product(p) for p in s.products],
    }


def serialize_envelope(envelope: SuggestionEnvelope) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "success": envelope.success,
        "message": envelope.message,
        "data": serialize_suggestion(envelope.data) if envelope.data else None,
    }
    if envelope.error:
        payload["error"] = envelope.error
    return payload
