# Data models and errors for the cosplay suggestion pipeline.
from dataclasses import dataclass, field
from typing import List, Optional


class CosplayAgentError(Exception):
    """Base class for errors raised inside the suggestion pipeline."""


class ValidationError(CosplayAgentError):
    """Mandatory request attributes are missing."""


class OracleFailure(CosplayAgentError):
    """The oracle call failed or produced no usable answer."""


class SuggestionParseError(CosplayAgentError):
    """Oracle text does not follow the section marker contract."""


@dataclass
class SuggestionRequest:
    """Character request as sent by the caller.

    Budget is in VND; height in cm; weight in kg.
    """

    character_name: str
    budget: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    gender: Optional[str] = None  # free text, e.g. "FEMALE"
    notes: Optional[str] = None


@dataclass
class AccountProfile:
    """Stored physical attributes of a registered account."""
    account_id: str
    height: Optional[float] = None
    weight: Optional[float] = None
    gender: Optional[str] = None


@dataclass
class ResolvedAttributes:
    height: Optional[float]
    weight: Optional[float]
    gender: Optional[str]


@dataclass
class OracleAnswer:
    """Raw oracle text plus pass-through metadata."""
    text: str
    model: Optional[str] = None
    elapsed_ms: int = 0
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    finish_reason: Optional[str] = None


@dataclass
class ParsedSuggestion:
    """The eight text sections and keyword list extracted from an oracle answer."""
    character_description: str = ""
    difficulty_level: str = ""
    suitability_score: str = "7"
    budget_analysis: str = ""
    recommendations: str = ""
    items_list: str = ""
    tips: str = ""
    alternatives: str = ""
    keywords: List[str] = field(default_factory=list)


@dataclass
class AuthToken:
    access_token: str
    expires_in: Optional[int] = None  # seconds, as reported by the marketplace


@dataclass
class ProductCandidate:
    """Marketplace item as returned by a keyword search (price in CNY)."""
    id: str
    title: str
    price: Optional[float] = None
    title_en: Optional[str] = None
    seller_name: Optional[str] = None
    img_url: Optional[str] = None
    link: Optional[str] = None


@dataclass
class ConvertedProduct(ProductCandidate):
    """Marketplace item with its price converted to VND."""
    price_vnd: Optional[float] = None


@dataclass
class FinalSuggestion:
    character_name: str
    suggestion: ParsedSuggestion
    products: List[ConvertedProduct] = field(default_factory=list)
    processing_time_ms: int = 0


@dataclass
class SuggestionEnvelope:
    """Success/error wrapper returned by every pipeline entry point."""
    success: bool
    message: str
    data: Optional[FinalSuggestion] = None
    error: Optional[str] = None  # "validation" | "not_found" | "oracle" | "unexpected"

    @classmethod
    def ok(cls, message: str, data: FinalSuggestion) -> "SuggestionEnvelope":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error: str = "unexpected") -> "SuggestionEnvelope":
        return cls(success=False, message=message, error=error)
