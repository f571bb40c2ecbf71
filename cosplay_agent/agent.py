"""Cosplay suggestion agent.

Pipeline:
1. Resolve height/weight/gender (stored profile wins over the request)
2. Ask the oracle with the fixed section-marker system prompt
3. Parse sections and Taobao keywords (whole-text fallback on bad answers)
4. If keywords exist, run the Taobao keyword cascade

Entry points: CosplaySuggestionAgent.suggest_for_user(), suggest_for_guest()
"""

import logging
import time
from typing import List, Optional

from .accounts import AbstractAccountDirectory, InMemoryAccountDirectory
from .marketplace import ProductSearchCascade, TaobaoClient
from .models import (
    AccountProfile,
    ConvertedProduct,
    FinalSuggestion,
    OracleFailure,
    ResolvedAttributes,
    SuggestionEnvelope,
    SuggestionRequest,
    ValidationError,
)
from .oracle import AbstractOracle, OpenAIOracle
from .parser import parse_or_fallback
from .prompts import SYSTEM_COSPLAY_PROMPT, build_user_prompt

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Cosplay suggestion generated successfully"
DEFAULT_CHECK_CHARACTER = "Hatsune Miku"


def resolve_attributes(profile: AccountProfile, request: SuggestionRequest) -> ResolvedAttributes:
    """Prefer stored profile values, field by field."""
    return ResolvedAttributes(
        height=profile.height if profile.height is not None else request.height,
        weight=profile.weight if profile.weight is not None else request.weight,
        gender=profile.gender if profile.gender is not None else request.gender,
    )


def validate_guest_request(request: SuggestionRequest) -> ResolvedAttributes:
    if (
        request.height is None
        or request.weight is None
        or request.gender is None
        or not request.gender.strip()
    ):
        raise ValidationError("Height, weight, and gender are required for guest users")
    return ResolvedAttributes(height=request.height, weight=request.weight, gender=request.gender)


class CosplaySuggestionAgent:
    """Oracle answer → parsed suggestion → Taobao products, wrapped in an envelope."""

    def __init__(
        self,
        oracle: Optional[AbstractOracle] = None,
        search: Optional[ProductSearchCascade] = None,
        accounts: Optional[AbstractAccountDirectory] = None,
    ) -> None:
        self._oracle: AbstractOracle = oracle or OpenAIOracle()
        # One cascade (and so one token cache) for the whole process.
        self._search: ProductSearchCascade = search or ProductSearchCascade(TaobaoClient())
        self._accounts: AbstractAccountDirectory = accounts or InMemoryAccountDirectory()

    async def suggest_for_user(self, account_id: str, request: SuggestionRequest) -> SuggestionEnvelope:
        """Suggestion for a signed-in account."""
        try:
            profile = await self._accounts.get_profile(account_id)
            if profile is None:
                return SuggestionEnvelope.fail("User not found", error="not_found")
            attributes = resolve_attributes(profile, request)
            return await self._generate(request, attributes)
        except Exception as e:
            logger.error("Error generating cosplay suggestion for user %s: %s", account_id, e, exc_info=True)
            return SuggestionEnvelope.fail(f"Failed to generate cosplay suggestion: {e}")

    async def suggest_for_guest(self, request: SuggestionRequest) -> SuggestionEnvelope:
        """Suggestion for an anonymous caller; all attributes must be supplied."""
        try:
            attributes = validate_guest_request(request)
        except ValidationError as e:
            return SuggestionEnvelope.fail(str(e), error="validation")
        try:
            return await self._generate(request, attributes)
        except Exception as e:
            logger.error("Error generating cosplay suggestion for guest: %s", e, exc_info=True)
            return SuggestionEnvelope.fail(f"Failed to generate cosplay suggestion: {e}")

    async def check_oracle(self, character_name: Optional[str] = None) -> SuggestionEnvelope:
        """Round-trip a canned guest request to check the oracle connection."""
        name = (character_name or "").strip() or DEFAULT_CHECK_CHARACTER
        request = SuggestionRequest(
            character_name=name,
            budget=1_000_000.0,
            height=170.0,
            weight=60.0,
            gender="FEMALE",
        )
        return await self.suggest_for_guest(request)

    async def aclose(self) -> None:
        """Release the oracle and marketplace HTTP clients."""
        await self._oracle.aclose()
        await self._search.aclose()

    async def _generate(self, request: SuggestionRequest, attributes: ResolvedAttributes) -> SuggestionEnvelope:
        started = time.monotonic()
        prompt = build_user_prompt(request, attributes)

        try:
            answer = await self._oracle.ask(prompt, SYSTEM_COSPLAY_PROMPT)
        except OracleFailure as e:
            logger.error("Oracle failed for %s: %s", request.character_name, e)
            return SuggestionEnvelope.fail("AI service failed to generate response", error="oracle")
        if answer is None or not answer.text:
            return SuggestionEnvelope.fail("AI service failed to generate response", error="oracle")

        parsed = parse_or_fallback(answer.text, request.character_name)
        processing_time_ms = int((time.monotonic() - started) * 1000)

        products: List[ConvertedProduct] = []
        if parsed.keywords:
            products = await self._search.search_by_keywords(parsed.keywords, request.budget)
        else:
            logger.warning("No Taobao keywords generated for character: %s", request.character_name)

        suggestion = FinalSuggestion(
            character_name=request.character_name,
            suggestion=parsed,
            products=products,
            processing_time_ms=processing_time_ms,
        )
        return SuggestionEnvelope.ok(SUCCESS_MESSAGE, suggestion)
