"""Taobao product search for cosplay keywords.

Provides:
- TaobaoClient: async HTTP adapter for the Taobao proxy API (login + search)
- TokenCache: process-wide bearer token cache
- ProductSearchCascade: first-success search over ordered keywords, CNY → VND"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from .config import (
    CNY_TO_VND_RATE,
    MARKETPLACE_TIMEOUT,
    SEARCH_PAGE_SIZE,
    TAOBAO_BASE_URL,
    TAOBAO_EMAIL,
    TAOBAO_LANG,
    TAOBAO_PASSWORD,
    TAOBAO_PLATFORM,
    TOKEN_EXPIRY_SKEW,
)
from .models import AuthToken, ConvertedProduct, ProductCandidate

logger = logging.getLogger(__name__)


class AbstractMarketplaceClient:
    """Interface for marketplace clients."""
    async def login(self, email: str, password: str) -> AuthToken:
        #Exchange static credentials for a bearer token
        raise NotImplementedError

    async def search(
        self, token: str, keyword: str, budget_ceiling: Optional[float] = None
    ) -> List[ProductCandidate]:
        #Return one page of items for a keyword, cheapest first
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class TaobaoClient(AbstractMarketplaceClient):
    """Async adapter for the Taobao proxy API."""

    def __init__(
        self,
        base_url: str = TAOBAO_BASE_URL,
        timeout: float = MARKETPLACE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def login(self, email: str, password: str) -> AuthToken:
        response = await self._client.post(
            "/v1/auth/login", json={"email": email, "password": password}
        )
        response.raise_for_status()
        data = response.json()
        token = data.get("access_token")
        if not token:
            raise ValueError("Login response has no access_token")
        return AuthToken(access_token=token, expires_in=data.get("expires_in"))

    async def search(
        self, token: str, keyword: str, budget_ceiling: Optional[float] = None
    ) -> List[ProductCandidate]:
        response = await self._client.post(
            "/v1/products/search",
            json=build_search_payload(keyword, budget_ceiling),
            headers={"Authorization": f"Bearer {token}"},
        )
        response.raise_for_status()
        items = response.json().get("items") or []
        return [_parse_item(item) for item in items]

    async def aclose(self) -> None:
        await self._client.aclose()


def build_search_payload(keyword: str, budget_ceiling: Optional[float] = None) -> Dict[str, Any]:
    """Map a keyword and optional ceiling to the search request body."""
    payload: Dict[str, Any] = {
        "q": keyword,
        "platform": TAOBAO_PLATFORM,
        "lang": TAOBAO_LANG,
        "sort": "PRICE_ASC",
        "page": 1,
        "size": SEARCH_PAGE_SIZE,
    }
    if budget_ceiling is not None and budget_ceiling > 0:
        payload["filter"] = {
            "price_range": {"min": 0.0, "max": budget_ceiling},
            "allow_return": True,
            "allow_dropship": True,
        }
    return payload


def _parse_item(raw: Dict[str, Any]) -> ProductCandidate:
    """Convert a raw search item to ProductCandidate."""
    price = raw.get("price")
    return ProductCandidate(
        id=str(raw.get("id")),
        title=raw.get("title") or "",
        title_en=raw.get("titleEn"),
        price=float(price) if price is not None else None,
        seller_name=raw.get("seller_name"),
        img_url=raw.get("img_url"),
        link=raw.get("link"),
    )


def convert_product(p: ProductCandidate, rate: float = CNY_TO_VND_RATE) -> ConvertedProduct:
    return ConvertedProduct(
        **p.__dict__,
        price_vnd=p.price * rate if p.price is not None else None,
    )


class TokenCache:
    """Bearer token held for the life of the process.

    Refetched only after the server-reported expiry; an authorization failure
    on search does not invalidate it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = asyncio.Lock()
        self._token: Optional[str] = None
        self._expires_at: Optional[float] = None

    def _is_valid(self) -> bool:
        if self._token is None:
            return False
        return self._expires_at is None or self._clock() < self._expires_at

    async def get(self, fetch: Callable[[], Awaitable[AuthToken]]) -> str:
        if self._is_valid():
            return self._token  # type: ignore[return-value]
        async with self._lock:
            # Another request may have refreshed while we waited.
            if self._is_valid():
                return self._token  # type: ignore[return-value]
            auth = await fetch()
            self._token = auth.access_token
            if auth.expires_in:
                self._expires_at = self._clock() + max(0, auth.expires_in - TOKEN_EXPIRY_SKEW)
            else:
                self._expires_at = None
            return self._token


class ProductSearchCascade:
    """Ordered keyword search that stops at the first non-empty result."""

    def __init__(
        self,
        client: AbstractMarketplaceClient,
        email: str = TAOBAO_EMAIL,
        password: str = TAOBAO_PASSWORD,
        token_cache: Optional[TokenCache] = None,
        rate: float = CNY_TO_VND_RATE,
    ) -> None:
        self.client = client
        self.email = email
        self.password = password
        self.token_cache = token_cache or TokenCache()
        self.rate = rate

    async def search_by_keywords(
        self,
        keywords: List[str],
        budget_ceiling: Optional[float] = None,
    ) -> List[ConvertedProduct]:
        """Search keywords in order; never raises, returns [] on any failure."""
        if not keywords:
            logger.warning("No keywords provided for search")
            return []
        try:
            token = await self.token_cache.get(
                lambda: self.client.login(self.email, self.password)
            )
        except Exception as e:
            logger.error("Failed to get Taobao access token: %s", e, exc_info=True)
            return []

        try:
            return await self._cascade(token, keywords, budget_ceiling)
        except Exception as e:
            logger.error("Failed to search Taobao products: %s", e, exc_info=True)
            return []

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _cascade(
        self,
        token: str,
        keywords: List[str],
        budget_ceiling: Optional[float],
    ) -> List[ConvertedProduct]:
        has_ceiling = budget_ceiling is not None and budget_ceiling > 0
        for keyword in keywords:
            logger.info("Searching with keyword: %s", keyword)
            try:
                items = await self.client.search(token, keyword, budget_ceiling)
            except Exception as e:
                logger.error("Error searching with keyword '%s': %s", keyword, e)
                continue

            if not items:
                logger.warning("No products found for keyword: %s", keyword)
                continue

            logger.info("Found %d products for keyword: %s", len(items), keyword)
            # Prices are CNY here; the ceiling is the VND budget as given.
            if has_ceiling:
                items = [p for p in items if p.price is not None and p.price <= budget_ceiling]
                logger.info("After budget filter: %d products", len(items))
            return [convert_product(p, self.rate) for p in items]

        logger.warning("No products found with any of the provided keywords")
        return []
