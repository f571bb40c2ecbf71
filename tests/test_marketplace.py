import asyncio
import json

import httpx
import pytest

from cosplay_agent.marketplace import (
    ProductSearchCascade,
    TaobaoClient,
    TokenCache,
    build_search_payload,
    convert_product,
)
from cosplay_agent.models import AuthToken

from .conftest import FakeMarketplace, make_item


def _cascade(client):
    return ProductSearchCascade(client, email="me@example.com", password="secret")


async def test_cascade_stops_at_first_non_empty_keyword():
    client = FakeMarketplace(
        {
            "K1": [],
            "K2": [],
            "K3": [make_item("a", 10.0), make_item("b", 20.0)],
            "K4": [make_item("c", 5.0)],
        }
    )
    products = await _cascade(client).search_by_keywords(["K1", "K2", "K3", "K4"])

    assert [s["keyword"] for s in client.searches] == ["K1", "K2", "K3"]
    assert [p.id for p in products] == ["a", "b"]
    assert products[0].price_vnd == 35000.0
    assert products[1].price_vnd == 70000.0


async def test_cascade_skips_keyword_that_errors():
    client = FakeMarketplace(
        {"K1": httpx.ConnectError("boom"), "K2": [make_item("a", 12.0)]}
    )
    products = await _cascade(client).search_by_keywords(["K1", "K2"])
    assert [p.id for p in products] == ["a"]
    assert len(client.searches) == 2


async def test_cascade_applies_client_side_budget_filter():
    client = FakeMarketplace(
        {"K1": [make_item("cheap", 30.0), make_item("dear", 80.0), make_item("unknown", None)]}
    )
    products = await _cascade(client).search_by_keywords(["K1", "K2"], budget_ceiling=50.0)
    assert [p.id for p in products] == ["cheap"]
    assert client.searches[0]["budget"] == 50.0


async def test_filtered_out_result_still_ends_the_cascade():
    client = FakeMarketplace({"K1": [make_item("dear", 80.0)], "K2": [make_item("a", 1.0)]})
    products = await _cascade(client).search_by_keywords(["K1", "K2"], budget_ceiling=50.0)
    assert products == []
    assert [s["keyword"] for s in client.searches] == ["K1"]


async def test_non_positive_budget_means_no_filter():
    client = FakeMarketplace({"K1": [make_item("a", 999.0)]})
    products = await _cascade(client).search_by_keywords(["K1"], budget_ceiling=0)
    assert [p.id for p in products] == ["a"]


async def test_all_keywords_exhausted_returns_empty():
    client = FakeMarketplace()
    assert await _cascade(client).search_by_keywords(["K1", "K2"]) == []
    assert len(client.searches) == 2


async def test_empty_keyword_list_skips_login():
    client = FakeMarketplace()
    assert await _cascade(client).search_by_keywords([]) == []
    assert client.logins == 0


async def test_login_failure_returns_empty_without_searching():
    client = FakeMarketplace({"K1": [make_item("a", 1.0)]}, login_error=RuntimeError("denied"))
    assert await _cascade(client).search_by_keywords(["K1"]) == []
    assert client.searches == []


async def test_token_is_cached_across_searches():
    client = FakeMarketplace({"K1": [make_item("a", 1.0)]})
    cascade = _cascade(client)
    await cascade.search_by_keywords(["K1"])
    await cascade.search_by_keywords(["K1"])
    assert client.logins == 1
    assert {s["token"] for s in client.searches} == {"token-1"}


async def test_token_cache_serializes_concurrent_refresh():
    cache = TokenCache()
    fetches = 0

    async def fetch():
        nonlocal fetches
        fetches += 1
        await asyncio.sleep(0.01)
        return AuthToken(access_token="t")

    tokens = await asyncio.gather(*[cache.get(fetch) for _ in range(5)])
    assert tokens == ["t"] * 5
    assert fetches == 1


async def test_token_cache_refetches_after_expiry():
    now = [1000.0]
    cache = TokenCache(clock=lambda: now[0])
    issued = []

    async def fetch():
        issued.append(len(issued) + 1)
        return AuthToken(access_token=f"t{len(issued)}", expires_in=100)

    assert await cache.get(fetch) == "t1"
    now[0] += 60
    assert await cache.get(fetch) == "t1"
    now[0] += 20  # past expires_in minus the refresh skew
    assert await cache.get(fetch) == "t2"


def test_search_payload_with_and_without_ceiling():
    plain = build_search_payload("初音 cos")
    assert plain == {
        "q": "初音 cos",
        "platform": "taobao",
        "lang": "vi",
        "sort": "PRICE_ASC",
        "page": 1,
        "size": 20,
    }
    filtered = build_search_payload("初音 cos", 500000.0)
    assert filtered["filter"] == {
        "price_range": {"min": 0.0, "max": 500000.0},
        "allow_return": True,
        "allow_dropship": True,
    }


def test_convert_product_keeps_missing_price():
    assert convert_product(make_item("a", None)).price_vnd is None
    assert convert_product(make_item("a", 2.0), rate=10).price_vnd == 20.0


def _mock_taobao(search_status=200, items=None):
    seen = {"login": 0, "search": []}

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if request.url.path == "/v1/auth/login":
            seen["login"] += 1
            assert body == {"email": "me@example.com", "password": "secret"}
            return httpx.Response(200, json={"access_token": "abc", "expires_in": 3600})
        seen["search"].append({"auth": request.headers.get("Authorization"), "body": body})
        if search_status != 200:
            return httpx.Response(search_status, json={"success": False})
        return httpx.Response(
            200,
            json={
                "success": True,
                "paginate": {"current": 1, "size": 20},
                "items": items or [],
            },
        )

    return seen, httpx.MockTransport(handler)


async def test_taobao_client_over_http():
    seen, transport = _mock_taobao(
        items=[
            {
                "id": 123,
                "title": "初音未来cos服",
                "titleEn": "Miku cosplay costume",
                "price": 88.5,
                "seller_name": "Miku Shop",
                "img_url": "https://img/1.jpg",
                "link": "https://item/123",
            }
        ]
    )
    client = TaobaoClient(base_url="https://taobao.test", transport=transport)
    products = await _cascade(client).search_by_keywords(["初音未来 cos"], budget_ceiling=100.0)
    await client.aclose()

    assert seen["login"] == 1
    assert seen["search"][0]["auth"] == "Bearer abc"
    assert seen["search"][0]["body"]["filter"]["price_range"]["max"] == 100.0
    assert len(products) == 1
    product = products[0]
    assert product.id == "123"
    assert product.title_en == "Miku cosplay costume"
    assert product.seller_name == "Miku Shop"
    assert product.price_vnd == pytest.approx(88.5 * 3500)


async def test_unauthorized_search_degrades_without_relogin():
    seen, transport = _mock_taobao(search_status=401)
    client = TaobaoClient(base_url="https://taobao.test", transport=transport)
    cascade = _cascade(client)
    assert await cascade.search_by_keywords(["K1", "K2"]) == []
    assert await cascade.search_by_keywords(["K3"]) == []
    await client.aclose()

    assert seen["login"] == 1
    assert len(seen["search"]) == 3
