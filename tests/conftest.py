from typing import Dict, List, Optional, Union

import pytest

from cosplay_agent.accounts import InMemoryAccountDirectory
from cosplay_agent.marketplace import AbstractMarketplaceClient, ProductSearchCascade
from cosplay_agent.models import AuthToken, OracleAnswer, ProductCandidate
from cosplay_agent.oracle import AbstractOracle

FULL_ANSWER = """[CHARACTER_DESCRIPTION]
Hatsune Miku is a Vocaloid virtual singer released in 2007.

[DIFFICULTY_LEVEL]
MEDIUM

[SUITABILITY_SCORE]
Score: 8/10, a great match.

[BUDGET_ANALYSIS]
Around 1.500.000 VND for costume, wig and props.

[RECOMMENDATIONS]
Buy the costume, style the twin-tail wig yourself.

[ITEMS_LIST]
* Costume
* Teal twin-tail wig

[TIPS]
Practise the signature leek pose.

[ALTERNATIVES]
Kagamine Rin, Megurine Luka.

[TAOBAO_KEYWORDS]
Generate these keywords on Taobao:
- 初音未来 cosplay服
初音未来 假发
Miku cos wig
plain english line
Chúc bạn thành công!
"""


class FakeOracle(AbstractOracle):
    def __init__(self, text: str = FULL_ANSWER, error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls: List[Dict[str, str]] = []

    async def ask(self, prompt: str, system_instruction: str) -> OracleAnswer:
        self.calls.append({"prompt": prompt, "system": system_instruction})
        if self.error is not None:
            raise self.error
        return OracleAnswer(text=self.text, model="fake", elapsed_ms=5)


class FakeMarketplace(AbstractMarketplaceClient):
    """Keyword → items (or exception) lookup with call recording."""

    def __init__(
        self,
        results: Optional[Dict[str, Union[List[ProductCandidate], Exception]]] = None,
        login_error: Optional[Exception] = None,
    ) -> None:
        self.results = results or {}
        self.login_error = login_error
        self.logins = 0
        self.searches: List[Dict] = []

    async def login(self, email: str, password: str) -> AuthToken:
        self.logins += 1
        if self.login_error is not None:
            raise self.login_error
        return AuthToken(access_token=f"token-{self.logins}", expires_in=None)

    async def search(self, token, keyword, budget_ceiling=None):
        self.searches.append({"token": token, "keyword": keyword, "budget": budget_ceiling})
        result = self.results.get(keyword, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class RecordingCascade(ProductSearchCascade):
    def __init__(self, products=None) -> None:
        super().__init__(FakeMarketplace(), email="e", password="p")
        self.products = products or []
        self.calls: List[Dict] = []

    async def search_by_keywords(self, keywords, budget_ceiling=None):
        self.calls.append({"keywords": list(keywords), "budget": budget_ceiling})
        return list(self.products)


def make_item(item_id: str, price: Optional[float], title: str = "cos服") -> ProductCandidate:
    return ProductCandidate(
        id=item_id,
        title=title,
        price=price,
        seller_name="shop",
        img_url=f"https://img.example/{item_id}.jpg",
        link=f"https://item.taobao.com/item.htm?id={item_id}",
    )


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def accounts() -> InMemoryAccountDirectory:
    from cosplay_agent.models import AccountProfile

    return InMemoryAccountDirectory(
        [
            AccountProfile(account_id="1", height=180.0, weight=None, gender=None),
            AccountProfile(account_id="2", height=None, weight=None, gender=None),
        ]
    )
