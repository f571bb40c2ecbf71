import os

from dotenv import load_dotenv

load_dotenv()

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
RESPONSE_LANGUAGE = os.getenv("RESPONSE_LANGUAGE", "Vietnamese") # Language the oracle answers in

TAOBAO_BASE_URL = os.getenv("TAOBAO_BASE_URL", "https://openapi.elim.asia")
TAOBAO_EMAIL = os.getenv("TAOBAO_EMAIL", "")
TAOBAO_PASSWORD = os.getenv("TAOBAO_PASSWORD", "")
TAOBAO_PLATFORM = os.getenv("TAOBAO_PLATFORM", "taobao")
TAOBAO_LANG = os.getenv("TAOBAO_LANG", "vi")
MARKETPLACE_TIMEOUT = float(os.getenv("MARKETPLACE_TIMEOUT", "15")) # Seconds per marketplace request

ACCOUNT_PROFILES_PATH = os.getenv("ACCOUNT_PROFILES_PATH", "") # Optional JSON file of account profiles

SEARCH_PAGE_SIZE = 20 # Number of items requested per keyword search
MAX_KEYWORDS = 7 # Maximum keywords kept from the oracle answer
CNY_TO_VND_RATE = 3500.0 # Fixed conversion rate, 1 CNY in VND
TOKEN_EXPIRY_SKEW = 30 # Seconds before expiry at which the cached token is refetched

DEFAULT_SUITABILITY_SCORE = "7"
FALLBACK_DIFFICULTY = "MEDIUM"
