import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cosplay_agent import CosplaySuggestionAgent, SuggestionRequest
from cosplay_agent.accounts import InMemoryAccountDirectory
from cosplay_agent.config import ACCOUNT_PROFILES_PATH
from cosplay_agent.utils import serialize_envelope

log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
logger = logging.getLogger("cosplay_agent.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Close the HTTP clients of whichever agent is serving at shutdown.
    await agent.aclose()


app = FastAPI(title="Cosplay Suggestion API", lifespan=lifespan)

# Enable CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify the exact origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class CosplaySuggestionBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    character_name: str = Field(min_length=1)
    budget: Optional[float] = None  # VND
    height: Optional[float] = Field(default=None, gt=0)  # cm
    weight: Optional[float] = Field(default=None, gt=0)  # kg
    gender: Optional[str] = None
    notes: Optional[str] = None

    def to_request(self) -> SuggestionRequest:
        return SuggestionRequest(**self.model_dump())


def build_agent() -> CosplaySuggestionAgent:
    accounts = (
        InMemoryAccountDirectory.from_json_file(ACCOUNT_PROFILES_PATH)
        if ACCOUNT_PROFILES_PATH
        else InMemoryAccountDirectory()
    )
    return CosplaySuggestionAgent(accounts=accounts)


# Shared agent instance; it owns the process-wide Taobao token cache.
agent = build_agent()


@app.post("/api/cosplay/suggestion")
async def cosplay_suggestion(
    body: CosplaySuggestionBody,
    x_account_id: Optional[str] = Header(default=None),
):
    request = body.to_request()
    if x_account_id:
        logger.info("Generating cosplay suggestion for user ID: %s", x_account_id)
        envelope = await agent.suggest_for_user(x_account_id, request)
    else:
        logger.info("Generating cosplay suggestion for guest user")
        envelope = await agent.suggest_for_guest(request)
    status = 200 if envelope.success else 400
    return JSONResponse(status_code=status, content=serialize_envelope(envelope))


@app.post("/api/cosplay/test")
async def test_oracle(request: Request):
    # Plain-text body names the character to ask about; empty uses the default.
    character_name = (await request.body()).decode("utf-8").strip()
    envelope = await agent.check_oracle(character_name or None)
    if envelope.success:
        return {"success": True, "message": "AI test successful", "data": "Connected to the oracle"}
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": f"AI test failed: {envelope.message}", "data": None},
    )


@app.get("/")
async def root():
    return {"status": "Cosplay Suggestion API is running", "docs": "/docs"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
