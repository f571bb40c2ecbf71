"""Simple CLI entry point for the cosplay suggestion agent."""

import asyncio
import logging
import os
from typing import Optional

from cosplay_agent import CosplaySuggestionAgent, SuggestionRequest

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper(), logging.WARNING),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def _ask_float(label: str) -> Optional[float]:
    raw = input(f"{label}: ").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        print(f"Ignoring invalid number: {raw}")
        return None


def _print_suggestion(data) -> None:
    s = data.suggestion
    print(f"\n== {data.character_name} ==")
    print(f"Difficulty: {s.difficulty_level}   Suitability: {s.suitability_score}/10")
    for title, body in (
        ("Character", s.character_description),
        ("Budget", s.budget_analysis),
        ("Recommendations", s.recommendations),
        ("Items", s.items_list),
        ("Tips", s.tips),
        ("Alternatives", s.alternatives),
    ):
        if body:
            print(f"\n-- {title} --\n{body}")
    print(f"\nKeywords: {', '.join(s.keywords) or '-'}")
    for p in data.products:
        price = f"{p.price_vnd:,.0f} VND" if p.price_vnd is not None else "n/a"
        print(f"  * {p.title} | {price} | {p.link}")
    print(f"(processed in {data.processing_time_ms} ms)\n")


async def main() -> None:
    agent = CosplaySuggestionAgent()
    print("Cosplay assistant is ready. Leave the character empty or type 'exit' to stop.")

    while True:
        try:
            name = input("Character: ").strip()
            if not name or name.lower() in {"exit", "quit"}:
                print("Goodbye.")
                break
            request = SuggestionRequest(
                character_name=name,
                budget=_ask_float("Budget (VND, empty for unlimited)"),
                height=_ask_float("Height (cm)"),
                weight=_ask_float("Weight (kg)"),
                gender=input("Gender: ").strip() or None,
                notes=input("Notes: ").strip() or None,
            )
        except (KeyboardInterrupt, EOFError):
            print("\nExiting.")
            break

        envelope = await agent.suggest_for_guest(request)
        if envelope.success and envelope.data:
            _print_suggestion(envelope.data)
        else:
            print(f"Error: {envelope.message}\n")

    print("Session ended.")


if __name__ == "__main__":
    asyncio.run(main())
