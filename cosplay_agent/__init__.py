from .agent import CosplaySuggestionAgent
from .models import SuggestionEnvelope, SuggestionRequest

__all__ = ["CosplaySuggestionAgent", "SuggestionEnvelope", "SuggestionRequest"]
