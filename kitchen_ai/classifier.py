"""
Rule-based classification of ingredients and chat messages
Everything here uses plain substring matching against the static taxonomy
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .taxonomy import (
    DEFAULT_CATEGORY,
    GRAIN_CATEGORY,
    GRAIN_KEYWORDS,
    PROTEIN_KEYWORDS,
)


class ChatIntent(Enum):
    """Intent buckets for free-form chat"""
    COOKING_TIME = "cooking_time"
    STORAGE = "storage"
    SUBSTITUTION = "substitution"
    MEAL_PLANNING = "meal_planning"
    RECIPE = "recipe"
    CAPABILITIES = "capabilities"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class IntentRule:
    """A predicate over the lower-cased message and the intent it selects"""
    intent: ChatIntent
    matches: Callable[[str], bool]


def _contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda text: any(needle in text for needle in needles)


# Evaluated top to bottom; the first matching rule wins
INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule(
        ChatIntent.COOKING_TIME,
        lambda text: "how long" in text and ("cook" in text or "bake" in text),
    ),
    IntentRule(ChatIntent.STORAGE, _contains_any("store", "keep")),
    IntentRule(ChatIntent.SUBSTITUTION, _contains_any("substitute", "replace")),
    IntentRule(ChatIntent.MEAL_PLANNING, _contains_any("meal prep", "meal plan")),
    IntentRule(ChatIntent.RECIPE, _contains_any("recipe")),
    IntentRule(ChatIntent.CAPABILITIES, _contains_any("?", "help")),
)


def first_keyword_in(item: str, keywords: Iterable[str]) -> Optional[str]:
    """Return the first keyword contained in item, if any"""
    for keyword in keywords:
        if keyword in item:
            return keyword
    return None


def identify_primary_category(ingredients: Sequence[str]) -> str:
    """
    Pick the recipe category for a parsed ingredient list.

    Each ingredient is checked against the protein keywords and then the grain
    keywords; the first ingredient that hits either decides. A protein hit
    returns the matched keyword itself (e.g. "chicken"), a grain hit returns
    "pasta", and no hit at all returns "vegetable".
    """
    for ingredient in ingredients:
        protein = first_keyword_in(ingredient, PROTEIN_KEYWORDS)
        if protein is not None:
            return protein
        if first_keyword_in(ingredient, GRAIN_KEYWORDS) is not None:
            return GRAIN_CATEGORY
    return DEFAULT_CATEGORY


def has_category(items: Iterable[str], keywords: Iterable[str]) -> bool:
    """Check whether any item contains any of the keywords"""
    keywords = tuple(keywords)
    return any(first_keyword_in(item, keywords) is not None for item in items)


def matching_keywords(tokens: Iterable[str], keywords: Iterable[str]) -> List[str]:
    """Tokens that are exactly one of the keywords, in token order"""
    keyword_set = frozenset(keywords)
    return [token for token in tokens if token in keyword_set]


def classify_intent(message: str) -> ChatIntent:
    """Map a chat message onto the first matching intent rule"""
    text = message.lower()
    for rule in INTENT_RULES:
        if rule.matches(text):
            return rule.intent
    return ChatIntent.FALLBACK
