"""
Free-text parsing for ingredient lists and meal plans
"""

import re
from typing import List

_INGREDIENT_DELIMITERS = re.compile(r",|;|\n| and ")
_KEYWORD_DELIMITERS = re.compile(r"[ ,.;]")

MIN_KEYWORD_LENGTH = 4


def parse_ingredients(text: str) -> List[str]:
    """Split an ingredient string into lower-cased, trimmed entries in input order"""
    pieces = (piece.strip() for piece in _INGREDIENT_DELIMITERS.split(text.lower()))
    return [piece for piece in pieces if piece]


def extract_keywords(text: str) -> List[str]:
    """Pull candidate keywords (longer than three characters) out of free text"""
    tokens = (token.strip() for token in _KEYWORD_DELIMITERS.split(text.lower()))
    return [token for token in tokens if len(token) >= MIN_KEYWORD_LENGTH]
