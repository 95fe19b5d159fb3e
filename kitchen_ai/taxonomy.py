"""
Keyword taxonomy and static tables for the rule-based assistant
Keyword sets, recipe templates and substitutions are loaded once and never mutated
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple


class RequestKind(Enum):
    """Operations a backend serves"""
    RECIPES = "recipes"
    GROCERY_LIST = "grocery_list"
    SUBSTITUTES = "substitutes"
    CHAT = "chat"


class CookingMethod(str, Enum):
    """How a template recipe is cooked"""
    OVEN = "oven"
    STOVETOP = "stovetop"
    SLOW_COOKER = "slow cooker"


@dataclass(frozen=True)
class RecipeTemplate:
    """A canned recipe suggestion"""
    name: str
    description: str
    cooking_time_minutes: int
    method: CookingMethod

    def __post_init__(self):
        if self.cooking_time_minutes <= 0:
            raise ValueError(f"Cooking time must be positive for {self.name}")


# Simulated processing time per operation, in seconds
PROCESSING_TIMES: Mapping[RequestKind, float] = MappingProxyType({
    RequestKind.RECIPES: 1.2,
    RequestKind.GROCERY_LIST: 1.0,
    RequestKind.SUBSTITUTES: 0.8,
    RequestKind.CHAT: 0.9,
})

# Keyword sets; order is the order "first match" is reported in
PROTEIN_KEYWORDS: Tuple[str, ...] = (
    "chicken", "beef", "pork", "fish", "tofu", "eggs", "turkey", "lamb",
)
VEGETABLE_KEYWORDS: Tuple[str, ...] = (
    "tomato", "onion", "garlic", "pepper", "carrot",
    "broccoli", "spinach", "lettuce", "potato", "mushroom",
)
GRAIN_KEYWORDS: Tuple[str, ...] = (
    "rice", "pasta", "bread", "flour", "quinoa", "oats", "noodles",
)
DAIRY_KEYWORDS: Tuple[str, ...] = (
    "milk", "cheese", "butter", "yogurt", "cream",
)

KEYWORD_SETS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "protein": PROTEIN_KEYWORDS,
    "vegetable": VEGETABLE_KEYWORDS,
    "grain": GRAIN_KEYWORDS,
    "dairy": DAIRY_KEYWORDS,
})

GRAIN_CATEGORY = "pasta"
DEFAULT_CATEGORY = "vegetable"

# Templates keyed by primary category; list order is the display ranking
RECIPE_TEMPLATES: Mapping[str, Tuple[RecipeTemplate, ...]] = MappingProxyType({
    "chicken": (
        RecipeTemplate("Herb-Roasted Chicken", "Juicy chicken with aromatic herbs and crispy skin", 45, CookingMethod.OVEN),
        RecipeTemplate("Quick Chicken Stir-Fry", "Asian-inspired stir-fry with fresh vegetables", 20, CookingMethod.STOVETOP),
        RecipeTemplate("Creamy Chicken Pasta", "Comfort food with rich cream sauce", 30, CookingMethod.STOVETOP),
    ),
    "beef": (
        RecipeTemplate("Classic Beef Stir-Fry", "Tender beef with colorful vegetables", 25, CookingMethod.STOVETOP),
        RecipeTemplate("Beef and Vegetable Stew", "Hearty slow-cooked comfort meal", 120, CookingMethod.SLOW_COOKER),
        RecipeTemplate("Quick Beef Tacos", "Easy weeknight dinner with bold flavors", 20, CookingMethod.STOVETOP),
    ),
    "pasta": (
        RecipeTemplate("Garlic Olive Oil Pasta", "Simple Italian classic (Aglio e Olio)", 15, CookingMethod.STOVETOP),
        RecipeTemplate("Tomato Basil Pasta", "Fresh and light Mediterranean dish", 20, CookingMethod.STOVETOP),
        RecipeTemplate("Creamy Vegetable Pasta", "Hearty pasta with seasonal vegetables", 25, CookingMethod.STOVETOP),
    ),
    "vegetable": (
        RecipeTemplate("Roasted Vegetable Medley", "Colorful sheet-pan vegetables", 35, CookingMethod.OVEN),
        RecipeTemplate("Quick Vegetable Stir-Fry", "Crisp-tender vegetables with savory sauce", 15, CookingMethod.STOVETOP),
        RecipeTemplate("Hearty Vegetable Soup", "Warming, nutritious comfort bowl", 40, CookingMethod.STOVETOP),
    ),
    "fish": (
        RecipeTemplate("Lemon Herb Baked Fish", "Light and flaky with bright flavors", 25, CookingMethod.OVEN),
        RecipeTemplate("Pan-Seared Fish", "Crispy skin with tender, moist flesh", 20, CookingMethod.STOVETOP),
        RecipeTemplate("Fish Tacos", "Fresh and zesty weeknight favorite", 25, CookingMethod.STOVETOP),
    ),
})

# Substitutes per ingredient, preferred first; key order drives partial matching
SUBSTITUTIONS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "butter": ("olive oil", "coconut oil", "margarine", "ghee"),
    "milk": ("almond milk", "soy milk", "oat milk", "coconut milk"),
    "eggs": ("flax eggs (1 tbsp ground flax + 3 tbsp water)", "chia eggs", "mashed banana", "applesauce"),
    "flour": ("almond flour", "coconut flour", "oat flour", "rice flour"),
    "sugar": ("honey", "maple syrup", "stevia", "agave nectar"),
    "chicken": ("turkey", "tofu", "tempeh", "seitan"),
    "beef": ("ground turkey", "plant-based meat", "mushrooms", "lentils"),
    "cheese": ("nutritional yeast", "cashew cheese", "vegan cheese", "tofu ricotta"),
    "soy sauce": ("tamari", "coconut aminos", "Worcestershire sauce", "liquid aminos"),
    "yogurt": ("Greek yogurt", "coconut yogurt", "sour cream", "mashed avocado"),
})

GENERIC_SUBSTITUTES: Tuple[str, ...] = (
    "Similar items in your pantry",
    "Generic store brand alternative",
    "Adjust recipe to omit if optional",
)

# Grocery sections, in rendering order
FRESH_PRODUCE_ITEMS: Tuple[str, ...] = (
    "Fresh tomatoes",
    "Onions (yellow and red)",
    "Garlic cloves",
    "Bell peppers (assorted colors)",
    "Fresh herbs (basil, parsley)",
)
PROTEIN_ITEMS: Tuple[str, ...] = (
    "Chicken breast (1 lb)",
    "Ground beef (1 lb)",
    "Eggs (dozen)",
)
PANTRY_STAPLE_ITEMS: Tuple[str, ...] = (
    "Olive oil",
    "Salt and pepper",
    "Pasta (if needed)",
    "Rice (if needed)",
)
DAIRY_ITEMS: Tuple[str, ...] = (
    "Milk",
    "Butter",
    "Cheese (cheddar or preferred type)",
)
