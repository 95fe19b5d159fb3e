"""
Template-based response generation for the rule-based assistant
Every method is a pure function of its arguments and the static taxonomy tables
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .classifier import (
    ChatIntent,
    classify_intent,
    has_category,
    identify_primary_category,
    matching_keywords,
)
from .taxonomy import (
    DAIRY_ITEMS,
    DAIRY_KEYWORDS,
    DEFAULT_CATEGORY,
    FRESH_PRODUCE_ITEMS,
    GENERIC_SUBSTITUTES,
    PANTRY_STAPLE_ITEMS,
    PROTEIN_ITEMS,
    PROTEIN_KEYWORDS,
    RECIPE_TEMPLATES,
    SUBSTITUTIONS,
    VEGETABLE_KEYWORDS,
    RecipeTemplate,
)
from .text_parser import extract_keywords, parse_ingredients

logger = logging.getLogger(__name__)

MAX_RECIPE_SUGGESTIONS = 3

CHAT_RESPONSES: Dict[ChatIntent, str] = {
    ChatIntent.COOKING_TIME: (
        "Cooking times vary by recipe and method:\n"
        "• Stir-fry: 15-20 minutes\n"
        "• Baked dishes: 30-45 minutes\n"
        "• Slow cooker: 4-8 hours\n"
        "• Instant pot: 15-30 minutes\n\n"
        "What are you planning to cook?"
    ),
    ChatIntent.STORAGE: (
        "Storage tips:\n"
        "• Fresh produce: Refrigerate in crisper drawer (3-7 days)\n"
        "• Cooked meals: Refrigerate in airtight containers (3-4 days)\n"
        "• Dry goods: Cool, dry pantry (months to years)\n"
        "• Frozen items: Freezer at 0°F (-18°C) (3-12 months)\n\n"
        "Always check for signs of spoilage before use."
    ),
    ChatIntent.SUBSTITUTION: (
        "I can help with ingredient substitutions! Tell me:\n"
        "1. What ingredient do you need to replace?\n"
        "2. What recipe are you making?\n\n"
        "I'll suggest appropriate alternatives that work well."
    ),
    ChatIntent.MEAL_PLANNING: (
        "Meal planning tips:\n"
        "1. Plan 3-5 dinners per week\n"
        "2. Choose recipes with overlapping ingredients\n"
        "3. Prep ingredients on weekends\n"
        "4. Use your pantry items first\n"
        "5. Include one \"leftover\" night\n\n"
        "Would you like help creating a meal plan?"
    ),
    ChatIntent.RECIPE: (
        "I can suggest recipes based on your ingredients! Just tell me:\n"
        "• What ingredients you have\n"
        "• Any dietary preferences\n"
        "• How much time you have\n\n"
        "I'll provide personalized recipe suggestions."
    ),
    ChatIntent.CAPABILITIES: (
        "I'm your Kitchen Kompanion AI assistant! I can help with:\n\n"
        "✓ Recipe suggestions from your ingredients\n"
        "✓ Smart grocery list generation\n"
        "✓ Ingredient substitutions\n"
        "✓ Cooking tips and techniques\n"
        "✓ Meal planning advice\n"
        "✓ Food storage guidance\n\n"
        "What would you like help with today?"
    ),
    ChatIntent.FALLBACK: (
        "Thanks for your question: \"{message}\"\n\n"
        "I'm your on-device AI cooking assistant. While I can help with recipes, "
        "substitutions, and meal planning, I might need more specific information "
        "to give you the best answer.\n\n"
        "Try asking about:\n"
        "• Recipe suggestions\n"
        "• Ingredient substitutions\n"
        "• Cooking times and methods\n"
        "• Meal planning strategies"
    ),
}


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class ResponseGenerator:
    """Builds the formatted text for each assistant operation"""

    def select_templates(self, ingredients: Sequence[str]) -> Tuple[RecipeTemplate, ...]:
        """Templates for the primary category, falling back to vegetables"""
        category = identify_primary_category(ingredients)
        templates = RECIPE_TEMPLATES.get(category)
        if templates is None:
            logger.debug(f"No templates for category '{category}', using {DEFAULT_CATEGORY}")
            templates = RECIPE_TEMPLATES[DEFAULT_CATEGORY]
        return templates[:MAX_RECIPE_SUGGESTIONS]

    def suggest_recipes(self, ingredients: str, preferences: Optional[str] = None) -> str:
        ingredient_list = parse_ingredients(ingredients)
        templates = self.select_templates(ingredient_list)

        lines = ["Based on your ingredients, here are 3 recipe suggestions:\n\n"]

        for index, template in enumerate(templates, start=1):
            lines.append(f"{index}. **{template.name}**\n")
            lines.append(f"   {template.description}\n")
            lines.append(f"   Cooking time: {template.cooking_time_minutes} minutes\n")
            lines.append(f"   Method: {template.method.value}\n")

            name = template.name.lower()
            description = template.description.lower()
            used = [item for item in ingredient_list if item in description or item in name]
            if used:
                lines.append(f"   Uses: {', '.join(used)}\n")

            lines.append("\n")

        if not _is_blank(preferences):
            lines.append(f"Note: Recipes can be adapted for {preferences} preferences.\n")

        lines.append("\nAI-powered suggestions based on your pantry.")
        return "".join(lines)

    def grocery_sections(self, pantry_items: str, meal_plan: str) -> List[Tuple[str, Tuple[str, ...]]]:
        """Grocery categories to buy, in display order"""
        pantry = parse_ingredients(pantry_items)
        meal_keywords = extract_keywords(meal_plan)

        sections = []
        if not has_category(pantry, VEGETABLE_KEYWORDS):
            sections.append(("Fresh Produce", FRESH_PRODUCE_ITEMS))
        if not has_category(pantry, PROTEIN_KEYWORDS) or matching_keywords(meal_keywords, PROTEIN_KEYWORDS):
            sections.append(("Proteins", PROTEIN_ITEMS))
        sections.append(("Pantry Staples", PANTRY_STAPLE_ITEMS))
        if not has_category(pantry, DAIRY_KEYWORDS):
            sections.append(("Dairy", DAIRY_ITEMS))
        return sections

    def generate_grocery_list(self, pantry_items: str, meal_plan: str) -> str:
        lines = [
            "Smart Grocery List\n",
            f"Based on your meal plan: \"{meal_plan}\"\n\n",
        ]

        for category, items in self.grocery_sections(pantry_items, meal_plan):
            lines.append(f"{category}:\n")
            lines.extend(f"  • {item}\n" for item in items)
            lines.append("\n")

        lines.append("Tip: Cross-check with your current pantry to avoid duplicates.")
        return "".join(lines)

    def find_substitutes(self, ingredient: str) -> Tuple[str, ...]:
        """Exact lookup, then the first partial match in table order, then generic advice"""
        normalized = ingredient.lower().strip()

        exact = SUBSTITUTIONS.get(normalized)
        if exact is not None:
            return exact

        for key, substitutes in SUBSTITUTIONS.items():
            if key in normalized or normalized in key:
                logger.debug(f"Partial substitution match '{key}' for '{normalized}'")
                return substitutes

        return GENERIC_SUBSTITUTES

    def suggest_substitutes(self, ingredient: str, recipe: Optional[str] = None) -> str:
        substitutes = self.find_substitutes(ingredient)

        lines = [f"Substitutions for **{ingredient}**:\n\n"]
        lines.extend(f"{index}. {substitute}\n" for index, substitute in enumerate(substitutes, start=1))
        lines.append("\n")

        if not _is_blank(recipe):
            lines.append(f"Context: Works well in {recipe}\n")

        lines.append("\nNote: Adjust proportions as needed. Some substitutes may alter taste or texture slightly.")
        return "".join(lines)

    def chat(self, message: str, context: Optional[str] = None) -> str:
        intent = classify_intent(message)
        logger.debug(f"Chat intent: {intent.value}")
        if intent is ChatIntent.FALLBACK:
            return CHAT_RESPONSES[intent].format(message=message)
        return CHAT_RESPONSES[intent]
