"""
Ingredient Matching Service

Functions for normalizing supplier item names and finding the matching
ingredient in a restaurant's catalog.
"""

import re

from constants import INGREDIENT_ALIASES, DESCRIPTOR_WORDS, INVOICE_NOISE_WORDS, SINGULAR_MAP, NO_STRIP_S
from models import db, Ingredient, IngredientSynonym


def normalize_ingredient_name(name):
    """Normalize a supplier item name for matching."""
    normalized = (name or '').lower().strip()

    # Pack sizes like "50#", "6/10", "12ct", "#10"
    normalized = re.sub(r'#\s*\d+|\d+\s*#', ' ', normalized)
    normalized = re.sub(r'\b\d+\s*/\s*\d+\b|\b\d+\s*ct\b', ' ', normalized)

    # Remove special characters (asterisks, etc.)
    normalized = re.sub(r'[*@!]+', '', normalized)
    normalized = normalized.replace(',', ' ')

    # Remove leading/trailing dashes, slashes, and punctuation
    normalized = normalized.strip('-/.,;: ')

    # Remove leading numbers left over
    normalized = re.sub(r'^[\d\s/.-]+', '', normalized).strip()

    words = [w for w in normalized.split() if w not in DESCRIPTOR_WORDS and w not in INVOICE_NOISE_WORDS]

    singularized = []
    for w in words:
        if w in SINGULAR_MAP:
            singularized.append(SINGULAR_MAP[w])
        elif w.endswith('s') and len(w) > 3 and w not in NO_STRIP_S and not w.endswith('ss'):
            singularized.append(w[:-1])
        else:
            singularized.append(w)

    normalized = ' '.join(singularized)

    if normalized in INGREDIENT_ALIASES:
        return INGREDIENT_ALIASES[normalized]

    # Capitalize each word for display
    return ' '.join(word.capitalize() for word in normalized.split())


def find_ingredient_match(raw_name, restaurant_id):
    """
    Deterministic ingredient matching within one restaurant:
    1. Check IngredientSynonym for the raw supplier name
    2. Normalize the name (strip pack sizes and adjectives, singularize)
    3. Check IngredientSynonym, then Ingredient, for the normalized name
    4. Return (ingredient, match_type) or (None, None) if no match

    match_type is 'synonym', 'exact', or None
    """
    raw_lower = (raw_name or '').strip().lower()
    normalized_lower = normalize_ingredient_name(raw_name).lower()

    for candidate in dict.fromkeys([raw_lower, normalized_lower]):
        if not candidate:
            continue
        synonym = IngredientSynonym.query.filter(
            IngredientSynonym.restaurant_id == restaurant_id,
            db.func.lower(IngredientSynonym.synonym) == candidate,
        ).first()
        if synonym:
            return synonym.ingredient, 'synonym'

    for candidate in dict.fromkeys([normalized_lower, raw_lower]):
        if not candidate:
            continue
        ingredient = Ingredient.query.filter(
            Ingredient.restaurant_id == restaurant_id,
            db.func.lower(Ingredient.name) == candidate,
        ).first()
        if ingredient:
            return ingredient, 'exact'

    return None, None


def get_ingredient_suggestions(normalized_name, restaurant_id, limit=5):
    """
    Get ranked suggestions for an ingredient name.
    Returns list of (ingredient, score, match_reason) tuples.
    """
    suggestions = []
    normalized_lower = normalized_name.lower()
    words = set(normalized_lower.split())

    for ing in Ingredient.query.filter_by(restaurant_id=restaurant_id).all():
        ing_lower = ing.name.lower()
        ing_words = set(ing_lower.split())

        if ing_lower == normalized_lower:
            suggestions.append((ing, 100, 'exact'))
            continue

        common_words = words & ing_words
        if common_words:
            score = (len(common_words) / max(len(words), len(ing_words))) * 80
            suggestions.append((ing, score, 'partial'))

    suggestions.sort(key=lambda x: x[1], reverse=True)
    return suggestions[:limit]
