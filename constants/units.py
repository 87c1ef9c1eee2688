"""
Unit Constants and Conversion Tables

Contains the unit spellings, categories and conversion factors used to
standardize invoice and recipe quantities. Every price in the system is
ultimately expressed per one standard unit:

- Weight: oz
- Volume: fl oz
- Count:  each
"""

from types import MappingProxyType

# Standard unit for each category
STANDARD_WEIGHT_UNIT = 'oz'
STANDARD_VOLUME_UNIT = 'fl oz'
STANDARD_COUNT_UNIT = 'each'

# Unit spellings (lowercase, no periods -> normalized unit)
UNIT_NORMALIZATION = MappingProxyType({
    # Weight
    'g': 'g', 'gram': 'g', 'grams': 'g',
    'oz': 'oz', 'ounce': 'oz', 'ounces': 'oz',
    'lb': 'lb', 'lbs': 'lb', 'pound': 'lb', 'pounds': 'lb',
    'kg': 'kg', 'kilogram': 'kg', 'kilograms': 'kg',
    # Volume
    'ml': 'ml', 'milliliter': 'ml', 'milliliters': 'ml',
    'fl oz': 'fl oz', 'floz': 'fl oz', 'fluid ounce': 'fl oz', 'fluid ounces': 'fl oz',
    'tbsp': 'tbsp', 'tablespoon': 'tbsp', 'tablespoons': 'tbsp',
    'tsp': 'tsp', 'teaspoon': 'tsp', 'teaspoons': 'tsp',
    'cup': 'cup', 'cups': 'cup',
    'gal': 'gal', 'gallon': 'gal', 'gallons': 'gal',
    'l': 'l', 'liter': 'l', 'liters': 'l', 'litre': 'l', 'litres': 'l',
    # Count
    'each': 'each', 'ea': 'each',
    'piece': 'each', 'pieces': 'each',
    'item': 'each', 'items': 'each',
    'whole': 'each',
    # Special (ingredient-specific)
    'clove': 'clove', 'cloves': 'clove',
})

# Normalized unit -> category name
UNIT_CATEGORIES = MappingProxyType({
    'g': 'weight', 'oz': 'weight', 'lb': 'weight', 'kg': 'weight',
    'ml': 'volume', 'fl oz': 'volume', 'tbsp': 'volume', 'tsp': 'volume',
    'cup': 'volume', 'gal': 'volume', 'l': 'volume',
    'each': 'count',
    'clove': 'special',
})

# 1 unit = factor oz
TO_STANDARD_WEIGHT = MappingProxyType({
    'g': 0.035274,
    'oz': 1,
    'lb': 16,
    'kg': 35.274,
})

# 1 unit = factor fl oz
TO_STANDARD_VOLUME = MappingProxyType({
    'ml': 0.033814,
    'fl oz': 1,
    'tbsp': 0.5,
    'tsp': 0.166667,
    'cup': 8,
    'gal': 128,
    'l': 33.814,
})

# Special unit -> (standard unit, factor). Approximations, not precise conversions.
SPECIAL_UNIT_CONVERSIONS = MappingProxyType({
    'clove': ('oz', 0.1),  # 1 clove of garlic ~ 0.1 oz
})

# Ingredient keyword -> {normalized volume unit: oz}
# Recipes often measure these by volume while suppliers sell them by weight.
INGREDIENT_DENSITY_CONVERSIONS = MappingProxyType({
    'salt': MappingProxyType({'tsp': 0.2, 'tbsp': 0.6}),
    'black pepper': MappingProxyType({'tsp': 0.07, 'tbsp': 0.21}),
    'pepper': MappingProxyType({'tsp': 0.07, 'tbsp': 0.21}),
    'sugar': MappingProxyType({'tsp': 0.15, 'tbsp': 0.45, 'cup': 7.0}),
    'flour': MappingProxyType({'tsp': 0.1, 'tbsp': 0.3, 'cup': 4.5}),
})

# Display descriptions for normalized units
UNIT_DESCRIPTIONS = MappingProxyType({
    'g': 'grams (weight)',
    'oz': 'ounces (weight)',
    'lb': 'pounds (weight)',
    'kg': 'kilograms (weight)',
    'ml': 'milliliters (volume)',
    'fl oz': 'fluid ounces (volume)',
    'tbsp': 'tablespoons (volume)',
    'tsp': 'teaspoons (volume)',
    'cup': 'cups (volume)',
    'gal': 'gallons (volume)',
    'l': 'liters (volume)',
    'each': 'individual items',
    'clove': 'garlic cloves',
})

# Common fractions for display (using precise values)
COMMON_FRACTIONS = {
    0.125: '1/8', 0.25: '1/4', 1/3: '1/3', 0.375: '3/8',
    0.5: '1/2', 0.625: '5/8', 2/3: '2/3', 0.75: '3/4', 0.875: '7/8'
}

# Unicode fraction characters mapping
UNICODE_FRACTIONS = {
    '\u00bd': 0.5,    # ½
    '\u2153': 1/3,    # ⅓
    '\u2154': 2/3,    # ⅔
    '\u00bc': 0.25,   # ¼
    '\u00be': 0.75,   # ¾
    '\u2155': 0.2,    # ⅕
    '\u2156': 0.4,    # ⅖
    '\u2157': 0.6,    # ⅗
    '\u2158': 0.8,    # ⅘
    '\u2159': 1/6,    # ⅙
    '\u215a': 5/6,    # ⅚
    '\u215b': 0.125,  # ⅛
    '\u215c': 0.375,  # ⅜
    '\u215d': 0.625,  # ⅝
    '\u215e': 0.875,  # ⅞
}
