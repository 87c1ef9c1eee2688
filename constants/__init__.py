"""
Constants Package

Static lookup tables shared by the services and the Flask app.
"""

from .units import (
    STANDARD_WEIGHT_UNIT,
    STANDARD_VOLUME_UNIT,
    STANDARD_COUNT_UNIT,
    UNIT_NORMALIZATION,
    UNIT_CATEGORIES,
    TO_STANDARD_WEIGHT,
    TO_STANDARD_VOLUME,
    SPECIAL_UNIT_CONVERSIONS,
    INGREDIENT_DENSITY_CONVERSIONS,
    UNIT_DESCRIPTIONS,
    COMMON_FRACTIONS,
    UNICODE_FRACTIONS,
)

from .ingredients import (
    INGREDIENT_ALIASES,
    DESCRIPTOR_WORDS,
    INVOICE_NOISE_WORDS,
    SINGULAR_MAP,
    NO_STRIP_S,
)

from .validation import (
    VALID_UNKNOWN_UNIT_POLICIES,
    VALID_CONVERSION_FAILURE_POLICIES,
    COST_CHANGE_REASONS,
    MAX_INVOICE_QUANTITY,
    MAX_INVOICE_AMOUNT,
    MAX_MENU_PRICE,
    MAX_RECIPE_QUANTITY,
    MAX_LENGTHS,
)
