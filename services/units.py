"""
Unit Standardization Service

Classifies unit strings into measurement categories and converts quantities
into each category's standard unit (oz, fl oz, each). Prices are stored per
one standard unit, so every invoice and recipe quantity passes through here.

Conversions never raise. Failures come back as a Conversion with
success=False so callers can decide whether a degraded estimate is
acceptable.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from constants import (
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
)

logger = logging.getLogger(__name__)


class UnitCategory(Enum):
    WEIGHT = 'weight'
    VOLUME = 'volume'
    COUNT = 'count'
    SPECIAL = 'special'


class UnknownUnitPolicy(Enum):
    """
    What to do with a unit that is not in the tables.

    DEFAULT_TO_WEIGHT: treat it as already in oz (factor 1) and flag the
        result as defaulted. Manual data entry is full of typos, so this
        is the default.
    REJECT: report the conversion as failed.
    """
    DEFAULT_TO_WEIGHT = 'default_to_weight'
    REJECT = 'reject'


@dataclass(frozen=True)
class UnitTables:
    """Immutable conversion tables used by a UnitNormalizer."""
    normalization: Mapping[str, str]
    categories: Mapping[str, UnitCategory]
    weight: Mapping[str, float]
    volume: Mapping[str, float]
    special: Mapping[str, Tuple[str, float]]
    density: Mapping[str, Mapping[str, float]]
    descriptions: Mapping[str, str]


DEFAULT_TABLES = UnitTables(
    normalization=UNIT_NORMALIZATION,
    categories=MappingProxyType({unit: UnitCategory(name) for unit, name in UNIT_CATEGORIES.items()}),
    weight=TO_STANDARD_WEIGHT,
    volume=TO_STANDARD_VOLUME,
    special=SPECIAL_UNIT_CONVERSIONS,
    density=INGREDIENT_DENSITY_CONVERSIONS,
    descriptions=UNIT_DESCRIPTIONS,
)


@dataclass
class Conversion:
    """Result of converting a quantity to its standard unit."""
    quantity: float
    unit: str
    category: UnitCategory
    factor: float
    success: bool = True
    error: Optional[str] = None
    original_unit: str = ''
    normalized_unit: str = ''
    conversion_type: str = 'standard'  # "standard" | "density" | "default"
    defaulted: bool = False


@dataclass
class StandardizedLine:
    """An invoice line expressed in both its native and its standard unit."""
    name: str
    original_quantity: float
    original_unit: str
    original_unit_cost: float
    standard_quantity: float
    standard_unit: str
    standard_unit_cost: float
    category: UnitCategory
    factor: float
    success: bool
    conversion_type: str = 'standard'
    defaulted: bool = False
    fallback: bool = False
    error: Optional[str] = None


@dataclass
class UnitValidation:
    valid: bool
    supported: bool
    category: UnitCategory
    standard_unit: str
    normalized_unit: str
    message: str


class UnitNormalizer:
    """
    Unit classification and conversion against a set of UnitTables.

    The module-level functions below use a shared instance built from the
    default tables. Tests and callers that need different tables or a
    different unknown-unit policy build their own instance.
    """

    def __init__(self, tables=DEFAULT_TABLES, unknown_unit_policy=UnknownUnitPolicy.DEFAULT_TO_WEIGHT):
        self.tables = tables
        self.unknown_unit_policy = unknown_unit_policy

    def normalize_unit(self, unit):
        """Lowercase, trim and map a unit spelling to its canonical form."""
        if not unit:
            return STANDARD_COUNT_UNIT
        cleaned = re.sub(r'\s+', ' ', str(unit).lower().replace('.', '')).strip()
        return self.tables.normalization.get(cleaned, cleaned)

    def is_known(self, unit):
        return self.normalize_unit(unit) in self.tables.categories

    def _lookup_category(self, normalized):
        category = self.tables.categories.get(normalized)
        if category is None:
            return UnitCategory.WEIGHT, False
        return category, True

    def classify_unit(self, unit):
        """Return the unit's category. Unknown units are classified as weight."""
        category, known = self._lookup_category(self.normalize_unit(unit))
        if not known:
            logger.warning('Unknown unit %r, defaulting category to weight', unit)
        return category

    def standard_unit_for(self, category, unit=None):
        """Standard unit for a category. Special units look up their own entry."""
        if category is UnitCategory.WEIGHT:
            return STANDARD_WEIGHT_UNIT
        if category is UnitCategory.VOLUME:
            return STANDARD_VOLUME_UNIT
        if category is UnitCategory.COUNT:
            return STANDARD_COUNT_UNIT
        if category is UnitCategory.SPECIAL:
            entry = self.tables.special.get(self.normalize_unit(unit)) if unit else None
            return entry[0] if entry else STANDARD_WEIGHT_UNIT
        raise ValueError(f'Unhandled unit category: {category!r}')

    def density_factor(self, ingredient_name, normalized_unit):
        """
        Ounces per one unit of a volume measure for a specific ingredient.

        Exact ingredient name first, then the first keyword that appears as
        a whole word in the name ("sea salt" matches "salt", "salted butter"
        does not).
        """
        if not ingredient_name:
            return None
        name = ingredient_name.lower().strip()
        exact = self.tables.density.get(name)
        if exact and normalized_unit in exact:
            return exact[normalized_unit]
        for keyword, factors in self.tables.density.items():
            if normalized_unit in factors and re.search(r'\b' + re.escape(keyword) + r'\b', name):
                return factors[normalized_unit]
        return None

    def _failed(self, quantity, from_unit, normalized, category, message):
        logger.error('Conversion failed for %s %r: %s', quantity, from_unit, message)
        return Conversion(
            quantity=quantity,
            unit=from_unit,
            category=category,
            factor=1,
            success=False,
            error=message,
            original_unit=from_unit,
            normalized_unit=normalized,
        )

    def to_standard_unit(self, quantity, from_unit, ingredient_name=''):
        """
        Convert a quantity into its category's standard unit.

        Args:
            quantity: Positive quantity in from_unit (validated by the caller)
            from_unit: Any unit spelling ("lbs", "Fl. Oz", "cloves", ...)
            ingredient_name: Optional, enables ingredient density conversions

        Returns:
            Conversion. On success quantity is quantity * factor.
        """
        normalized = self.normalize_unit(from_unit)

        density = self.density_factor(ingredient_name, normalized)
        if density is not None:
            logger.debug('Density conversion for %s: 1 %s = %s oz', ingredient_name, normalized, density)
            return Conversion(
                quantity=quantity * density,
                unit=STANDARD_WEIGHT_UNIT,
                category=UnitCategory.WEIGHT,
                factor=density,
                original_unit=from_unit,
                normalized_unit=normalized,
                conversion_type='density',
            )

        category, known = self._lookup_category(normalized)
        standard_unit = self.standard_unit_for(category, normalized)

        if not known:
            if self.unknown_unit_policy is UnknownUnitPolicy.REJECT:
                return self._failed(quantity, from_unit, normalized, category, f'Unknown unit: {from_unit}')
            logger.warning('Unknown unit %r, treating quantity as %s', from_unit, standard_unit)
            return Conversion(
                quantity=quantity,
                unit=standard_unit,
                category=category,
                factor=1,
                original_unit=from_unit,
                normalized_unit=normalized,
                conversion_type='default',
                defaulted=True,
            )

        if normalized == standard_unit:
            return Conversion(
                quantity=quantity,
                unit=standard_unit,
                category=category,
                factor=1,
                original_unit=from_unit,
                normalized_unit=normalized,
            )

        if category is UnitCategory.WEIGHT:
            factor = self.tables.weight.get(normalized)
        elif category is UnitCategory.VOLUME:
            factor = self.tables.volume.get(normalized)
        elif category is UnitCategory.COUNT:
            # Count units never scale; "each" to "each" is the only conversion
            factor = 1
        elif category is UnitCategory.SPECIAL:
            entry = self.tables.special.get(normalized)
            factor = entry[1] if entry else None
        else:
            raise ValueError(f'Unhandled unit category: {category!r}')

        if factor is None:
            return self._failed(quantity, from_unit, normalized, category,
                                f'Unknown {category.value} unit: {normalized}')
        if factor <= 0:
            return self._failed(quantity, from_unit, normalized, category,
                                f'Conversion factor for {normalized} is not positive')

        converted = quantity * factor
        logger.debug('Converted %s %s -> %s %s (factor %s)', quantity, from_unit, converted, standard_unit, factor)
        return Conversion(
            quantity=converted,
            unit=standard_unit,
            category=category,
            factor=factor,
            original_unit=from_unit,
            normalized_unit=normalized,
        )

    def standardized_unit_cost(self, recipe_quantity, recipe_unit, standard_unit_price, ingredient_name=''):
        """Cost of a recipe quantity given a price per standard unit. 0.0 if conversion fails."""
        conversion = self.to_standard_unit(recipe_quantity, recipe_unit, ingredient_name)
        if not conversion.success:
            return 0.0
        return conversion.quantity * standard_unit_price

    def standardize_invoice_line(self, name, total_cost, quantity, unit):
        """
        Standardize an invoice line for storage.

        The caller guarantees quantity > 0 and total_cost >= 0. If conversion
        fails the line keeps its native unit and unit cost, flagged fallback.
        """
        unit_cost = total_cost / quantity
        conversion = self.to_standard_unit(quantity, unit, name)

        if not conversion.success or conversion.quantity <= 0:
            error = conversion.error or 'Converted quantity is zero'
            logger.warning('Could not standardize %s (%s %s): %s. Storing %.4f per %s',
                           name, quantity, unit, error, unit_cost, unit)
            return StandardizedLine(
                name=name,
                original_quantity=quantity,
                original_unit=unit,
                original_unit_cost=unit_cost,
                standard_quantity=quantity,
                standard_unit=unit,
                standard_unit_cost=unit_cost,
                category=conversion.category,
                factor=1,
                success=False,
                fallback=True,
                error=error,
            )

        return StandardizedLine(
            name=name,
            original_quantity=quantity,
            original_unit=unit,
            original_unit_cost=unit_cost,
            standard_quantity=conversion.quantity,
            standard_unit=conversion.unit,
            standard_unit_cost=total_cost / conversion.quantity,
            category=conversion.category,
            factor=conversion.factor,
            success=True,
            conversion_type=conversion.conversion_type,
            defaulted=conversion.defaulted,
        )

    def validate_unit(self, unit):
        normalized = self.normalize_unit(unit)
        category, supported = self._lookup_category(normalized)
        standard_unit = self.standard_unit_for(category, normalized)
        conversion = self.to_standard_unit(1, unit)

        if not conversion.success:
            message = conversion.error
        elif conversion.defaulted:
            message = f'{unit} is not a recognized unit; it will be treated as {standard_unit}'
        else:
            message = f'{unit} -> {normalized} ({category.value}) converts to {standard_unit}'

        return UnitValidation(
            valid=conversion.success,
            supported=supported,
            category=category,
            standard_unit=standard_unit,
            normalized_unit=normalized,
            message=message,
        )

    def available_input_units(self):
        weight = list(self.tables.weight)
        volume = list(self.tables.volume)
        count = [STANDARD_COUNT_UNIT]
        special = list(self.tables.special)
        return {
            'weight': weight,
            'volume': volume,
            'count': count,
            'special': special,
            'all': weight + volume + count + special,
        }

    def describe_unit(self, unit):
        normalized = self.normalize_unit(unit)
        description = self.tables.descriptions.get(normalized)
        if description:
            return description
        category, _ = self._lookup_category(normalized)
        return f'{unit} ({category.value})'

    def unit_suggestions(self, partial, limit=10):
        """Known unit spellings containing the partial input."""
        term = (partial or '').lower().strip()
        suggestions = []
        for spelling in self.tables.normalization:
            if term not in spelling:
                continue
            normalized = self.normalize_unit(spelling)
            category, _ = self._lookup_category(normalized)
            suggestions.append({
                'unit': spelling,
                'normalized_unit': normalized,
                'category': category.value,
                'standard_unit': self.standard_unit_for(category, normalized),
                'description': self.describe_unit(spelling),
            })
            if len(suggestions) >= limit:
                break
        return suggestions


default_normalizer = UnitNormalizer()


def normalize_unit(unit):
    return default_normalizer.normalize_unit(unit)


def classify_unit(unit):
    return default_normalizer.classify_unit(unit)


def standard_unit_for(category, unit=None):
    return default_normalizer.standard_unit_for(category, unit)


def to_standard_unit(quantity, from_unit, ingredient_name=''):
    return default_normalizer.to_standard_unit(quantity, from_unit, ingredient_name)


def standardized_unit_cost(recipe_quantity, recipe_unit, standard_unit_price, ingredient_name=''):
    return default_normalizer.standardized_unit_cost(recipe_quantity, recipe_unit, standard_unit_price, ingredient_name)


def standardize_invoice_line(name, total_cost, quantity, unit):
    return default_normalizer.standardize_invoice_line(name, total_cost, quantity, unit)


def validate_unit(unit):
    return default_normalizer.validate_unit(unit)


def available_input_units():
    return default_normalizer.available_input_units()


def describe_unit(unit):
    return default_normalizer.describe_unit(unit)


def unit_suggestions(partial, limit=10):
    return default_normalizer.unit_suggestions(partial, limit)
