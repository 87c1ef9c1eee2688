"""
Tests for unit normalization and standardization.
"""

from types import MappingProxyType

import pytest

from constants import TO_STANDARD_WEIGHT, TO_STANDARD_VOLUME
from services.units import (
    DEFAULT_TABLES,
    UnitCategory,
    UnitNormalizer,
    UnitTables,
    UnknownUnitPolicy,
    available_input_units,
    classify_unit,
    describe_unit,
    normalize_unit,
    standard_unit_for,
    standardize_invoice_line,
    standardized_unit_cost,
    to_standard_unit,
    unit_suggestions,
    validate_unit,
)


def test_normalize_unit_spellings():
    assert normalize_unit('LBS') == 'lb'
    assert normalize_unit('Fl. Oz') == 'fl oz'
    assert normalize_unit('  fluid   ounces ') == 'fl oz'
    assert normalize_unit('EA') == 'each'
    assert normalize_unit('Cloves') == 'clove'
    assert normalize_unit('') == 'each'
    assert normalize_unit(None) == 'each'


def test_classify_unit():
    assert classify_unit('kg') is UnitCategory.WEIGHT
    assert classify_unit('cups') is UnitCategory.VOLUME
    assert classify_unit('pieces') is UnitCategory.COUNT
    assert classify_unit('clove') is UnitCategory.SPECIAL


@pytest.mark.parametrize('category', [UnitCategory.WEIGHT, UnitCategory.VOLUME, UnitCategory.COUNT])
def test_identity_conversion(category):
    result = to_standard_unit(7.25, standard_unit_for(category))
    assert result.quantity == 7.25
    assert result.factor == 1
    assert result.success
    assert result.category is category


def test_round_trip_uses_table_factor():
    for unit, factor in TO_STANDARD_WEIGHT.items():
        result = to_standard_unit(3.5, unit)
        assert result.unit == 'oz'
        assert abs(result.quantity - 3.5 * factor) < 1e-9
    for unit, factor in TO_STANDARD_VOLUME.items():
        result = to_standard_unit(3.5, unit)
        assert result.unit == 'fl oz'
        assert abs(result.quantity - 3.5 * factor) < 1e-9


def test_unknown_unit_falls_back_to_weight():
    assert classify_unit('gloop') is UnitCategory.WEIGHT

    result = to_standard_unit(5, 'gloop')
    assert result.success
    assert result.defaulted
    assert result.unit == 'oz'
    assert result.quantity == 5
    assert result.factor == 1
    assert result.conversion_type == 'default'


def test_dash_of_garlic_is_an_approximation():
    result = to_standard_unit(1, 'dash', 'Garlic')
    assert result.category is UnitCategory.WEIGHT
    assert result.unit == 'oz'
    assert result.factor == 1
    assert result.defaulted


def test_garlic_cloves_use_special_conversion():
    result = to_standard_unit(10, 'cloves', 'Garlic')
    assert result.success
    assert result.unit == 'oz'
    assert result.quantity == pytest.approx(1.0)


def test_reject_policy_reports_failure():
    normalizer = UnitNormalizer(unknown_unit_policy=UnknownUnitPolicy.REJECT)
    result = normalizer.to_standard_unit(5, 'gloop')
    assert not result.success
    assert 'gloop' in result.error
    assert result.quantity == 5

    assert normalizer.standardized_unit_cost(5, 'gloop', 2.0) == 0.0
    assert not normalizer.validate_unit('gloop').valid


def test_density_conversion_by_ingredient():
    result = to_standard_unit(2, 'tsp', 'Kosher Salt')
    assert result.conversion_type == 'density'
    assert result.unit == 'oz'
    assert result.quantity == pytest.approx(0.4)

    # Whole-word match only
    plain = to_standard_unit(2, 'tsp', 'Salted Butter')
    assert plain.conversion_type == 'standard'
    assert plain.unit == 'fl oz'


def test_standardize_invoice_line_fifty_pounds():
    line = standardize_invoice_line('Ground Beef', 125.00, 50, 'lbs')
    assert line.success
    assert line.standard_unit == 'oz'
    assert line.standard_quantity == 800
    assert line.standard_unit_cost == 0.15625
    assert line.original_unit_cost == 2.5
    assert line.category is UnitCategory.WEIGHT


def test_standardize_invoice_line_falls_back_to_native_unit():
    normalizer = UnitNormalizer(unknown_unit_policy=UnknownUnitPolicy.REJECT)
    line = normalizer.standardize_invoice_line('Mystery Box', 30.0, 3, 'crate')
    assert not line.success
    assert line.fallback
    assert line.standard_unit == 'crate'
    assert line.standard_unit_cost == 10.0


def test_standardized_unit_cost():
    assert standardized_unit_cost(4, 'oz', 0.15625) == 0.625
    assert standardized_unit_cost(1, 'lb', 0.15625) == 2.5


def test_injected_tables():
    tables = UnitTables(
        normalization=MappingProxyType({'stone': 'stone'}),
        categories=MappingProxyType({'stone': UnitCategory.WEIGHT}),
        weight=MappingProxyType({'stone': 224}),
        volume=MappingProxyType({}),
        special=MappingProxyType({}),
        density=MappingProxyType({}),
        descriptions=MappingProxyType({}),
    )
    normalizer = UnitNormalizer(tables=tables)
    result = normalizer.to_standard_unit(2, 'Stone')
    assert result.quantity == 448
    assert not result.defaulted

    # Default tables are untouched
    assert 'stone' not in DEFAULT_TABLES.weight
    assert to_standard_unit(2, 'stone').defaulted


def test_non_positive_factor_fails():
    tables = UnitTables(
        normalization=MappingProxyType({}),
        categories=MappingProxyType({'g': UnitCategory.WEIGHT}),
        weight=MappingProxyType({'g': 0}),
        volume=MappingProxyType({}),
        special=MappingProxyType({}),
        density=MappingProxyType({}),
        descriptions=MappingProxyType({}),
    )
    result = UnitNormalizer(tables=tables).to_standard_unit(10, 'g')
    assert not result.success
    assert result.error


def test_default_tables_are_read_only():
    with pytest.raises(TypeError):
        DEFAULT_TABLES.weight['lb'] = 1


def test_validate_unit():
    validation = validate_unit('Pounds')
    assert validation.valid
    assert validation.supported
    assert validation.normalized_unit == 'lb'
    assert validation.standard_unit == 'oz'

    unknown = validate_unit('gloop')
    assert unknown.valid
    assert not unknown.supported
    assert 'not a recognized unit' in unknown.message


def test_available_units_and_descriptions():
    units = available_input_units()
    assert 'lb' in units['weight']
    assert 'cup' in units['volume']
    assert units['count'] == ['each']
    assert 'clove' in units['special']
    assert describe_unit('lbs') == 'pounds (weight)'
    assert describe_unit('gloop') == 'gloop (weight)'


def test_unit_suggestions():
    suggestions = unit_suggestions('tab')
    assert {s['normalized_unit'] for s in suggestions} == {'tbsp'}
    assert all(s['standard_unit'] == 'fl oz' for s in suggestions)
    assert len(unit_suggestions('', limit=3)) == 3
