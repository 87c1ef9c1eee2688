"""
Services Package

Business logic modules for the menu costing application.
"""

from .parsing import (
    float_to_fraction,
    normalize_fractions,
    parse_quantity,
    parse_money,
    format_money,
    format_percent,
    round_half_up,
    safe_float,
)

from .units import (
    UnitCategory,
    UnknownUnitPolicy,
    UnitTables,
    UnitNormalizer,
    DEFAULT_TABLES,
    normalize_unit,
    classify_unit,
    standard_unit_for,
    to_standard_unit,
    standardized_unit_cost,
    standardize_invoice_line,
    validate_unit,
    available_input_units,
    describe_unit,
    unit_suggestions,
)

from .cost import (
    COST_CHANGE_EPSILON,
    ConversionFailurePolicy,
    CostingError,
    MissingIngredientError,
    RecomputeState,
    RecomputeCycle,
    line_cost,
    component_cost,
    component_breakdown,
    menu_item_cost,
    margin,
    affected_menu_items,
    recompute_and_diff,
    recompute_dependents,
    find_cost_discrepancies,
)

from .matching import (
    normalize_ingredient_name,
    find_ingredient_match,
    get_ingredient_suggestions,
)

from .recompute import (
    engine_settings,
    serialized_update,
    apply_price_update,
    recompute_menu_item,
    check_cost_caches,
    repair_cost_caches,
)

from .invoicing import (
    InvoiceValidationError,
    parse_invoice_lines,
    standardize_and_match,
    save_invoice,
)

from .menu import (
    MenuItemValidationError,
    parse_menu_item,
    save_menu_item,
    delete_menu_item,
)

from .reporting import (
    menu_item_breakdown,
    cost_history,
    restaurant_summary,
)

__all__ = [
    # Parsing
    'float_to_fraction',
    'normalize_fractions',
    'parse_quantity',
    'parse_money',
    'format_money',
    'format_percent',
    'round_half_up',
    'safe_float',
    # Units
    'UnitCategory',
    'UnknownUnitPolicy',
    'UnitTables',
    'UnitNormalizer',
    'DEFAULT_TABLES',
    'normalize_unit',
    'classify_unit',
    'standard_unit_for',
    'to_standard_unit',
    'standardized_unit_cost',
    'standardize_invoice_line',
    'validate_unit',
    'available_input_units',
    'describe_unit',
    'unit_suggestions',
    # Cost
    'COST_CHANGE_EPSILON',
    'ConversionFailurePolicy',
    'CostingError',
    'MissingIngredientError',
    'RecomputeState',
    'RecomputeCycle',
    'line_cost',
    'component_cost',
    'component_breakdown',
    'menu_item_cost',
    'margin',
    'affected_menu_items',
    'recompute_and_diff',
    'recompute_dependents',
    'find_cost_discrepancies',
    # Matching
    'normalize_ingredient_name',
    'find_ingredient_match',
    'get_ingredient_suggestions',
    # Price updates
    'engine_settings',
    'serialized_update',
    'apply_price_update',
    'recompute_menu_item',
    'check_cost_caches',
    'repair_cost_caches',
    # Invoices
    'InvoiceValidationError',
    'parse_invoice_lines',
    'standardize_and_match',
    'save_invoice',
    # Menu items
    'MenuItemValidationError',
    'parse_menu_item',
    'save_menu_item',
    'delete_menu_item',
    # Reporting
    'menu_item_breakdown',
    'cost_history',
    'restaurant_summary',
]
