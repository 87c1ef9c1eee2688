"""
Validation Constants

Contains whitelist values and bounds for validating user input
and invoice data before it reaches the costing engine.
"""

# Valid values for the unknown-unit policy setting
VALID_UNKNOWN_UNIT_POLICIES = {'default_to_weight', 'reject'}

# Valid values for the conversion-failure policy setting
VALID_CONVERSION_FAILURE_POLICIES = {'naive_multiplication', 'zero'}

# Reasons recorded on cost history rows
COST_CHANGE_REASONS = {
    'invoice': 'Ingredient price updated from invoice',
    'manual_price': 'Ingredient price edited manually',
    'recipe_edit': 'Recipe lines edited',
    'menu_item_created': 'Menu item created',
    'repair': 'Cost cache repaired',
}

# Bounds for numeric invoice fields
MAX_INVOICE_QUANTITY = 1_000_000
MAX_INVOICE_AMOUNT = 1_000_000

# Bounds for menu items and recipe lines
MAX_MENU_PRICE = 10_000
MAX_RECIPE_QUANTITY = 10_000

# Maximum field lengths for security
MAX_LENGTHS = {
    'ingredient_name': 200,
    'menu_item_name': 200,
    'component_name': 100,
    'unit': 20,
    'supplier': 200,
    'invoice_number': 50,
}
