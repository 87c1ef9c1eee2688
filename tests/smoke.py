"""
Smoke tests for the menu costing app.
Run with: python tests/smoke.py
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
os.environ.setdefault('FLASK_ENV', 'testing')

def test_app_imports():
    """Verify app can be imported without errors."""
    from app import app, db
    assert app is not None
    assert db is not None
    print("OK: App imports successfully")

def test_models_import():
    """Verify models can be imported."""
    from models import Restaurant, Ingredient, MenuItem, Component, ComponentIngredient, MenuItemCostHistory
    assert Ingredient is not None
    assert Component.__tablename__ == 'menu_item_component'
    print("OK: Models import successfully")

def test_services_import():
    """Verify services and sanitizers can be imported."""
    from services import save_invoice, apply_price_update, to_standard_unit
    from utils import sanitize_name, sanitize_unit, sanitize_text
    assert callable(save_invoice)
    assert callable(apply_price_update)
    assert callable(sanitize_text)
    print("OK: Services import successfully")

def test_constants_import():
    """Verify constants can be imported."""
    from constants import UNIT_NORMALIZATION, TO_STANDARD_WEIGHT, TO_STANDARD_VOLUME, COST_CHANGE_REASONS
    assert UNIT_NORMALIZATION['lbs'] == 'lb'
    assert 'cup' in TO_STANDARD_VOLUME
    assert 'invoice' in COST_CHANGE_REASONS
    print("OK: Constants import successfully")

def test_conversion_constants_unchanged():
    """Verify critical conversion constants have expected values."""
    from constants import TO_STANDARD_WEIGHT, TO_STANDARD_VOLUME

    # These values must not change
    assert TO_STANDARD_WEIGHT['oz'] == 1
    assert TO_STANDARD_WEIGHT['lb'] == 16
    assert TO_STANDARD_WEIGHT['kg'] == 35.274
    assert TO_STANDARD_VOLUME['fl oz'] == 1
    assert TO_STANDARD_VOLUME['cup'] == 8
    assert TO_STANDARD_VOLUME['gal'] == 128
    print("OK: Conversion constants unchanged")

def test_app_runs():
    """Verify app can create test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        response = client.get('/units')
        assert response.status_code == 200
        print("OK: App serves unit list")

if __name__ == '__main__':
    print("Running smoke tests...\n")

    tests = [
        test_app_imports,
        test_models_import,
        test_services_import,
        test_constants_import,
        test_conversion_constants_unchanged,
        test_app_runs,
    ]

    failed = 0
    for test in tests:
        try:
            test()
        except Exception as e:
            print(f"FAIL: {test.__name__} - {e}")
            failed += 1

    print(f"\n{'='*40}")
    if failed:
        print(f"FAILED: {failed}/{len(tests)} tests")
        sys.exit(1)
    else:
        print(f"PASSED: {len(tests)}/{len(tests)} tests")
        sys.exit(0)
