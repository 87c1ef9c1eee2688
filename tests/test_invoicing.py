"""
Tests for invoice ingestion, price updates and cost cache maintenance.
"""

import gc
import threading

import pytest
from flask import Flask

from conftest import add_ingredient, add_invoice, add_menu_item
from constants import COST_CHANGE_REASONS
from models import db, Restaurant, Ingredient, IngredientSynonym, MenuItem, MenuItemCostHistory, Invoice
from services.invoicing import InvoiceValidationError, parse_invoice_lines, save_invoice, standardize_and_match
from services.matching import find_ingredient_match
from services.recompute import (
    RestaurantLocks,
    apply_price_update,
    check_cost_caches,
    recompute_menu_item,
    repair_cost_caches,
)


def beef_line(amount=150.00, quantity=50, unit='lbs', name='Ground Beef'):
    return {'item_name': name, 'quantity': quantity, 'unit': unit, 'amount': amount}


def test_parse_invoice_lines():
    lines = parse_invoice_lines([
        {'item_name': 'Ground Beef', 'quantity': '1 1/2', 'unit': 'LBS', 'amount': '$3.75'},
    ])
    assert lines[0].quantity == 1.5
    assert lines[0].unit == 'lbs'
    assert lines[0].amount == 3.75


@pytest.mark.parametrize('raw, message', [
    ({'item_name': '', 'quantity': 1, 'unit': 'lb', 'amount': 1}, 'name is required'),
    ({'item_name': 'Beef', 'quantity': 0, 'unit': 'lb', 'amount': 1}, 'positive number'),
    ({'item_name': 'Beef', 'quantity': 'lots', 'unit': 'lb', 'amount': 1}, 'positive number'),
    ({'item_name': 'Beef', 'quantity': 1, 'unit': 'lb', 'amount': -5}, 'zero or more'),
    ({'item_name': 'Beef', 'quantity': 1, 'unit': '', 'amount': 1}, 'unit for Beef is required'),
])
def test_parse_invoice_lines_rejects_bad_lines(raw, message):
    with pytest.raises(InvoiceValidationError) as excinfo:
        parse_invoice_lines([beef_line(), raw])
    assert excinfo.value.line_number == 2
    assert str(excinfo.value).startswith('Line 2:')
    assert message in str(excinfo.value)


def test_parse_invoice_lines_requires_items():
    with pytest.raises(InvoiceValidationError):
        parse_invoice_lines([])


def test_standardize_and_match(burger):
    standardized, ingredient, match_type = standardize_and_match(
        burger.restaurant_id, 'Ground Beef', 125.00, 50, 'lbs')
    assert standardized.standard_quantity == 800
    assert standardized.standard_unit_cost == 0.15625
    assert ingredient.name == 'Ground Beef'
    assert match_type == 'exact'


def test_save_invoice_updates_prices_and_history(burger):
    invoice = add_invoice(burger.restaurant)

    outcome = save_invoice(invoice, [beef_line(amount=150.00)])

    assert invoice.status == 'processed'
    assert invoice.processed_at is not None
    assert len(invoice.items) == 1
    item = invoice.items[0]
    assert item.standard_unit == 'oz'
    assert item.standard_quantity == 800
    assert item.standard_unit_cost == 0.1875
    assert item.unit_cost == 3.0
    assert not item.needs_review

    beef = Ingredient.query.filter_by(name='Ground Beef').one()
    assert beef.last_price == 0.1875
    assert beef.last_ordered_at is not None

    menu_item = db.session.get(MenuItem, burger.id)
    assert menu_item.cost == pytest.approx(1.95)
    patty = [c for c in menu_item.components if c.name == 'Patty'][0]
    assert patty.cost == 0.75

    history = MenuItemCostHistory.query.filter_by(menu_item_id=burger.id).all()
    assert len(history) == 1
    assert history[0].old_cost == pytest.approx(1.825)
    assert history[0].new_cost == pytest.approx(1.95)
    assert history[0].reason == COST_CHANGE_REASONS['invoice']
    assert len(outcome.history) == 1


def test_save_invoice_creates_missing_ingredient(restaurant):
    invoice = add_invoice(restaurant)
    save_invoice(invoice, [{'item_name': 'Flour', 'quantity': 50, 'unit': 'lb', 'amount': 25.00}])

    flour = Ingredient.query.filter_by(restaurant_id=restaurant.id, name='Flour').one()
    assert flour.unit == 'oz'
    assert flour.last_price == 0.03125


def test_save_invoice_flags_unknown_units(restaurant):
    invoice = add_invoice(restaurant)
    outcome = save_invoice(invoice, [{'item_name': 'Basil', 'quantity': 2, 'unit': 'bunch', 'amount': 4.00}])

    assert len(outcome.needs_review) == 1
    basil = Ingredient.query.filter_by(name='Basil').one()
    assert basil.last_price == 2.0


def test_save_invoice_validation_leaves_data_untouched(burger):
    invoice = add_invoice(burger.restaurant)
    with pytest.raises(InvoiceValidationError):
        save_invoice(invoice, [beef_line(amount=150.00), beef_line(quantity=0)])

    assert invoice.status == 'pending'
    assert invoice.items == []
    assert Ingredient.query.filter_by(name='Ground Beef').one().last_price == 0.15625
    assert MenuItemCostHistory.query.count() == 0


def test_save_invoice_remembers_supplier_names(burger):
    beef = Ingredient.query.filter_by(name='Ground Beef').one()
    invoice = add_invoice(burger.restaurant)
    save_invoice(invoice, [{'item_name': 'BEEF GRND 80/20 10#', 'quantity': 10, 'unit': 'lb',
                            'amount': 30.00, 'ingredient_id': beef.id}])

    assert IngredientSynonym.query.filter_by(ingredient_id=beef.id).count() == 1
    ingredient, match_type = find_ingredient_match('beef grnd 80/20 10#', burger.restaurant_id)
    assert ingredient.id == beef.id
    assert match_type == 'synonym'


def test_resaving_invoice_replaces_items(burger):
    invoice = add_invoice(burger.restaurant)
    save_invoice(invoice, [beef_line(amount=150.00)])
    save_invoice(invoice, [beef_line(amount=125.00), {'item_name': 'Onion', 'quantity': 10,
                                                      'unit': 'lb', 'amount': 8.00}])

    invoice = db.session.get(Invoice, invoice.id)
    assert [item.item_name for item in invoice.items] == ['Ground Beef', 'Onion']
    history = MenuItemCostHistory.query.order_by(MenuItemCostHistory.id).all()
    assert [round(h.new_cost, 4) for h in history] == [1.95, 1.825]
    assert history[1].old_cost == history[0].new_cost


def test_manual_price_update(burger):
    beef = Ingredient.query.filter_by(name='Ground Beef').one()
    outcome = apply_price_update(beef, 0.25)

    assert outcome.old_price == 0.15625
    assert outcome.new_price == 0.25
    assert len(outcome.report.changed) == 1
    record = MenuItemCostHistory.query.one()
    assert record.reason == COST_CHANGE_REASONS['manual_price']
    assert record.new_cost == pytest.approx(2.2)


def test_tiny_price_change_writes_no_history(burger):
    beef = Ingredient.query.filter_by(name='Ground Beef').one()
    outcome = apply_price_update(beef, 0.157)

    assert outcome.report.changed == []
    assert MenuItemCostHistory.query.count() == 0
    # The cache still follows the new price
    assert db.session.get(MenuItem, burger.id).cost == pytest.approx(1.828)


def test_negative_price_rejected(burger):
    beef = Ingredient.query.filter_by(name='Ground Beef').one()
    with pytest.raises(ValueError):
        apply_price_update(beef, -1)


def test_broken_menu_item_does_not_block_siblings(restaurant):
    beef = add_ingredient(restaurant, 'Ground Beef', 0.15625)
    bun = add_ingredient(restaurant, 'Burger Bun', 0.50, 'each')
    broken = add_menu_item(restaurant, 'Slider', 6.00, {'Patty': [(beef, 2, 'oz'), (bun, 1, 'each')]})
    burger = add_menu_item(restaurant, 'Burger', 8.00, {'Patty': [(beef, 4, 'oz')]})

    # Simulate a recipe line whose ingredient reference was lost
    broken.components[0].lines[1].ingredient = None
    db.session.commit()

    outcome = apply_price_update(beef, 0.25)

    assert [f.menu_item_name for f in outcome.report.failures] == ['Slider']
    assert db.session.get(MenuItem, burger.id).cost == 1.0
    assert [h.menu_item_id for h in MenuItemCostHistory.query.all()] == [burger.id]


def test_recompute_menu_item_after_recipe_edit(burger):
    patty = [c for c in burger.components if c.name == 'Patty'][0]
    patty.lines[0].quantity = 8
    db.session.commit()

    report = recompute_menu_item(burger)

    assert len(report.changed) == 1
    menu_item = db.session.get(MenuItem, burger.id)
    assert menu_item.cost == pytest.approx(2.45)
    record = MenuItemCostHistory.query.one()
    assert record.reason == COST_CHANGE_REASONS['recipe_edit']
    assert record.old_cost == pytest.approx(1.825)


def test_check_and_repair_cost_caches(burger):
    assert check_cost_caches(burger.restaurant_id) == []

    burger.cost = 5.00
    db.session.commit()

    discrepancies = check_cost_caches(burger.restaurant_id)
    assert [(d.kind, d.name) for d in discrepancies] == [('menu_item', 'Burger')]

    report = repair_cost_caches(burger.restaurant_id)
    assert len(report.changed) == 1
    assert check_cost_caches(burger.restaurant_id) == []
    assert db.session.get(MenuItem, burger.id).cost == pytest.approx(1.825)
    assert MenuItemCostHistory.query.one().reason == COST_CHANGE_REASONS['repair']


def test_restaurant_locks_are_per_restaurant():
    locks = RestaurantLocks()
    assert locks.lock_for(1) is locks.lock_for(1)
    assert locks.lock_for(1) is not locks.lock_for(2)


def test_restaurant_locks_are_released_when_unused():
    locks = RestaurantLocks()
    lock = locks.lock_for(7)
    with lock:
        assert locks.lock_for(7) is lock
        assert len(locks) == 1

    del lock
    gc.collect()
    assert len(locks) == 0


def test_concurrent_invoice_saves_keep_history_chained(tmp_path):
    """Two invoices for one restaurant saved at the same time never interleave."""
    concurrent_app = Flask('concurrent_invoices')
    concurrent_app.config.update(
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'costs.db'}",
        SQLALCHEMY_ENGINE_OPTIONS={'connect_args': {'check_same_thread': False, 'timeout': 30}},
    )
    db.init_app(concurrent_app)

    with concurrent_app.app_context():
        db.create_all()
        restaurant = Restaurant(name='Busy Bistro')
        db.session.add(restaurant)
        db.session.commit()
        beef = add_ingredient(restaurant, 'Ground Beef', 0.15625)
        burger = add_menu_item(restaurant, 'Burger', 8.00, {'Patty': [(beef, 4, 'oz')]})
        invoice_ids = [add_invoice(restaurant, number=f'INV-{n}').id for n in range(4)]
        burger_id = burger.id

    amounts = [150.00, 175.00, 200.00, 225.00]
    barrier = threading.Barrier(len(invoice_ids))
    errors = []

    def save(invoice_id, amount):
        with concurrent_app.app_context():
            try:
                invoice = db.session.get(Invoice, invoice_id)
                barrier.wait()
                save_invoice(invoice, [beef_line(amount=amount)])
            except Exception as e:
                errors.append(e)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=save, args=args) for args in zip(invoice_ids, amounts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []

    with concurrent_app.app_context():
        history = (MenuItemCostHistory.query
                   .filter_by(menu_item_id=burger_id)
                   .order_by(MenuItemCostHistory.id)
                   .all())
        assert len(history) == len(amounts)
        assert history[0].old_cost == 0.625
        for previous, current in zip(history, history[1:]):
            assert current.old_cost == previous.new_cost
        assert db.session.get(MenuItem, burger_id).cost == history[-1].new_cost
        assert Invoice.query.filter_by(status='processed').count() == len(amounts)
        db.session.remove()
        db.engine.dispose()
