"""
Shared fixtures for the menu costing tests.

The app is imported with the testing config (in-memory SQLite). Tables are
created before each test and dropped after it.
"""

import os

os.environ['FLASK_ENV'] = 'testing'

import pytest

from app import app as flask_app
from models import db, Restaurant, Ingredient, MenuItem, Component, ComponentIngredient, Invoice
from services.cost import component_cost


@pytest.fixture
def app():
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def restaurant(app):
    restaurant = Restaurant(name='Test Bistro')
    db.session.add(restaurant)
    db.session.commit()
    return restaurant


def add_ingredient(restaurant, name, price, unit='oz'):
    ingredient = Ingredient(restaurant_id=restaurant.id, name=name, unit=unit, last_price=price)
    db.session.add(ingredient)
    db.session.commit()
    return ingredient


def add_menu_item(restaurant, name, price, components):
    """
    Create a menu item with consistent cost caches.

    components maps a component name to [(ingredient, quantity, unit), ...].
    """
    menu_item = MenuItem(restaurant_id=restaurant.id, name=name, price=price, cost=0.0)
    total = 0.0
    for component_name, lines in components.items():
        component = Component(name=component_name, cost=0.0)
        for ingredient, quantity, unit in lines:
            component.lines.append(ComponentIngredient(ingredient=ingredient, quantity=quantity, unit=unit))
        component.cost = component_cost(component.lines)
        total += component.cost
        menu_item.components.append(component)
    menu_item.cost = total
    db.session.add(menu_item)
    db.session.commit()
    return menu_item


def add_invoice(restaurant, number='INV-1', supplier='Sysco'):
    invoice = Invoice(restaurant_id=restaurant.id, number=number, supplier=supplier)
    db.session.add(invoice)
    db.session.commit()
    return invoice


@pytest.fixture
def burger(restaurant):
    """Burger priced at $8.00: patty (4 oz beef) and sauce (2 tbsp mayo)."""
    beef = add_ingredient(restaurant, 'Ground Beef', 0.15625, 'oz')
    mayo = add_ingredient(restaurant, 'Mayonnaise', 1.20, 'fl oz')
    return add_menu_item(restaurant, 'Burger', 8.00, {
        'Patty': [(beef, 4, 'oz')],
        'Sauce': [(mayo, 2, 'tbsp')],
    })
