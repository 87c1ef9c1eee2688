"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db

from .restaurant import Restaurant
from .ingredient import Ingredient, IngredientSynonym
from .menu import MenuItem, Component, ComponentIngredient
from .invoice import Invoice, InvoiceItem
from .history import MenuItemCostHistory

__all__ = [
    'db',
    'Restaurant',
    'Ingredient',
    'IngredientSynonym',
    'MenuItem',
    'Component',
    'ComponentIngredient',
    'Invoice',
    'InvoiceItem',
    'MenuItemCostHistory',
]
