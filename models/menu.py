"""
Menu Models

Contains the MenuItem, Component and ComponentIngredient models.

Component.cost and MenuItem.cost are caches. They can be rebuilt at any
time from the component lines and are never a source of truth.
"""

from .base import db, utcnow


class MenuItem(db.Model):
    """Dish sold by a restaurant, made of one or more components."""
    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey('restaurant.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Float, default=0.0, nullable=False)
    cost = db.Column(db.Float, default=0.0, nullable=False)  # cached rollup
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    components = db.relationship('Component', back_populates='menu_item', lazy=True,
                                 cascade='all, delete-orphan', order_by='Component.name')
    cost_history = db.relationship('MenuItemCostHistory', backref='menu_item', lazy=True,
                                   cascade='all, delete-orphan', order_by='MenuItemCostHistory.id')


class Component(db.Model):
    """Named part of a menu item (e.g. 'patty', 'dressing') with its own recipe lines."""
    __tablename__ = 'menu_item_component'

    id = db.Column(db.Integer, primary_key=True)
    menu_item_id = db.Column(db.Integer, db.ForeignKey('menu_item.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    cost = db.Column(db.Float, default=0.0, nullable=False)  # cached rollup

    menu_item = db.relationship('MenuItem', back_populates='components')
    lines = db.relationship('ComponentIngredient', back_populates='component', lazy=True,
                            cascade='all, delete-orphan', order_by='ComponentIngredient.id')


class ComponentIngredient(db.Model):
    """
    Recipe line: a quantity of an ingredient in the recipe's own unit.

    The unit may differ from the ingredient's standard unit; it is converted
    when costs are computed, not when the line is stored.
    """
    id = db.Column(db.Integer, primary_key=True)
    component_id = db.Column(db.Integer, db.ForeignKey('menu_item_component.id', ondelete='CASCADE'),
                             nullable=False, index=True)
    # SET NULL so a deleted ingredient leaves a detectable broken line
    ingredient_id = db.Column(db.Integer, db.ForeignKey('ingredient.id', ondelete='SET NULL'),
                              nullable=True, index=True)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False)

    component = db.relationship('Component', back_populates='lines')
    ingredient = db.relationship('Ingredient')
