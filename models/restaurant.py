"""
Restaurant Model

The tenant that owns ingredients, invoices and menu items. Price updates
are serialized per restaurant.
"""

from .base import db, utcnow


class Restaurant(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    ingredients = db.relationship('Ingredient', backref='restaurant', lazy=True, cascade='all, delete-orphan')
    menu_items = db.relationship('MenuItem', backref='restaurant', lazy=True, cascade='all, delete-orphan')
    invoices = db.relationship('Invoice', backref='restaurant', lazy=True, cascade='all, delete-orphan')
