"""
Ingredient Models

Contains the Ingredient and IngredientSynonym models for the canonical
ingredient catalog and supplier name mappings.
"""

from .base import db, utcnow


class Ingredient(db.Model):
    """
    Canonical ingredient with its latest standardized price.

    unit is always a standard unit (oz, fl oz, each) once the ingredient has
    been priced from an invoice, and last_price is the price of ONE unit.
    The two must always change together.
    """
    __table_args__ = (db.UniqueConstraint('restaurant_id', 'name', name='uq_ingredient_restaurant_name'),)

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey('restaurant.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False, index=True)

    # Standard unit the price is expressed in
    unit = db.Column(db.String(20), default='oz', nullable=False)

    # Price per ONE unit
    last_price = db.Column(db.Float, default=0.0, nullable=False)

    last_ordered_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def has_price(self):
        return bool(self.last_price and self.last_price > 0)


class IngredientSynonym(db.Model):
    """Maps a supplier's description to a canonical ingredient (e.g., 'CHKN BRST' -> 'Chicken Breast')"""
    __table_args__ = (db.UniqueConstraint('restaurant_id', 'synonym', name='uq_synonym_restaurant'),)

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey('restaurant.id', ondelete='CASCADE'), nullable=False, index=True)
    synonym = db.Column(db.String(200), nullable=False, index=True)
    ingredient_id = db.Column(db.Integer, db.ForeignKey('ingredient.id', ondelete='CASCADE'), nullable=False)
    ingredient = db.relationship('Ingredient', backref=db.backref('synonyms', cascade='all, delete-orphan'))
