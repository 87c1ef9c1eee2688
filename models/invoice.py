"""
Invoice Models

Contains the Invoice and InvoiceItem models. Invoice items keep both the
supplier's native figures and the standardized ones as an audit trail.
"""

from .base import db, utcnow


class Invoice(db.Model):
    """Supplier invoice awaiting or after processing."""
    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, db.ForeignKey('restaurant.id', ondelete='CASCADE'), nullable=False, index=True)
    number = db.Column(db.String(50), default='')
    supplier = db.Column(db.String(200), default='')
    date = db.Column(db.DateTime(timezone=True), nullable=True)
    amount = db.Column(db.Float, default=0.0)
    status = db.Column(db.String(20), default='pending', index=True)  # 'pending' or 'processed'
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    items = db.relationship('InvoiceItem', backref='invoice', lazy=True,
                            cascade='all, delete-orphan', order_by='InvoiceItem.id')


class InvoiceItem(db.Model):
    """One invoice line, e.g. '50 lbs Flour $125.00'."""
    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey('invoice.id', ondelete='CASCADE'), nullable=False, index=True)
    ingredient_id = db.Column(db.Integer, db.ForeignKey('ingredient.id', ondelete='SET NULL'), nullable=True, index=True)
    ingredient = db.relationship('Ingredient')

    # As printed on the invoice
    item_name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    unit_cost = db.Column(db.Float, default=0.0)  # amount / quantity in the native unit

    # Standardized
    standard_quantity = db.Column(db.Float, nullable=True)
    standard_unit = db.Column(db.String(20), nullable=True)
    standard_unit_cost = db.Column(db.Float, nullable=True)
    conversion_factor = db.Column(db.Float, nullable=True)
    category = db.Column(db.String(20), nullable=True)

    # Priced with a defaulted unit or a failed conversion
    needs_review = db.Column(db.Boolean, default=False)
