"""
Cost History Model

Contains the MenuItemCostHistory model, written whenever a recompute moves
a menu item's cost by more than a cent.
"""

from .base import db, utcnow


class MenuItemCostHistory(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    menu_item_id = db.Column(db.Integer, db.ForeignKey('menu_item.id', ondelete='CASCADE'), nullable=False, index=True)
    old_cost = db.Column(db.Float, nullable=False)
    new_cost = db.Column(db.Float, nullable=False)
    reason = db.Column(db.String(200), default='')
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    @property
    def delta(self):
        return self.new_cost - self.old_cost
