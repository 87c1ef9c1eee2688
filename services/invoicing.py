"""
Invoice Ingestion Service

Turns supplier invoice lines into standardized ingredient prices:
validate, standardize, match to the catalog, store the line with both its
native and standardized figures, then apply the price update so every
dependent menu item is recomputed.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from constants import COST_CHANGE_REASONS, MAX_INVOICE_AMOUNT, MAX_INVOICE_QUANTITY, MAX_LENGTHS
from models import db, Ingredient, IngredientSynonym, InvoiceItem
from models.base import utcnow
from utils import sanitize_name, sanitize_unit
from .matching import find_ingredient_match, normalize_ingredient_name
from .parsing import parse_money, parse_quantity
from .recompute import apply_price_update_unlocked, engine_settings, serialized_update

logger = logging.getLogger(__name__)


class InvoiceValidationError(ValueError):
    """Raised when an invoice line is incomplete or invalid. Nothing is saved."""

    def __init__(self, line_number, message):
        self.line_number = line_number
        if line_number:
            message = f'Line {line_number}: {message}'
        super().__init__(message)


@dataclass
class InvoiceLine:
    item_name: str
    quantity: float
    unit: str
    amount: float
    ingredient_id: Optional[int] = None


@dataclass
class InvoiceOutcome:
    invoice: object
    items: List[InvoiceItem] = field(default_factory=list)
    updates: list = field(default_factory=list)

    @property
    def needs_review(self):
        return [item for item in self.items if item.needs_review]

    @property
    def history(self):
        return [record for update in self.updates for record in update.history]


def parse_invoice_lines(raw_lines, normalizer=None):
    """
    Validate raw invoice lines (dicts from a form or JSON body).

    Every line must have a name, a positive quantity, a non-negative amount
    and a unit the normalizer accepts. Unknown units pass under the default
    policy and are flagged for review later.
    """
    normalizer = normalizer or engine_settings().normalizer
    if not raw_lines:
        raise InvoiceValidationError(0, 'Invoice has no items')

    lines = []
    for number, raw in enumerate(raw_lines, 1):
        name = sanitize_name(raw.get('item_name'), max_length=MAX_LENGTHS['ingredient_name'])
        if not name:
            raise InvoiceValidationError(number, 'item name is required')

        quantity = parse_quantity(raw.get('quantity'))
        if quantity is None:
            raise InvoiceValidationError(number, f'quantity for {name} must be a positive number')
        if quantity > MAX_INVOICE_QUANTITY:
            raise InvoiceValidationError(number, f'quantity for {name} is too large')

        amount = parse_money(raw.get('amount'))
        if amount is None or amount < 0:
            raise InvoiceValidationError(number, f'amount for {name} must be zero or more')
        if amount > MAX_INVOICE_AMOUNT:
            raise InvoiceValidationError(number, f'amount for {name} is too large')

        unit = sanitize_unit(raw.get('unit'), max_length=MAX_LENGTHS['unit'])
        if not unit:
            raise InvoiceValidationError(number, f'unit for {name} is required')
        validation = normalizer.validate_unit(unit)
        if not validation.valid:
            raise InvoiceValidationError(number, f'invalid unit "{unit}" for {name}. {validation.message}')

        ingredient_id = raw.get('ingredient_id')
        try:
            ingredient_id = int(ingredient_id) if ingredient_id not in (None, '') else None
        except (TypeError, ValueError):
            raise InvoiceValidationError(number, f'ingredient id for {name} is not a number')

        lines.append(InvoiceLine(item_name=name, quantity=quantity, unit=unit,
                                 amount=amount, ingredient_id=ingredient_id))
    return lines


def standardize_and_match(restaurant_id, item_name, total_cost, quantity, unit, normalizer=None):
    """Standardize one invoice line and look up its catalog ingredient."""
    normalizer = normalizer or engine_settings().normalizer
    standardized = normalizer.standardize_invoice_line(item_name, total_cost, quantity, unit)
    ingredient, match_type = find_ingredient_match(item_name, restaurant_id)
    return standardized, ingredient, match_type


def _resolve_ingredient(restaurant_id, line, standardized):
    """Ingredient for a line: the one chosen on the invoice, a catalog match, or a new one."""
    if line.ingredient_id is not None:
        ingredient = db.session.get(Ingredient, line.ingredient_id)
        if ingredient is None or ingredient.restaurant_id != restaurant_id:
            raise InvoiceValidationError(0, f'Ingredient {line.ingredient_id} not found for {line.item_name}')
        # Remember the supplier's wording for next time
        if line.item_name.lower() != ingredient.name.lower():
            known = IngredientSynonym.query.filter(
                IngredientSynonym.restaurant_id == restaurant_id,
                db.func.lower(IngredientSynonym.synonym) == line.item_name.lower(),
            ).first()
            if known is None:
                db.session.add(IngredientSynonym(restaurant_id=restaurant_id, synonym=line.item_name,
                                                 ingredient=ingredient))
        return ingredient

    ingredient, match_type = find_ingredient_match(line.item_name, restaurant_id)
    if ingredient is not None:
        logger.debug("Matched '%s' to ingredient '%s' (%s)", line.item_name, ingredient.name, match_type)
        return ingredient

    name = normalize_ingredient_name(line.item_name) or line.item_name
    ingredient = Ingredient(restaurant_id=restaurant_id, name=name,
                            unit=standardized.standard_unit, last_price=0.0)
    db.session.add(ingredient)
    db.session.flush()
    logger.info("Created ingredient '%s' from invoice line '%s'", name, line.item_name)
    return ingredient


def save_invoice(invoice, raw_lines, details=None):
    """
    Replace an invoice's items and apply the resulting price updates.

    Validation happens before anything is written. The item rewrite, every
    price update and every dependent recompute then run as one serialized
    transaction for the invoice's restaurant.
    """
    settings = engine_settings()
    lines = parse_invoice_lines(raw_lines, settings.normalizer)
    outcome = InvoiceOutcome(invoice=invoice)
    restaurant_id = invoice.restaurant_id

    with serialized_update(restaurant_id):
        if details:
            for key in ('number', 'supplier', 'date', 'amount'):
                if details.get(key) is not None:
                    setattr(invoice, key, details[key])

        # Orphaned items are deleted on flush
        invoice.items.clear()

        for line in lines:
            standardized = settings.normalizer.standardize_invoice_line(
                line.item_name, line.amount, line.quantity, line.unit)
            ingredient = _resolve_ingredient(restaurant_id, line, standardized)

            item = InvoiceItem(
                ingredient=ingredient,
                item_name=line.item_name,
                quantity=line.quantity,
                unit=line.unit,
                amount=line.amount,
                unit_cost=standardized.original_unit_cost,
                standard_quantity=standardized.standard_quantity,
                standard_unit=standardized.standard_unit,
                standard_unit_cost=standardized.standard_unit_cost,
                conversion_factor=standardized.factor,
                category=standardized.category.value,
                needs_review=standardized.defaulted or not standardized.success,
            )
            invoice.items.append(item)
            outcome.items.append(item)

            if standardized.standard_unit_cost > 0:
                outcome.updates.append(apply_price_update_unlocked(
                    ingredient.id,
                    standardized.standard_unit_cost,
                    COST_CHANGE_REASONS['invoice'],
                    ordered_at=invoice.date or utcnow(),
                    unit=standardized.standard_unit,
                    settings=settings,
                ))

        invoice.status = 'processed'
        invoice.processed_at = utcnow()

    logger.info('Invoice %s processed: %d items, %d price updates, %d cost changes',
                invoice.id, len(outcome.items), len(outcome.updates), len(outcome.history))
    return outcome
