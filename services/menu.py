"""
Menu Item Editing Service

Creates and edits menu items together with their components and recipe
lines. Every save validates the whole payload first, then replaces the
recipe and recomputes the cached costs in one serialized unit.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from constants import COST_CHANGE_REASONS, MAX_LENGTHS, MAX_MENU_PRICE, MAX_RECIPE_QUANTITY
from models import db, Ingredient, MenuItem, Component, ComponentIngredient
from utils import sanitize_name, sanitize_unit
from .parsing import parse_money, parse_quantity
from .recompute import engine_settings, recompute_menu_items_unlocked, serialized_update

logger = logging.getLogger(__name__)


class MenuItemValidationError(ValueError):
    """Raised when a menu item payload is invalid. Nothing is saved."""


@dataclass
class RecipeLine:
    ingredient_id: int
    quantity: float
    unit: str


@dataclass
class ComponentDraft:
    name: str
    lines: List[RecipeLine] = field(default_factory=list)


@dataclass
class MenuItemDraft:
    name: Optional[str] = None
    price: Optional[float] = None
    components: Optional[List[ComponentDraft]] = None


def _parse_line(raw, component_name, number, restaurant_id, normalizer):
    where = f'{component_name} line {number}'
    if not isinstance(raw, dict):
        raise MenuItemValidationError(f'{where} must be an object')

    try:
        ingredient_id = int(raw.get('ingredient_id'))
    except (TypeError, ValueError):
        raise MenuItemValidationError(f'{where}: ingredient_id is required')
    ingredient = db.session.get(Ingredient, ingredient_id)
    if ingredient is None or ingredient.restaurant_id != restaurant_id:
        raise MenuItemValidationError(f'{where}: ingredient {ingredient_id} does not belong to this restaurant')

    quantity = parse_quantity(raw.get('quantity'))
    if quantity is None:
        raise MenuItemValidationError(f'{where}: quantity must be a positive number')
    if quantity > MAX_RECIPE_QUANTITY:
        raise MenuItemValidationError(f'{where}: quantity is too large')

    unit = sanitize_unit(raw.get('unit') or ingredient.unit, max_length=MAX_LENGTHS['unit'])
    validation = normalizer.validate_unit(unit)
    if not validation.valid or not validation.supported:
        raise MenuItemValidationError(f'{where}: invalid unit {unit}')

    return RecipeLine(ingredient_id=ingredient.id, quantity=quantity, unit=validation.normalized_unit)


def parse_menu_item(data, restaurant_id, creating=False, normalizer=None):
    """
    Validate a menu item payload.

    On create, name and price are required. On update, only the keys present
    are changed; a 'components' key replaces the whole recipe.
    """
    normalizer = normalizer or engine_settings().normalizer
    draft = MenuItemDraft()

    if creating or 'name' in data:
        draft.name = sanitize_name(data.get('name'), max_length=MAX_LENGTHS['menu_item_name'])
        if not draft.name:
            raise MenuItemValidationError('Menu item name is required')

    if creating or 'price' in data:
        draft.price = parse_money(data.get('price'))
        if draft.price is None or draft.price < 0:
            raise MenuItemValidationError('Menu item price must be zero or more')
        if draft.price > MAX_MENU_PRICE:
            raise MenuItemValidationError('Menu item price is too large')

    if creating or 'components' in data:
        raw_components = data.get('components') or []
        if not isinstance(raw_components, list):
            raise MenuItemValidationError('components must be a list')
        if creating and not raw_components:
            raise MenuItemValidationError('Menu item needs at least one component')
        draft.components = []
        seen = set()
        for index, raw in enumerate(raw_components, 1):
            if not isinstance(raw, dict):
                raise MenuItemValidationError(f'Component {index} must be an object')
            name = sanitize_name(raw.get('name'), max_length=MAX_LENGTHS['component_name'])
            if not name:
                raise MenuItemValidationError(f'Component {index} name is required')
            if name.lower() in seen:
                raise MenuItemValidationError(f'Component {name} is listed twice')
            seen.add(name.lower())

            raw_lines = raw.get('lines') or []
            if not isinstance(raw_lines, list) or not raw_lines:
                raise MenuItemValidationError(f'Component {name} needs at least one ingredient line')
            draft.components.append(ComponentDraft(name=name, lines=[
                _parse_line(line, name, number, restaurant_id, normalizer)
                for number, line in enumerate(raw_lines, 1)
            ]))

    return draft


def save_menu_item(restaurant_id, data, menu_item_id=None):
    """
    Create or update a menu item and recompute its cost.

    Returns (menu_item, report). The recipe replacement, cache update and
    history row commit together.
    """
    creating = menu_item_id is None
    draft = parse_menu_item(data, restaurant_id, creating=creating)
    reason = COST_CHANGE_REASONS['menu_item_created' if creating else 'recipe_edit']

    with serialized_update(restaurant_id):
        if creating:
            menu_item = MenuItem(restaurant_id=restaurant_id, cost=0.0)
            db.session.add(menu_item)
        else:
            menu_item = db.session.get(MenuItem, menu_item_id)
            if menu_item is None or menu_item.restaurant_id != restaurant_id:
                raise LookupError(f'Menu item {menu_item_id} not found')

        if draft.name is not None:
            menu_item.name = draft.name
        if draft.price is not None:
            menu_item.price = draft.price

        if draft.components is not None:
            menu_item.components.clear()
            db.session.flush()
            for component_draft in draft.components:
                component = Component(name=component_draft.name, cost=0.0)
                for line in component_draft.lines:
                    component.lines.append(ComponentIngredient(
                        ingredient=db.session.get(Ingredient, line.ingredient_id),
                        quantity=line.quantity,
                        unit=line.unit,
                    ))
                menu_item.components.append(component)
        db.session.flush()

        report, _ = recompute_menu_items_unlocked([menu_item], reason)
        logger.info("Saved menu item '%s' (%s) with %d components",
                    menu_item.name, menu_item.id, len(menu_item.components))

    return menu_item, report


def delete_menu_item(menu_item):
    """Delete a menu item with its components, lines and cost history."""
    with serialized_update(menu_item.restaurant_id):
        menu_item = db.session.get(MenuItem, menu_item.id)
        if menu_item is not None:
            logger.info("Deleting menu item '%s' (%s)", menu_item.name, menu_item.id)
            db.session.delete(menu_item)
