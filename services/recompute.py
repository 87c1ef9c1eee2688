"""
Price Update and Recompute Service

Applies ingredient price changes and pushes them through to the components
and menu items that use the ingredient, writing cost history rows.

Every update runs inside serialized_update(): one lock per restaurant plus
one database transaction. Two invoice saves for the same restaurant can
never interleave their snapshot, price write and recompute, so history
deltas always chain (each row's old_cost is the previous row's new_cost).
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List

from flask import current_app, has_app_context
from sqlalchemy.orm import joinedload

from constants import COST_CHANGE_REASONS, VALID_CONVERSION_FAILURE_POLICIES, VALID_UNKNOWN_UNIT_POLICIES
from models import db, Restaurant, Ingredient, MenuItem, Component, ComponentIngredient, MenuItemCostHistory
from .units import UnitNormalizer, UnknownUnitPolicy
from .cost import (
    COST_CHANGE_EPSILON,
    ConversionFailurePolicy,
    MenuItemSnapshot,
    RecomputeReport,
    RecomputeState,
    affected_menu_items,
    find_cost_discrepancies,
    recompute_dependents,
)

logger = logging.getLogger(__name__)


@dataclass
class EngineSettings:
    epsilon: float = COST_CHANGE_EPSILON
    failure_policy: ConversionFailurePolicy = ConversionFailurePolicy.NAIVE_MULTIPLICATION
    normalizer: UnitNormalizer = field(default_factory=UnitNormalizer)


def engine_settings():
    """Engine policies from the Flask config, or the defaults outside an app."""
    if not has_app_context():
        return EngineSettings()
    config = current_app.config
    unknown_unit_policy = config.get('UNKNOWN_UNIT_POLICY', 'default_to_weight')
    if unknown_unit_policy not in VALID_UNKNOWN_UNIT_POLICIES:
        raise ValueError(f'Invalid UNKNOWN_UNIT_POLICY: {unknown_unit_policy}')
    failure_policy = config.get('CONVERSION_FAILURE_POLICY', 'naive_multiplication')
    if failure_policy not in VALID_CONVERSION_FAILURE_POLICIES:
        raise ValueError(f'Invalid CONVERSION_FAILURE_POLICY: {failure_policy}')
    return EngineSettings(
        epsilon=float(config.get('COST_CHANGE_EPSILON', COST_CHANGE_EPSILON)),
        failure_policy=ConversionFailurePolicy(failure_policy),
        normalizer=UnitNormalizer(unknown_unit_policy=UnknownUnitPolicy(unknown_unit_policy)),
    )


class RestaurantLocks:
    """
    One in-process lock per restaurant id.

    Locks are held weakly: a restaurant's lock lives only while some caller
    holds it, so the table does not grow with every restaurant ever seen.
    """

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def lock_for(self, restaurant_id):
        with self._guard:
            lock = self._locks.get(restaurant_id)
            if lock is None:
                lock = self._locks[restaurant_id] = threading.Lock()
            return lock

    def __len__(self):
        return len(self._locks)


restaurant_locks = RestaurantLocks()


@contextmanager
def serialized_update(restaurant_id):
    """
    Run a block as the only price update for this restaurant.

    Holds the restaurant's lock and the restaurant row lock (SELECT ... FOR
    UPDATE, which also serializes separate processes on databases that
    support it), commits when the block finishes and rolls back if it
    raises. Do not nest.
    """
    with restaurant_locks.lock_for(restaurant_id):
        try:
            # Keep the caller's pending edits, then re-read everything else
            db.session.flush()
            db.session.expire_all()
            db.session.execute(
                db.select(Restaurant.id).where(Restaurant.id == restaurant_id).with_for_update()
            )
            yield
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise


@dataclass
class UpdateOutcome:
    ingredient: Ingredient
    old_price: float
    new_price: float
    report: RecomputeReport
    history: List[MenuItemCostHistory] = field(default_factory=list)


def _persist_report(report, reason):
    """Write recomputed costs back to the cache columns and record changes."""
    records = []
    for result in report.results:
        for component, cost in result.diff.component_costs:
            component.cost = cost
        menu_item = result.menu_item
        menu_item.cost = result.diff.new_cost

        if result.diff.changed:
            record = MenuItemCostHistory(
                menu_item_id=menu_item.id,
                old_cost=result.diff.old_cost,
                new_cost=result.diff.new_cost,
                reason=reason,
            )
            db.session.add(record)
            result.cycle.advance(RecomputeState.CHANGE_RECORDED)
            records.append(record)
            logger.info("Menu item '%s' cost %.4f -> %.4f (%s)",
                        menu_item.name, result.diff.old_cost, result.diff.new_cost, reason)

    for failure in report.failures:
        logger.warning("Menu item '%s' (%s) was not recomputed: %s",
                       failure.menu_item_name, failure.menu_item_id, failure.error)
    return records


def _lines_using(ingredient_id):
    return db.session.execute(
        db.select(ComponentIngredient)
        .where(ComponentIngredient.ingredient_id == ingredient_id)
        .options(joinedload(ComponentIngredient.component).joinedload(Component.menu_item))
        .execution_options(populate_existing=True)
    ).scalars().all()


def apply_price_update_unlocked(ingredient_id, new_price, reason, ordered_at=None, unit=None, settings=None):
    """
    Snapshot dependents, change the price, recompute and record.

    Must run inside serialized_update() for the ingredient's restaurant.
    """
    settings = settings or engine_settings()
    ingredient = db.session.get(Ingredient, ingredient_id, with_for_update=True, populate_existing=True)
    if ingredient is None:
        raise LookupError(f'Ingredient {ingredient_id} not found')

    # Snapshot must happen before the price changes
    snapshots = affected_menu_items(_lines_using(ingredient.id))

    old_price = float(ingredient.last_price or 0)
    if unit and ingredient.unit and unit != ingredient.unit and old_price > 0:
        logger.warning("Ingredient '%s' unit changes from %s to %s; recipe lines may need review",
                       ingredient.name, ingredient.unit, unit)
    ingredient.last_price = new_price
    if unit:
        ingredient.unit = unit
    if ordered_at is not None:
        ingredient.last_ordered_at = ordered_at
    logger.info("Ingredient '%s' price %.4f -> %.4f per %s (%d menu items affected)",
                ingredient.name, old_price, new_price, ingredient.unit, len(snapshots))

    report = recompute_dependents(snapshots, epsilon=settings.epsilon,
                                  policy=settings.failure_policy, normalizer=settings.normalizer)
    history = _persist_report(report, reason)
    return UpdateOutcome(ingredient=ingredient, old_price=old_price, new_price=new_price,
                         report=report, history=history)


def apply_price_update(ingredient, new_price, reason=COST_CHANGE_REASONS['manual_price'], ordered_at=None, unit=None):
    """Change an ingredient's price and recompute every menu item using it."""
    if new_price is None or new_price < 0:
        raise ValueError('Price must be zero or more')
    restaurant_id = ingredient.restaurant_id
    ingredient_id = ingredient.id
    with serialized_update(restaurant_id):
        outcome = apply_price_update_unlocked(ingredient_id, new_price, reason,
                                              ordered_at=ordered_at, unit=unit)
    return outcome


def recompute_menu_items_unlocked(menu_items, reason, settings=None):
    settings = settings or engine_settings()
    snapshots = []
    for menu_item in menu_items:
        snapshot = MenuItemSnapshot(menu_item=menu_item, old_cost=float(menu_item.cost or 0))
        snapshot.cycle.advance(RecomputeState.SNAPSHOT_TAKEN)
        snapshots.append(snapshot)
    report = recompute_dependents(snapshots, epsilon=settings.epsilon,
                                  policy=settings.failure_policy, normalizer=settings.normalizer)
    history = _persist_report(report, reason)
    return report, history


def recompute_menu_item(menu_item, reason=COST_CHANGE_REASONS['recipe_edit']):
    """Recompute one menu item after its recipe lines were edited."""
    with serialized_update(menu_item.restaurant_id):
        report, _ = recompute_menu_items_unlocked([menu_item], reason)
    return report


def check_cost_caches(restaurant_id):
    """Cached component and menu item costs that disagree with a fresh rollup."""
    settings = engine_settings()
    menu_items = MenuItem.query.filter_by(restaurant_id=restaurant_id).order_by(MenuItem.name).all()
    return find_cost_discrepancies(menu_items, tolerance=settings.epsilon,
                                   policy=settings.failure_policy, normalizer=settings.normalizer)


def repair_cost_caches(restaurant_id):
    """Rebuild every cached cost for a restaurant from its recipe lines."""
    with serialized_update(restaurant_id):
        menu_items = MenuItem.query.filter_by(restaurant_id=restaurant_id).all()
        report, _ = recompute_menu_items_unlocked(menu_items, COST_CHANGE_REASONS['repair'])
    return report
