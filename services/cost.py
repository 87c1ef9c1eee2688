"""
Cost Rollup Service

Rolls ingredient prices up through recipe lines into component costs and
menu item costs, and decides which menu items changed after a price update.

Works on any objects shaped like the ORM models:
    line:      .quantity, .unit, .ingredient (.name, .last_price), .component
    component: .id, .name, .cost, .lines, .menu_item
    menu item: .id, .name, .price, .cost, .components

Nothing here reads or writes the database.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .units import default_normalizer

logger = logging.getLogger(__name__)

# Cost changes of one cent or less are rounding noise
COST_CHANGE_EPSILON = 0.01


class ConversionFailurePolicy(Enum):
    """
    How a recipe line is costed when its unit cannot be standardized.

    NAIVE_MULTIPLICATION: quantity * price, assuming the recipe unit already
        is the ingredient's standard unit. Known to be imprecise.
    ZERO: the line contributes nothing.
    """
    NAIVE_MULTIPLICATION = 'naive_multiplication'
    ZERO = 'zero'


class CostingError(Exception):
    """Base exception for cost rollup errors."""
    pass


class MissingIngredientError(CostingError):
    """Raised when a recipe line no longer references an ingredient."""

    def __init__(self, line, message=None):
        self.line = line
        if message is None:
            component = getattr(line, 'component', None)
            component_info = f" in component '{component.name}'" if component is not None else ''
            message = f'Recipe line {getattr(line, "id", None)}{component_info} has no ingredient'
        super().__init__(message)


class RecomputeState(Enum):
    PRICE_UPDATED = 'price_updated'
    SNAPSHOT_TAKEN = 'snapshot_taken'
    COMPONENTS_RECOMPUTED = 'components_recomputed'
    MENU_ITEM_RECOMPUTED = 'menu_item_recomputed'
    CHANGED = 'changed'
    UNCHANGED = 'unchanged'
    CHANGE_RECORDED = 'change_recorded'


_TRANSITIONS = {
    RecomputeState.PRICE_UPDATED: {RecomputeState.SNAPSHOT_TAKEN},
    RecomputeState.SNAPSHOT_TAKEN: {RecomputeState.COMPONENTS_RECOMPUTED},
    RecomputeState.COMPONENTS_RECOMPUTED: {RecomputeState.MENU_ITEM_RECOMPUTED},
    RecomputeState.MENU_ITEM_RECOMPUTED: {RecomputeState.CHANGED, RecomputeState.UNCHANGED},
    RecomputeState.CHANGED: {RecomputeState.CHANGE_RECORDED},
    RecomputeState.UNCHANGED: set(),
    RecomputeState.CHANGE_RECORDED: set(),
}


class RecomputeCycle:
    """Tracks one menu item through a price update. Moves forward only."""

    def __init__(self):
        self.state = RecomputeState.PRICE_UPDATED
        self.history = [self.state]

    def advance(self, state):
        if state not in _TRANSITIONS[self.state]:
            raise CostingError(f'Illegal recompute transition {self.state.value} -> {state.value}')
        self.state = state
        self.history.append(state)

    @property
    def is_terminal(self):
        return not _TRANSITIONS[self.state]


@dataclass
class LineCost:
    name: str
    quantity: float
    unit: str
    unit_price: float
    standard_unit: str
    cost: float
    has_price: bool = True
    degraded: bool = False
    defaulted: bool = False


@dataclass
class ComponentCosting:
    component: object
    cost: float
    lines: List[LineCost] = field(default_factory=list)

    @property
    def unpriced(self):
        return [line.name for line in self.lines if not line.has_price]

    @property
    def is_complete(self):
        return not self.unpriced

    @property
    def stored_cost(self):
        return float(getattr(self.component, 'cost', None) or 0)

    @property
    def has_discrepancy(self):
        return abs(self.stored_cost - self.cost) > COST_CHANGE_EPSILON


@dataclass
class MenuItemSnapshot:
    """A menu item and its stored cost, captured before the price changes."""
    menu_item: object
    old_cost: float
    cycle: RecomputeCycle = field(default_factory=RecomputeCycle)


@dataclass
class CostDiff:
    old_cost: float
    new_cost: float
    delta: float
    changed: bool
    component_costs: list = field(default_factory=list)  # [(component, cost)]


@dataclass
class ItemRecompute:
    snapshot: MenuItemSnapshot
    diff: CostDiff

    @property
    def menu_item(self):
        return self.snapshot.menu_item

    @property
    def cycle(self):
        return self.snapshot.cycle


@dataclass
class RecomputeFailure:
    menu_item_id: Optional[int]
    menu_item_name: str
    error: str


@dataclass
class RecomputeReport:
    results: List[ItemRecompute] = field(default_factory=list)
    failures: List[RecomputeFailure] = field(default_factory=list)

    @property
    def changed(self):
        return [result for result in self.results if result.diff.changed]


@dataclass
class CostDiscrepancy:
    kind: str  # "component" | "menu_item"
    id: Optional[int]
    name: str
    stored_cost: float
    computed_cost: float


def _price_of(ingredient):
    try:
        return float(ingredient.last_price or 0)
    except (TypeError, ValueError):
        return 0.0


def cost_line(recipe_quantity, recipe_unit, ingredient_standard_price, ingredient_name='',
              policy=ConversionFailurePolicy.NAIVE_MULTIPLICATION, normalizer=None):
    """Cost one recipe line and keep the details for display."""
    normalizer = normalizer or default_normalizer
    conversion = normalizer.to_standard_unit(recipe_quantity, recipe_unit, ingredient_name)

    if conversion.success:
        return LineCost(
            name=ingredient_name,
            quantity=recipe_quantity,
            unit=recipe_unit,
            unit_price=ingredient_standard_price,
            standard_unit=conversion.unit,
            cost=conversion.quantity * ingredient_standard_price,
            defaulted=conversion.defaulted,
        )

    if policy is ConversionFailurePolicy.NAIVE_MULTIPLICATION:
        logger.warning('Cannot standardize %s %s of %s (%s); falling back to %s x %s',
                       recipe_quantity, recipe_unit, ingredient_name or 'ingredient',
                       conversion.error, recipe_quantity, ingredient_standard_price)
        cost = recipe_quantity * ingredient_standard_price
    else:
        cost = 0.0

    return LineCost(
        name=ingredient_name,
        quantity=recipe_quantity,
        unit=recipe_unit,
        unit_price=ingredient_standard_price,
        standard_unit=recipe_unit,
        cost=cost,
        degraded=True,
    )


def line_cost(recipe_quantity, recipe_unit, ingredient_standard_price, ingredient_name='',
              policy=ConversionFailurePolicy.NAIVE_MULTIPLICATION, normalizer=None):
    """Cost of one recipe line given the ingredient's price per standard unit."""
    return cost_line(recipe_quantity, recipe_unit, ingredient_standard_price, ingredient_name,
                     policy=policy, normalizer=normalizer).cost


def _cost_lines(lines, policy, normalizer):
    costed = []
    for line in lines:
        ingredient = line.ingredient
        if ingredient is None:
            raise MissingIngredientError(line)
        price = _price_of(ingredient)
        if price <= 0:
            logger.debug('No price for %s, line contributes 0', ingredient.name)
            costed.append(LineCost(
                name=ingredient.name,
                quantity=line.quantity,
                unit=line.unit,
                unit_price=0.0,
                standard_unit=getattr(ingredient, 'unit', None) or '',
                cost=0.0,
                has_price=False,
            ))
            continue
        costed.append(cost_line(line.quantity, line.unit, price, ingredient.name,
                                policy=policy, normalizer=normalizer))
    return costed


def component_breakdown(component, policy=ConversionFailurePolicy.NAIVE_MULTIPLICATION, normalizer=None):
    """Line-by-line costing of a component, including which lines need pricing."""
    lines = _cost_lines(component.lines, policy, normalizer)
    total = 0.0
    for line in lines:
        total += line.cost
    costing = ComponentCosting(component=component, cost=total, lines=lines)
    if not costing.is_complete:
        logger.info("Component '%s' has unpriced ingredients: %s",
                    component.name, ', '.join(costing.unpriced))
    return costing


def component_cost(lines, policy=ConversionFailurePolicy.NAIVE_MULTIPLICATION, normalizer=None):
    """
    Sum of line costs for a component.

    Lines whose ingredient has no price contribute 0; the component is then
    incomplete, which component_breakdown reports. A line without an
    ingredient raises MissingIngredientError.
    """
    total = 0.0
    for line in _cost_lines(lines, policy, normalizer):
        total += line.cost
    return total


def menu_item_cost(components, policy=ConversionFailurePolicy.NAIVE_MULTIPLICATION, normalizer=None):
    """Sum of component costs for a menu item."""
    total = 0.0
    for component in components:
        total += component_cost(component.lines, policy=policy, normalizer=normalizer)
    return total


def margin(price, cost):
    """Profit margin as a fraction of price, or None without a usable price."""
    price = float(price or 0)
    if price <= 0:
        return None
    return (price - float(cost or 0)) / price


def cost_diff(old_cost, new_cost, epsilon=COST_CHANGE_EPSILON, component_costs=None):
    old_cost = float(old_cost or 0)
    delta = new_cost - old_cost
    # Round away float noise so a one-cent difference never counts as a change
    changed = abs(round(delta, 9)) > epsilon
    return CostDiff(
        old_cost=old_cost,
        new_cost=new_cost,
        delta=delta,
        changed=changed,
        component_costs=component_costs or [],
    )


def affected_menu_items(lines):
    """
    Snapshot the menu items that use an ingredient.

    Takes the recipe lines referencing the ingredient, deduplicates by menu
    item and records each item's stored cost. Call this before the price is
    changed.
    """
    snapshots = {}
    for line in lines:
        component = getattr(line, 'component', None)
        menu_item = getattr(component, 'menu_item', None) if component is not None else None
        if menu_item is None:
            logger.warning('Recipe line %s is not attached to a menu item, skipping', getattr(line, 'id', None))
            continue
        key = menu_item.id if menu_item.id is not None else id(menu_item)
        if key in snapshots:
            continue
        snapshot = MenuItemSnapshot(menu_item=menu_item, old_cost=float(menu_item.cost or 0))
        snapshot.cycle.advance(RecomputeState.SNAPSHOT_TAKEN)
        snapshots[key] = snapshot
    return list(snapshots.values())


def recompute_and_diff(menu_item, old_cost, components=None, epsilon=COST_CHANGE_EPSILON,
                       policy=ConversionFailurePolicy.NAIVE_MULTIPLICATION, normalizer=None, cycle=None):
    """
    Recompute a menu item's cost and compare it with the snapshotted cost.

    Returns a CostDiff. changed is True only when the cost moved by more
    than epsilon, meaning a cost history record should be written.
    """
    if components is None:
        components = menu_item.components

    component_costs = []
    for component in components:
        component_costs.append((component, component_cost(component.lines, policy=policy, normalizer=normalizer)))
    if cycle is not None:
        cycle.advance(RecomputeState.COMPONENTS_RECOMPUTED)

    new_cost = 0.0
    for _, cost in component_costs:
        new_cost += cost
    if cycle is not None:
        cycle.advance(RecomputeState.MENU_ITEM_RECOMPUTED)

    diff = cost_diff(old_cost, new_cost, epsilon=epsilon, component_costs=component_costs)
    if cycle is not None:
        cycle.advance(RecomputeState.CHANGED if diff.changed else RecomputeState.UNCHANGED)
    return diff


def recompute_dependents(snapshots, epsilon=COST_CHANGE_EPSILON,
                         policy=ConversionFailurePolicy.NAIVE_MULTIPLICATION, normalizer=None):
    """
    Recompute every snapshotted menu item independently.

    A menu item with broken recipe data is reported as a failure and the
    remaining items are still recomputed.
    """
    report = RecomputeReport()
    for snapshot in snapshots:
        menu_item = snapshot.menu_item
        try:
            diff = recompute_and_diff(menu_item, snapshot.old_cost, epsilon=epsilon,
                                      policy=policy, normalizer=normalizer, cycle=snapshot.cycle)
        except (CostingError, AttributeError, TypeError, ValueError) as e:
            logger.warning("Recompute failed for menu item '%s': %s", getattr(menu_item, 'name', '?'), e)
            report.failures.append(RecomputeFailure(
                menu_item_id=getattr(menu_item, 'id', None),
                menu_item_name=getattr(menu_item, 'name', ''),
                error=str(e),
            ))
            continue
        report.results.append(ItemRecompute(snapshot=snapshot, diff=diff))
    return report


def find_cost_discrepancies(menu_items, tolerance=COST_CHANGE_EPSILON,
                            policy=ConversionFailurePolicy.NAIVE_MULTIPLICATION, normalizer=None):
    """Stored component and menu item costs that no longer match their lines."""
    discrepancies = []
    for menu_item in menu_items:
        try:
            total = 0.0
            for component in menu_item.components:
                computed = component_cost(component.lines, policy=policy, normalizer=normalizer)
                total += computed
                stored = float(component.cost or 0)
                if abs(stored - computed) > tolerance:
                    discrepancies.append(CostDiscrepancy('component', component.id, component.name, stored, computed))
        except CostingError as e:
            logger.warning("Skipping cost check for '%s': %s", menu_item.name, e)
            continue
        stored = float(menu_item.cost or 0)
        if abs(stored - total) > tolerance:
            discrepancies.append(CostDiscrepancy('menu_item', menu_item.id, menu_item.name, stored, total))
    return discrepancies
