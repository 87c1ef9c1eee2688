"""
Cost Reporting Service

Read-only views over the cost rollup: per-menu-item breakdowns and
restaurant-level margin summaries.
"""

import logging

from models import MenuItem, MenuItemCostHistory
from .cost import CostingError, component_breakdown, margin
from .parsing import float_to_fraction, format_percent, round_half_up

logger = logging.getLogger(__name__)


def _round(value, places=4):
    return round_half_up(value, places)


def menu_item_breakdown(menu_item, settings):
    """
    Components, lines and margin for one menu item, computed fresh.

    Components whose stored cost disagrees with the fresh total are flagged
    as mismatched. A component with a broken line is reported with its
    error instead of a cost.
    """
    components = []
    total = 0.0
    complete = True
    for component in menu_item.components:
        try:
            costing = component_breakdown(component, policy=settings.failure_policy,
                                          normalizer=settings.normalizer)
        except CostingError as e:
            complete = False
            components.append({
                'id': component.id,
                'name': component.name,
                'stored_cost': component.cost,
                'error': str(e),
            })
            continue

        total += costing.cost
        complete = complete and costing.is_complete
        components.append({
            'id': component.id,
            'name': component.name,
            'stored_cost': _round(costing.stored_cost),
            'calculated_cost': _round(costing.cost),
            'cost_mismatch': costing.has_discrepancy,
            'needs_pricing': costing.unpriced,
            'lines': [{
                'name': line.name,
                'quantity': line.quantity,
                'unit': line.unit,
                'quantity_display': f'{float_to_fraction(line.quantity)} {line.unit}',
                'unit_price': line.unit_price,
                'standard_unit': line.standard_unit,
                'cost': _round(line.cost),
                'has_price': line.has_price,
                'review_recommended': line.degraded or line.defaulted,
            } for line in costing.lines],
        })

    item_margin = margin(menu_item.price, total)
    return {
        'id': menu_item.id,
        'name': menu_item.name,
        'price': menu_item.price,
        'stored_cost': menu_item.cost,
        'calculated_cost': _round(total),
        'margin': _round(item_margin),
        'margin_percent': _round(item_margin * 100, 2) if item_margin is not None else None,
        'margin_display': format_percent(item_margin),
        'is_complete': complete,
        'components': components,
    }


def cost_history(menu_item_id, limit=50):
    rows = (MenuItemCostHistory.query
            .filter_by(menu_item_id=menu_item_id)
            .order_by(MenuItemCostHistory.created_at.desc(), MenuItemCostHistory.id.desc())
            .limit(limit)
            .all())
    return [{
        'id': row.id,
        'old_cost': row.old_cost,
        'new_cost': row.new_cost,
        'delta': _round(row.delta),
        'reason': row.reason,
        'created_at': row.created_at.isoformat() if row.created_at else None,
    } for row in rows]


def restaurant_summary(restaurant_id, settings):
    """Menu item count, average margin and the items that still need pricing."""
    menu_items = MenuItem.query.filter_by(restaurant_id=restaurant_id).order_by(MenuItem.name).all()

    margins = []
    needs_pricing = []
    for menu_item in menu_items:
        item_margin = margin(menu_item.price, menu_item.cost)
        if item_margin is not None:
            margins.append(item_margin)
        try:
            incomplete = any(
                not component_breakdown(component, policy=settings.failure_policy,
                                        normalizer=settings.normalizer).is_complete
                for component in menu_item.components
            )
        except CostingError as e:
            logger.warning("Menu item '%s' has broken recipe data: %s", menu_item.name, e)
            incomplete = True
        if incomplete:
            needs_pricing.append({'id': menu_item.id, 'name': menu_item.name})

    average = sum(margins) / len(margins) if margins else None
    return {
        'restaurant_id': restaurant_id,
        'menu_items': len(menu_items),
        'average_margin': _round(average),
        'average_margin_percent': _round(average * 100, 2) if average is not None else None,
        'needs_pricing': needs_pricing,
    }
