import logging
import sqlite3
from datetime import datetime

from flask import Flask, abort, request, jsonify
from flask_migrate import Migrate
from sqlalchemy import event
from sqlalchemy.engine import Engine

from config import get_config
from constants import MAX_INVOICE_AMOUNT, MAX_LENGTHS
from models import db, Restaurant, Ingredient, MenuItem, Invoice
from services import (
    InvoiceValidationError,
    MenuItemValidationError,
    apply_price_update,
    available_input_units,
    check_cost_caches,
    cost_history,
    delete_menu_item,
    describe_unit,
    engine_settings,
    format_money,
    get_ingredient_suggestions,
    menu_item_breakdown,
    normalize_ingredient_name,
    parse_invoice_lines,
    parse_money,
    recompute_menu_item,
    repair_cost_caches,
    restaurant_summary,
    safe_float,
    save_invoice,
    save_menu_item,
    standardize_and_match,
    unit_suggestions,
)
from utils import sanitize_name, sanitize_unit

app = Flask(__name__)
app.config.from_object(get_config())

logging.basicConfig(
    level=app.config['LOG_LEVEL'],
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

db.init_app(app)
migrate = Migrate(app, db)


# Enable SQLite foreign key enforcement so deleted ingredients null out recipe lines
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def json_error(message, status=400):
    return jsonify({'error': message}), status


@app.errorhandler(400)
def bad_request(e):
    return json_error(e.description, 400)


@app.errorhandler(404)
def not_found(e):
    return json_error('Not found', 404)


@app.errorhandler(InvoiceValidationError)
@app.errorhandler(MenuItemValidationError)
def validation_failed(e):
    return json_error(str(e), 400)


def _request_data():
    data = request.get_json(silent=True)
    if data is None:
        return request.form.to_dict()
    if not isinstance(data, dict):
        abort(400, description='Request body must be a JSON object')
    return data


def _parse_date(value):
    if not value:
        return None
    try:
        return datetime.strptime(str(value).strip(), '%Y-%m-%d')
    except ValueError:
        raise InvoiceValidationError(0, f'Invalid invoice date: {value} (expected YYYY-MM-DD)')


def _report_json(report):
    return {
        'recomputed': len(report.results),
        'changed': [{
            'id': result.menu_item.id,
            'name': result.menu_item.name,
            'old_cost': round(result.diff.old_cost, 4),
            'new_cost': round(result.diff.new_cost, 4),
        } for result in report.changed],
        'failures': [{
            'id': failure.menu_item_id,
            'name': failure.menu_item_name,
            'error': failure.error,
        } for failure in report.failures],
    }


# ============================================
# UNITS
# ============================================

@app.route('/units')
def units_list():
    units = available_input_units()
    units['descriptions'] = {unit: describe_unit(unit) for unit in units['all']}
    return jsonify(units)

@app.route('/units/validate')
def units_validate():
    unit = sanitize_unit(request.args.get('unit', ''), max_length=MAX_LENGTHS['unit'])
    if not unit:
        return json_error('unit is required')
    validation = engine_settings().normalizer.validate_unit(unit)
    return jsonify({
        'unit': unit,
        'valid': validation.valid,
        'supported': validation.supported,
        'category': validation.category.value,
        'normalized_unit': validation.normalized_unit,
        'standard_unit': validation.standard_unit,
        'message': validation.message,
    })

@app.route('/units/suggest')
def units_suggest():
    return jsonify(unit_suggestions(request.args.get('q', ''), limit=10))

@app.route('/standardize', methods=['POST'])
def standardize():
    data = _request_data()
    settings = engine_settings()
    line = parse_invoice_lines([{
        'item_name': data.get('item_name'),
        'quantity': data.get('quantity'),
        'unit': data.get('unit'),
        'amount': data.get('total_cost', data.get('amount')),
    }], settings.normalizer)[0]

    restaurant_id = data.get('restaurant_id')
    match = None
    suggestions = []
    if restaurant_id not in (None, ''):
        try:
            restaurant_id = int(restaurant_id)
        except (TypeError, ValueError):
            return json_error('restaurant_id must be a number')
        db.get_or_404(Restaurant, restaurant_id)
        standardized, ingredient, match_type = standardize_and_match(
            restaurant_id, line.item_name, line.amount, line.quantity, line.unit, settings.normalizer)
        if ingredient is not None:
            match = {'id': ingredient.id, 'name': ingredient.name, 'match_type': match_type}
        else:
            suggestions = [{'id': ing.id, 'name': ing.name, 'score': round(score, 1), 'reason': reason}
                           for ing, score, reason in get_ingredient_suggestions(
                               normalize_ingredient_name(line.item_name), restaurant_id)]
    else:
        standardized = settings.normalizer.standardize_invoice_line(
            line.item_name, line.amount, line.quantity, line.unit)

    return jsonify({
        'item_name': standardized.name,
        'original_quantity': standardized.original_quantity,
        'original_unit': standardized.original_unit,
        'original_unit_cost': round(standardized.original_unit_cost, 4),
        'standard_quantity': round(standardized.standard_quantity, 4),
        'standard_unit': standardized.standard_unit,
        'standard_unit_cost': round(standardized.standard_unit_cost, 4),
        'category': standardized.category.value,
        'conversion_factor': standardized.factor,
        'conversion_type': standardized.conversion_type,
        'success': standardized.success,
        'needs_review': standardized.defaulted or standardized.fallback,
        'error': standardized.error,
        'match': match,
        'suggestions': suggestions,
    })


# ============================================
# INGREDIENTS
# ============================================

@app.route('/restaurant/<int:id>/ingredients')
def ingredients_list(id):
    restaurant = db.get_or_404(Restaurant, id)
    ingredients = Ingredient.query.filter_by(restaurant_id=restaurant.id).order_by(Ingredient.name).all()
    return jsonify([{
        'id': ing.id,
        'name': ing.name,
        'unit': ing.unit,
        'price': ing.last_price,
        'price_display': f'{format_money(ing.last_price, 4)} / {ing.unit}' if ing.has_price else 'needs pricing',
        'last_ordered_at': ing.last_ordered_at.isoformat() if ing.last_ordered_at else None,
    } for ing in ingredients])

@app.route('/ingredient/<int:id>/price', methods=['POST'])
def ingredient_price(id):
    ingredient = db.get_or_404(Ingredient, id)
    data = _request_data()

    price = parse_money(data.get('price'))
    if price is None or price < 0:
        return json_error('price must be zero or more')
    if price > MAX_INVOICE_AMOUNT:
        return json_error('price is too large')

    unit = None
    if data.get('unit'):
        unit = sanitize_unit(data['unit'], max_length=MAX_LENGTHS['unit'])
        normalizer = engine_settings().normalizer
        validation = normalizer.validate_unit(unit)
        if not validation.valid or not validation.supported:
            return json_error(f'Invalid unit: {unit}')
        # Store the price per standard unit: $2.50 per lb is $0.15625 per oz
        conversion = normalizer.to_standard_unit(1, unit, ingredient.name)
        if not conversion.success or conversion.factor <= 0:
            return json_error(f'Invalid unit: {unit}')
        price = price / conversion.factor
        unit = conversion.unit

    outcome = apply_price_update(ingredient, price, unit=unit)
    return jsonify({
        'id': outcome.ingredient.id,
        'name': outcome.ingredient.name,
        'old_price': outcome.old_price,
        'new_price': outcome.new_price,
        'unit': outcome.ingredient.unit,
        **_report_json(outcome.report),
    })


# ============================================
# INVOICES
# ============================================

@app.route('/restaurant/<int:id>/invoices', methods=['POST'])
def invoice_add(id):
    restaurant = db.get_or_404(Restaurant, id)
    data = _request_data()
    invoice = Invoice(
        restaurant_id=restaurant.id,
        number=sanitize_name(data.get('number'), max_length=MAX_LENGTHS['invoice_number']),
        supplier=sanitize_name(data.get('supplier'), max_length=MAX_LENGTHS['supplier']),
        date=_parse_date(data.get('date')),
        amount=parse_money(data.get('amount')) or 0.0,
    )
    db.session.add(invoice)
    db.session.commit()
    return jsonify({'id': invoice.id, 'status': invoice.status}), 201

@app.route('/invoice/<int:id>/save', methods=['POST'])
def invoice_save(id):
    invoice = db.get_or_404(Invoice, id)
    data = _request_data()

    details = {}
    if 'number' in data:
        details['number'] = sanitize_name(data['number'], max_length=MAX_LENGTHS['invoice_number'])
    if 'supplier' in data:
        details['supplier'] = sanitize_name(data['supplier'], max_length=MAX_LENGTHS['supplier'])
    if data.get('date'):
        details['date'] = _parse_date(data['date'])
    if data.get('amount') not in (None, ''):
        amount = parse_money(data['amount'])
        if amount is None or amount < 0:
            return json_error('Invoice amount must be zero or more')
        details['amount'] = amount

    items = data.get('items') or []
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        return json_error('items must be a list of invoice lines')

    outcome = save_invoice(invoice, items, details)
    return jsonify({
        'id': invoice.id,
        'status': invoice.status,
        'items': [{
            'id': item.id,
            'item_name': item.item_name,
            'ingredient_id': item.ingredient_id,
            'quantity': item.quantity,
            'unit': item.unit,
            'amount': item.amount,
            'standard_quantity': item.standard_quantity,
            'standard_unit': item.standard_unit,
            'standard_unit_cost': item.standard_unit_cost,
            'needs_review': item.needs_review,
        } for item in outcome.items],
        'price_updates': len(outcome.updates),
        'cost_changes': len(outcome.history),
    })


# ============================================
# MENU ITEMS
# ============================================

def _menu_item_json(menu_item):
    return {
        'id': menu_item.id,
        'name': menu_item.name,
        'price': menu_item.price,
        'cost': round(menu_item.cost or 0, 4),
        'components': [{
            'id': component.id,
            'name': component.name,
            'cost': round(component.cost or 0, 4),
            'lines': [{
                'id': line.id,
                'ingredient_id': line.ingredient_id,
                'ingredient': line.ingredient.name if line.ingredient else None,
                'quantity': line.quantity,
                'unit': line.unit,
            } for line in component.lines],
        } for component in menu_item.components],
    }

@app.route('/restaurant/<int:id>/menu-items')
def menu_items_list(id):
    restaurant = db.get_or_404(Restaurant, id)
    menu_items = MenuItem.query.filter_by(restaurant_id=restaurant.id).order_by(MenuItem.name).all()
    return jsonify([{
        'id': item.id,
        'name': item.name,
        'price': item.price,
        'cost': round(item.cost or 0, 4),
    } for item in menu_items])

@app.route('/restaurant/<int:id>/menu-items', methods=['POST'])
def menu_item_add(id):
    restaurant = db.get_or_404(Restaurant, id)
    menu_item, report = save_menu_item(restaurant.id, _request_data())
    return jsonify({**_menu_item_json(menu_item), **_report_json(report)}), 201

@app.route('/menu-item/<int:id>', methods=['GET'])
def menu_item_view(id):
    return jsonify(_menu_item_json(db.get_or_404(MenuItem, id)))

@app.route('/menu-item/<int:id>', methods=['PUT', 'POST'])
def menu_item_edit(id):
    menu_item = db.get_or_404(MenuItem, id)
    menu_item, report = save_menu_item(menu_item.restaurant_id, _request_data(), menu_item_id=menu_item.id)
    return jsonify({**_menu_item_json(menu_item), **_report_json(report)})

@app.route('/menu-item/<int:id>', methods=['DELETE'])
def menu_item_delete(id):
    menu_item = db.get_or_404(MenuItem, id)
    delete_menu_item(menu_item)
    return jsonify({'deleted': id})

@app.route('/menu-item/<int:id>/cost-breakdown')
def menu_item_cost_breakdown(id):
    menu_item = db.get_or_404(MenuItem, id)
    return jsonify(menu_item_breakdown(menu_item, engine_settings()))

@app.route('/menu-item/<int:id>/history')
def menu_item_history(id):
    menu_item = db.get_or_404(MenuItem, id)
    limit = int(safe_float(request.args.get('limit'), default=50, min_val=1, max_val=500))
    return jsonify({'id': menu_item.id, 'name': menu_item.name, 'history': cost_history(menu_item.id, limit)})

@app.route('/menu-item/<int:id>/recompute', methods=['POST'])
def menu_item_recompute(id):
    menu_item = db.get_or_404(MenuItem, id)
    report = recompute_menu_item(menu_item)
    return jsonify(_report_json(report))


# ============================================
# RESTAURANT
# ============================================

@app.route('/restaurant/<int:id>/cost-check')
def restaurant_cost_check(id):
    restaurant = db.get_or_404(Restaurant, id)
    discrepancies = check_cost_caches(restaurant.id)
    return jsonify({
        'consistent': not discrepancies,
        'discrepancies': [{
            'kind': d.kind,
            'id': d.id,
            'name': d.name,
            'stored_cost': round(d.stored_cost, 4),
            'calculated_cost': round(d.computed_cost, 4),
        } for d in discrepancies],
    })

@app.route('/restaurant/<int:id>/cost-repair', methods=['POST'])
def restaurant_cost_repair(id):
    restaurant = db.get_or_404(Restaurant, id)
    report = repair_cost_caches(restaurant.id)
    return jsonify(_report_json(report))

@app.route('/restaurant/<int:id>/summary')
def restaurant_cost_summary(id):
    restaurant = db.get_or_404(Restaurant, id)
    summary = restaurant_summary(restaurant.id, engine_settings())
    summary['name'] = restaurant.name
    return jsonify(summary)


# ============================================
# INITIALIZE DATABASE
# ============================================

def init_db():
    with app.app_context():
        db.create_all()
        logger.info('Database tables created for %s', app.config['SQLALCHEMY_DATABASE_URI'])


if __name__ == '__main__':
    init_db()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=5000, use_reloader=False)
