"""Menu blueprint - read-only catalog."""
from flask import Blueprint, jsonify, request

from mealhub.database import get_session
from mealhub.services import catalog_service
from mealhub.utils.request_parsing import parse_int

menu_bp = Blueprint('menu', __name__, url_prefix='/menu')


@menu_bp.route('', methods=['GET'])
def list_menu():
    """Available menu items, optionally for one supplier (?supplierId=)."""
    supplier_id = parse_int(
        request.args.get('supplierId') or request.args.get('supplier_id'),
        'supplierId',
        required=False
    )
    return jsonify(catalog_service.list_menu(get_session(), supplier_id))


@menu_bp.route('/<int:menu_id>', methods=['GET'])
def get_menu_item(menu_id):
    item = catalog_service.get_menu_item(get_session(), menu_id)
    return jsonify(item.to_dict())
