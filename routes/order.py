# routes/order.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from dao import order as order_dao
from db.models.user import UserRole
from utils.auth import roles_required
from utils.serializers import order_to_dict

order_bp = Blueprint("order_api", __name__, url_prefix="/api/orders")


@order_bp.route("", methods=["GET"])
@login_required
def order_list():
    orders = order_dao.list_orders(current_user, request.args.get("status"))
    return jsonify([order_to_dict(o) for o in orders])


@order_bp.route("", methods=["POST"])
@roles_required(UserRole.PROPERTY_MANAGER)
def order_add():
    o = order_dao.create_order(current_user, request.get_json(silent=True) or {})
    return jsonify(order_to_dict(o)), 201


@order_bp.route("/<int:order_id>", methods=["GET"])
@login_required
def order_detail(order_id: int):
    return jsonify(order_to_dict(order_dao.get_order(current_user, order_id)))


@order_bp.route("/<int:order_id>/status", methods=["PATCH"])
@login_required
def order_change_status(order_id: int):
    data = request.get_json(silent=True) or {}
    o = order_dao.update_order_status(
        current_user,
        order_id,
        data.get("status"),
        progress=data.get("progress_percentage"),
        notes=data.get("notes"),
    )
    return jsonify(order_to_dict(o))
