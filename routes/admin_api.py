# routes/admin_api.py
from flask import Blueprint, jsonify, request
from flask_login import current_user
from dao import admin_quote as admin_quote_dao
from dao import user as user_dao
from db.models.user import UserRole
from utils.auth import roles_required
from utils.serializers import admin_quote_to_dict, user_to_dict

admin_api_bp = Blueprint("admin_api", __name__, url_prefix="/api/admin")


@admin_api_bp.route("/rfqs/<int:rfq_id>/quote", methods=["POST"])
@roles_required(UserRole.ADMIN)
def admin_quote_add(rfq_id: int):
    data = request.get_json(silent=True) or {}
    quote = admin_quote_dao.issue_admin_quote(
        current_user,
        rfq_id,
        data.get("subtotal"),
        data.get("tax", 0),
        estimated_duration=data.get("estimated_duration"),
        notes=data.get("notes"),
    )
    return jsonify(admin_quote_to_dict(quote)), 201


@admin_api_bp.route("/property-managers", methods=["POST"])
@roles_required(UserRole.ADMIN)
def property_manager_add():
    data = request.get_json(silent=True) or {}
    u = user_dao.create_property_manager(current_user, data)
    return jsonify(user_to_dict(u)), 201
