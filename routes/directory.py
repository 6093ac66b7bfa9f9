# routes/directory.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from dao import building as building_dao
from dao import contractor as contractor_dao
from db.models.user import UserRole
from utils.auth import roles_required
from utils.serializers import building_to_dict, contractor_to_dict

directory_bp = Blueprint("directory_api", __name__, url_prefix="/api")


# -------- buildings --------
@directory_bp.route("/buildings", methods=["GET"])
@login_required
def building_list():
    return jsonify([building_to_dict(b) for b in building_dao.list_buildings(current_user)])


@directory_bp.route("/buildings", methods=["POST"])
@roles_required(UserRole.PROPERTY_MANAGER)
def building_add():
    data = request.get_json(silent=True) or {}
    b = building_dao.create_building(current_user, data.get("name"), data.get("address"))
    return jsonify(building_to_dict(b)), 201


# -------- contractors --------
@directory_bp.route("/contractors", methods=["GET"])
@roles_required(UserRole.PROPERTY_MANAGER, UserRole.ADMIN)
def contractor_list():
    contractors = contractor_dao.list_contractors()
    ratings = contractor_dao.average_ratings(c.id for c in contractors)
    return jsonify([contractor_to_dict(c, ratings.get(c.id)) for c in contractors])


@directory_bp.route("/contractors", methods=["POST"])
@roles_required(UserRole.PROPERTY_MANAGER, UserRole.ADMIN)
def contractor_add():
    c = contractor_dao.create_contractor(request.get_json(silent=True) or {})
    return jsonify(contractor_to_dict(c)), 201


@directory_bp.route("/contractors/<int:contractor_id>/reviews", methods=["POST"])
@roles_required(UserRole.PROPERTY_MANAGER)
def contractor_review_add(contractor_id: int):
    data = request.get_json(silent=True) or {}
    contractor_dao.add_review(current_user, contractor_id, data.get("rating"), data.get("comment"))
    rating = contractor_dao.average_ratings([contractor_id]).get(contractor_id)
    return jsonify({"contractor_id": contractor_id, "rating": rating}), 201
