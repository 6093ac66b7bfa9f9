# routes/rfq.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from dao import order as order_dao
from dao import quotation as quotation_dao
from dao import rfq as rfq_dao
from db.models.user import UserRole
from utils.auth import roles_required
from utils.serializers import order_to_dict, rfq_to_dict

rfq_bp = Blueprint("rfq_api", __name__, url_prefix="/api/rfqs")


def _body() -> dict:
    return request.get_json(silent=True) or {}


@rfq_bp.route("", methods=["GET"])
@login_required
def rfq_list():
    rfqs = rfq_dao.list_rfqs(current_user, request.args.get("status"))
    return jsonify([rfq_to_dict(r) for r in rfqs])


@rfq_bp.route("", methods=["POST"])
@roles_required(UserRole.PROPERTY_MANAGER)
def rfq_add():
    data = _body()
    r = rfq_dao.create_rfq(current_user, data, submit=bool(data.get("submit")))
    return jsonify(rfq_to_dict(r)), 201


@rfq_bp.route("/<int:rfq_id>", methods=["GET"])
@login_required
def rfq_detail(rfq_id: int):
    return jsonify(rfq_to_dict(rfq_dao.get_rfq(current_user, rfq_id)))


@rfq_bp.route("/<int:rfq_id>", methods=["PUT"])
@roles_required(UserRole.PROPERTY_MANAGER)
def rfq_edit(rfq_id: int):
    data = _body()
    r = rfq_dao.update_rfq(current_user, rfq_id, data, resubmit=bool(data.get("resubmit")))
    return jsonify(rfq_to_dict(r))


@rfq_bp.route("/<int:rfq_id>", methods=["DELETE"])
@roles_required(UserRole.PROPERTY_MANAGER)
def rfq_delete(rfq_id: int):
    rfq_dao.delete_rfq(current_user, rfq_id)
    return "", 204


@rfq_bp.route("/<int:rfq_id>/submit", methods=["POST"])
@roles_required(UserRole.PROPERTY_MANAGER)
def rfq_submit(rfq_id: int):
    return jsonify(rfq_to_dict(rfq_dao.submit_rfq(current_user, rfq_id)))


@rfq_bp.route("/<int:rfq_id>/status", methods=["POST"])
@roles_required(UserRole.PROPERTY_MANAGER)
def rfq_change_status(rfq_id: int):
    data = _body()
    r = rfq_dao.change_rfq_status(
        current_user,
        rfq_id,
        data.get("action"),
        rejection_reason=data.get("rejection_reason"),
        expected_status=data.get("expected_status"),
    )
    return jsonify(rfq_to_dict(r))


@rfq_bp.route("/<int:rfq_id>/convert", methods=["POST"])
@roles_required(UserRole.PROPERTY_MANAGER)
def rfq_convert(rfq_id: int):
    o = order_dao.convert_rfq_to_order(current_user, rfq_id, _body())
    return jsonify(order_to_dict(o)), 201


# -------- comparison / selection by RFQ number --------
@rfq_bp.route("/by-number/<rfq_number>/quotations", methods=["GET"])
@roles_required(UserRole.PROPERTY_MANAGER)
def rfq_quotations(rfq_number: str):
    return jsonify(quotation_dao.list_quotations_for_rfq(current_user, rfq_number))


@rfq_bp.route("/by-number/<rfq_number>/select", methods=["POST"])
@roles_required(UserRole.PROPERTY_MANAGER)
def rfq_select_quotation(rfq_number: str):
    data = _body()
    result = quotation_dao.select_quotation(current_user, rfq_number, data.get("quotation_id"))
    return jsonify(result)
