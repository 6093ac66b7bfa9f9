# routes/quotation.py
from flask import Blueprint, jsonify, request
from flask_login import current_user
from dao import contractor as contractor_dao
from dao import quotation as quotation_dao
from db.models.user import UserRole
from utils.auth import roles_required
from utils.serializers import quotation_to_dict

quotation_bp = Blueprint("quotation_api", __name__, url_prefix="/api/quotations")
external_bp = Blueprint("external_api", __name__, url_prefix="/external")


@quotation_bp.route("", methods=["POST"])
@roles_required(UserRole.CONTRACTOR)
def quotation_add():
    """Portal submission from a contractor who was sent the RFQ."""
    data = request.get_json(silent=True) or {}
    q = quotation_dao.submit_portal_quotation(current_user, data.get("rfq_number"), data)
    rating = contractor_dao.average_ratings([q.contractor_id]).get(q.contractor_id)
    return jsonify(quotation_to_dict(q, rating)), 201


@quotation_bp.route("/approved", methods=["GET"])
@roles_required(UserRole.PROPERTY_MANAGER)
def quotation_approved():
    return jsonify(quotation_dao.list_approved_quotations(current_user))


@external_bp.route("/rfq/<token>/quotation", methods=["POST"])
def external_quotation(token: str):
    """No login: the invite token is the credential."""
    data = request.get_json(silent=True) or {}
    q = quotation_dao.submit_external_quotation(
        token, data.get("total"), data.get("notes"), data.get("attachments")
    )
    return (
        jsonify(
            {
                "success": True,
                "quote_number": q.quote_number,
                "rfq_number": q.rfq_number,
                "total": float(q.total),
            }
        ),
        201,
    )
