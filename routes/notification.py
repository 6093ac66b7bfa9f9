# routes/notification.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from dao import notification as notification_dao
from utils.serializers import notification_to_dict

notification_bp = Blueprint("notification_api", __name__, url_prefix="/api/notifications")


@notification_bp.route("", methods=["GET"])
@login_required
def notification_list():
    unread = request.args.get("unread", "").lower() in ("1", "true", "yes")
    rows = notification_dao.list_notifications(current_user, unread_only=unread)
    return jsonify([notification_to_dict(n) for n in rows])


@notification_bp.route("/<int:notification_id>/read", methods=["POST"])
@login_required
def notification_read(notification_id: int):
    n = notification_dao.mark_read(current_user, notification_id)
    return jsonify(notification_to_dict(n))
