# index.py
from datetime import datetime
from flask import Blueprint, jsonify
from flask_login import current_user
from configs import db
from sqlalchemy import text

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def home():
    return jsonify(
        {
            "service": "rfq-backoffice",
            "authenticated": bool(current_user.is_authenticated),
            "time": datetime.utcnow().isoformat(),
        }
    )


@main_bp.route("/health")
def health():
    db.session.execute(text("SELECT 1"))
    return jsonify({"status": "ok"})
