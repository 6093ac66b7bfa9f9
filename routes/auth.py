from flask import Blueprint, abort, jsonify, request, session
from flask_login import current_user, login_required, login_user, logout_user
from dao import user as user_dao
from utils.errors import PermissionDeniedError, ValidationError
from utils.serializers import user_to_dict

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or request.form
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    if not username or not password:
        raise ValidationError("Username and password are required.")

    user = user_dao.authenticate(username, password)
    if not user:
        abort(401, description="Invalid username or password.")
    if not user.is_active:
        raise PermissionDeniedError("This account has been disabled.")

    session.clear()
    login_user(user, remember=bool(data.get("remember", True)))
    return jsonify(user_to_dict(user))


@auth_bp.route("/logout", methods=["POST"])
def logout():
    if current_user.is_authenticated:
        logout_user()
    return jsonify({"success": True})


@auth_bp.route("/me")
@login_required
def me():
    return jsonify(user_to_dict(current_user))
