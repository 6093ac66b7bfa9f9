import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify

from admin.setup import init_admin
from blueprint import blue_print
from configs import db, login
from db.models.user import User
from utils.errors import register_error_handlers

load_dotenv()


def _config_from_env() -> dict:
    return {
        "SECRET_KEY": os.getenv("SECRET_KEY", "dev_secret"),
        "SQLALCHEMY_DATABASE_URI": os.getenv("DATABASE_URL", "sqlite:///rfq.db"),
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
        "RFQ_NUMBER_PREFIX": os.getenv("RFQ_NUMBER_PREFIX", "RFQ"),
        "QUOTE_NUMBER_PREFIX": os.getenv("QUOTE_NUMBER_PREFIX", "QUO"),
        "ADMIN_QUOTE_NUMBER_PREFIX": os.getenv("ADMIN_QUOTE_NUMBER_PREFIX", "QUA"),
        "ORDER_NUMBER_PREFIX": os.getenv("ORDER_NUMBER_PREFIX", "ORD"),
        "INVITE_EXPIRY_DAYS": int(os.getenv("INVITE_EXPIRY_DAYS", "14")),
    }


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config.update(_config_from_env())
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db.init_app(app)
    login.init_app(app)

    init_admin(app)  # /manage
    blue_print(app)
    register_error_handlers(app)
    return app


@login.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login.unauthorized_handler
def unauthorized():
    return jsonify({"error": "UNAUTHORIZED", "message": "Login required."}), 401


app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)
