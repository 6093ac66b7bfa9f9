from index import main_bp
from routes.auth import auth_bp
from routes.rfq import rfq_bp
from routes.quotation import quotation_bp, external_bp
from routes.admin_api import admin_api_bp
from routes.order import order_bp
from routes.directory import directory_bp
from routes.notification import notification_bp


def blue_print(app):
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(rfq_bp)
    app.register_blueprint(quotation_bp)
    app.register_blueprint(external_bp)
    app.register_blueprint(admin_api_bp)
    app.register_blueprint(order_bp)
    app.register_blueprint(directory_bp)
    app.register_blueprint(notification_bp)
