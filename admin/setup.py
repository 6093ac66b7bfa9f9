# admin/setup.py
from flask import abort, redirect, url_for
from flask_login import current_user, logout_user
from flask_admin import Admin, AdminIndexView, expose
from flask_admin.contrib.sqla import ModelView
from flask_admin.menu import MenuLink
from configs import db
from db.models.user import UserRole


def _is_admin() -> bool:
    return current_user.is_authenticated and current_user.has_role(UserRole.ADMIN)


def _deny():
    # the API has no login page; unauthenticated -> 401, wrong role -> 403
    abort(401 if not current_user.is_authenticated else 403)


class ManageIndex(AdminIndexView):
    @expose("/")
    def index(self):
        if not _is_admin():
            _deny()
        return super().index()

    @expose("/logout")
    def admin_logout(self):
        if current_user.is_authenticated:
            logout_user()
        return redirect(url_for("main.home"))

    def is_accessible(self):
        return _is_admin()

    def inaccessible_callback(self, name, **kwargs):
        _deny()


class SecureModelView(ModelView):
    can_view_details = True
    can_export = True
    form_excluded_columns = ["version_id", "created_at", "updated_at"]

    def is_accessible(self):
        return _is_admin()

    def inaccessible_callback(self, name, **kwargs):
        _deny()


class UserView(SecureModelView):
    column_searchable_list = ["username", "email", "full_name"]
    column_filters = ["role", "is_active"]
    column_list = ["id", "username", "email", "full_name", "role", "is_active"]
    form_excluded_columns = ["password_hash", "created_at"]


class ReadOnlyModelView(SecureModelView):
    # these rows only change through the RFQ workflow
    can_create = False
    can_edit = False
    can_delete = False


class RFQView(ReadOnlyModelView):
    column_searchable_list = ["rfq_number", "title"]
    column_filters = ["status", "urgency", "property_manager_id"]
    column_list = [
        "id",
        "rfq_number",
        "title",
        "property_manager",
        "building_name",
        "urgency",
        "status",
        "submitted_date",
    ]


class QuotationView(ReadOnlyModelView):
    column_searchable_list = ["quote_number", "rfq_number"]
    column_filters = ["status", "rfq_number"]
    column_list = ["id", "quote_number", "rfq_number", "contractor", "subtotal", "tax", "total", "status"]


class OrderView(SecureModelView):
    column_searchable_list = ["order_number", "title"]
    column_filters = ["status", "contractor_id"]
    column_list = [
        "id",
        "order_number",
        "title",
        "property_manager",
        "contractor",
        "total_amount",
        "status",
        "progress_percentage",
    ]
    can_create = False
    can_delete = False
    # status, dates, totals and the RFQ link belong to the order workflow
    form_columns = [
        "title",
        "description",
        "scope_of_work",
        "building_name",
        "building_address",
        "notes",
    ]


def init_admin(app):
    admin = Admin(
        app,
        name="RFQ Back Office",
        index_view=ManageIndex(url="/manage"),
        url="/manage",
    )
    # imported here to keep configs -> models -> admin acyclic
    from db.models.user import User
    from db.models.building import Building
    from db.models.contractor import Contractor, ContractorReview
    from db.models.rfq import RFQ
    from db.models.quotation import Quotation
    from db.models.admin_quote import AdminQuote
    from db.models.order import Order
    from db.models.invite import QuoteInvite
    from db.models.notification import Notification

    admin.add_view(UserView(User, db.session, category="System", endpoint="admin_user", name="Users"))
    admin.add_view(
        SecureModelView(
            Notification,
            db.session,
            category="System",
            endpoint="admin_notification",
            name="Notifications",
        )
    )
    admin.add_view(
        SecureModelView(
            Building,
            db.session,
            category="Directory",
            endpoint="admin_building",
            name="Buildings",
        )
    )
    admin.add_view(
        SecureModelView(
            Contractor,
            db.session,
            category="Directory",
            endpoint="admin_contractor",
            name="Contractors",
        )
    )
    admin.add_view(
        SecureModelView(
            ContractorReview,
            db.session,
            category="Directory",
            endpoint="admin_contractor_review",
            name="Contractor Reviews",
        )
    )
    admin.add_view(RFQView(RFQ, db.session, category="RFQ", endpoint="admin_rfq", name="RFQs"))
    admin.add_view(
        QuotationView(
            Quotation, db.session, category="RFQ", endpoint="admin_quotation", name="Quotations"
        )
    )
    admin.add_view(
        ReadOnlyModelView(
            AdminQuote,
            db.session,
            category="RFQ",
            endpoint="admin_admin_quote",
            name="Admin Quotes",
        )
    )
    admin.add_view(
        ReadOnlyModelView(
            QuoteInvite,
            db.session,
            category="RFQ",
            endpoint="admin_invite",
            name="Quote Invites",
        )
    )
    admin.add_view(OrderView(Order, db.session, category="Orders", endpoint="admin_order", name="Orders"))
    admin.add_link(
        MenuLink(
            name="Logout",
            category="System",
            endpoint="admin.admin_logout",
        )
    )
    return admin
