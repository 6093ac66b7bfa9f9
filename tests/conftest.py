import os

# the module-level app in app.py reads this on import
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest

from app import create_app
from configs import db
from dao import contractor as contractor_dao
from dao import user as user_dao
from db.models.user import UserRole

PASSWORD = "password123"


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "SECRET_KEY": "test",
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    return user_dao.create_user("admin", "admin@example.com", PASSWORD, UserRole.ADMIN, "Ada Admin")


@pytest.fixture
def pm(app, admin):
    return user_dao.create_user(
        "pm1", "pm1@example.com", PASSWORD, UserRole.PROPERTY_MANAGER, "Pat Manager"
    )


@pytest.fixture
def other_pm(app):
    return user_dao.create_user(
        "pm2", "pm2@example.com", PASSWORD, UserRole.PROPERTY_MANAGER, "Sam Manager"
    )


@pytest.fixture
def portal_contractor(app):
    """Contractor with a portal login; returns (user, contractor)."""
    u = user_dao.create_user(
        "roofer", "roofing@example.com", PASSWORD, UserRole.CONTRACTOR, "Rita Roofer"
    )
    c = contractor_dao.create_contractor(
        {
            "email": "roofing@example.com",
            "first_name": "Rita",
            "last_name": "Roofer",
            "company_name": "Rita's Roofing",
            "portal_access_enabled": True,
            "user_id": u.id,
        }
    )
    return u, c


@pytest.fixture
def contractors(app):
    """Three e-mail-only contractors."""
    return [
        contractor_dao.create_contractor({"email": f"c{i}@example.com", "company_name": name})
        for i, name in enumerate(("Pipe & Sons", "Watt Electrical", "Brick Builders"), 1)
    ]


@pytest.fixture
def rfq_fields():
    def make(**overrides):
        fields = {
            "title": "Fix roof leak",
            "description": "Water ingress above unit 4B after heavy rain.",
            "scope_of_work": "Inspect roof sheeting, replace flashing, reseal.",
            "building_name": "Harbour View",
            "building_address": "12 Beach Road, Sea Point",
            "urgency": "HIGH",
        }
        fields.update(overrides)
        return fields

    return make


@pytest.fixture
def login(client):
    def do_login(username, password=PASSWORD):
        client.post("/auth/logout")
        resp = client.post("/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp

    return do_login
