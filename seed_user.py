from configs import db
from db.models.user import User, UserRole
from db.models.contractor import Contractor
from app import app  # Flask app

DEMO_PASSWORD = "password123"


def seed_users():
    users = [
        ("admin", "admin@example.com", "System Admin", UserRole.ADMIN),
        ("pm1", "pm1@example.com", "Pat Manager", UserRole.PROPERTY_MANAGER),
        ("pm2", "pm2@example.com", "Sam Manager", UserRole.PROPERTY_MANAGER),
        ("contractor1", "roofing@example.com", "Rita Roofer", UserRole.CONTRACTOR),
    ]
    for username, email, full_name, role in users:
        u = User.query.filter_by(username=username).first()
        if u:
            continue
        u = User(username=username, email=email, full_name=full_name, role=role, is_active=True)
        u.set_password(DEMO_PASSWORD)
        db.session.add(u)
    db.session.flush()

    # portal contractor profile for contractor1
    portal = User.query.filter_by(username="contractor1").first()
    if not Contractor.query.filter_by(email=portal.email).first():
        db.session.add(
            Contractor(
                first_name="Rita",
                last_name="Roofer",
                company_name="Rita's Roofing",
                email=portal.email,
                phone="021 555 0101",
                portal_access_enabled=True,
                user_id=portal.id,
            )
        )
    db.session.commit()
    print("✅ Seeded users with all defined roles")


if __name__ == "__main__":
    with app.app_context():
        db.create_all()
        seed_users()
