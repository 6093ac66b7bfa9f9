# seed.py
from configs import db
from db.models.building import Building
from db.models.contractor import Contractor, ContractorReview
from db.models.rfq import RFQ
from db.models.user import User
from dao import contractor as contractor_dao
from dao import quotation as quotation_dao
from dao import rfq as rfq_dao
from seed_user import seed_users
from app import app  # Flask app


# -------- Buildings --------
def seed_buildings():
    buildings = [
        ("pm1", "Harbour View", "12 Beach Road, Sea Point, Cape Town"),
        ("pm1", "Oak Court", "7 Oak Avenue, Rondebosch, Cape Town"),
        ("pm2", "The Palms", "88 Main Street, Durbanville"),
    ]
    for username, name, address in buildings:
        pm = User.query.filter_by(username=username).first()
        b = Building.query.filter_by(name=name, property_manager_id=pm.id).first()
        if not b:
            db.session.add(Building(name=name, address=address, property_manager_id=pm.id))
        else:
            b.address = address
    db.session.commit()
    print("✓ Buildings seeded/updated")


# -------- Contractors --------
def seed_contractors():
    contractors = [
        # email, first, last, company, portal
        ("plumbing@example.com", "Peter", "Pipe", "Pipe & Sons Plumbing", False),
        ("electric@example.com", "Ellen", "Watt", "Watt Electrical", False),
        ("builders@example.com", "Bob", "Brick", "Brick Builders", False),
    ]
    for email, first, last, company, portal in contractors:
        c = Contractor.query.filter_by(email=email).first()
        if not c:
            db.session.add(
                Contractor(
                    first_name=first,
                    last_name=last,
                    company_name=company,
                    email=email,
                    portal_access_enabled=portal,
                )
            )
        else:
            c.company_name = company
    db.session.commit()

    pm = User.query.filter_by(username="pm1").first()
    reviews = [("roofing@example.com", 5), ("roofing@example.com", 4), ("builders@example.com", 3)]
    if not ContractorReview.query.count():
        for email, rating in reviews:
            c = Contractor.query.filter_by(email=email).first()
            db.session.add(ContractorReview(contractor_id=c.id, reviewer_id=pm.id, rating=rating))
        db.session.commit()
    print("✓ Contractors seeded/updated")


# -------- RFQ walk-through --------
def seed_rfq_walkthrough():
    """Fix roof leak: submit, two quotations, review, select."""
    if RFQ.query.filter_by(title="Fix roof leak").first():
        print("✓ RFQ walk-through already present")
        return
    pm = User.query.filter_by(username="pm1").first()
    building = Building.query.filter_by(name="Harbour View").first()
    roofer = Contractor.query.filter_by(email="roofing@example.com").first()
    builder = Contractor.query.filter_by(email="builders@example.com").first()

    rfq = rfq_dao.create_rfq(
        pm,
        {
            "title": "Fix roof leak",
            "description": "Water ingress above unit 4B after heavy rain.",
            "scope_of_work": "Inspect roof sheeting, replace damaged flashing, reseal.",
            "building_id": building.id,
            "urgency": "HIGH",
            "contractor_ids": [roofer.id, builder.id],
        },
        submit=True,
    )
    quotation_dao.receive_quotation(rfq.rfq_number, roofer, 1000, 150, "Includes flashing.")
    q2 = quotation_dao.receive_quotation(rfq.rfq_number, builder, 1400, 210)
    rfq_dao.change_rfq_status(pm, rfq.id, "START_REVIEW")
    best = min(quotation_dao.list_quotations_for_rfq(pm, rfq.rfq_number), key=lambda q: q["total"])
    quotation_dao.select_quotation(pm, rfq.rfq_number, best["id"])
    rating = contractor_dao.average_ratings([roofer.id]).get(roofer.id)
    print(
        f"✓ RFQ {rfq.rfq_number} approved with {best['quote_number']} "
        f"(roofer rating {rating}); {q2.quote_number} rejected"
    )


if __name__ == "__main__":
    with app.app_context():
        db.create_all()
        seed_users()
        seed_buildings()
        seed_contractors()
        seed_rfq_walkthrough()
        print("✅ Seeded demo data")
