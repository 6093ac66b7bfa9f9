from datetime import datetime
from configs import db


class Contractor(db.Model):
    __tablename__ = "contractor"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    first_name = db.Column(db.String(120))
    last_name = db.Column(db.String(120))
    company_name = db.Column(db.String(255))
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(30))

    # Contractors without portal access are reached through emailed invite links
    portal_access_enabled = db.Column(db.Boolean, default=False, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user_account.id"), unique=True)

    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", backref=db.backref("contractor", uselist=False))

    @property
    def display_name(self) -> str:
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return self.company_name or full or self.email

    def __str__(self):
        return self.display_name


class ContractorReview(db.Model):
    __tablename__ = "contractor_review"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    contractor_id = db.Column(
        db.Integer,
        db.ForeignKey("contractor.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reviewer_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    rating = db.Column(db.Integer, nullable=False)  # 1..5
    comment = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    contractor = db.relationship(
        "Contractor",
        backref=db.backref(
            "reviews", cascade="all, delete-orphan", lazy="select", passive_deletes=True
        ),
    )
    reviewer = db.relationship("User")
