from datetime import datetime
from configs import db


class QuoteInvite(db.Model):
    """One-time link that lets an e-mail-only contractor quote on an RFQ."""

    __tablename__ = "quote_invite"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255))
    rfq_id = db.Column(
        db.Integer, db.ForeignKey("pm_rfq.id", ondelete="CASCADE"), nullable=False
    )
    contractor_id = db.Column(db.Integer, db.ForeignKey("contractor.id"))
    expires_at = db.Column(db.DateTime, nullable=False)
    used_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    rfq = db.relationship(
        "RFQ",
        backref=db.backref(
            "invites", cascade="all, delete-orphan", lazy="select", passive_deletes=True
        ),
    )
    contractor = db.relationship("Contractor")

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.utcnow()) >= self.expires_at
