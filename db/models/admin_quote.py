from datetime import datetime
from configs import db
import enum


class AdminQuoteStatus(enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AdminQuote(db.Model):
    """Quote authored by an administrator in answer to an RFQ."""

    __tablename__ = "pm_quote"
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    quote_number = db.Column(db.String(40), unique=True, nullable=False)
    rfq_id = db.Column(
        db.Integer,
        db.ForeignKey("pm_rfq.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    admin_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))

    subtotal = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    estimated_duration = db.Column(db.String(120))
    notes = db.Column(db.Text)

    status = db.Column(
        db.Enum(AdminQuoteStatus), default=AdminQuoteStatus.PENDING, nullable=False
    )
    approved_by_pm_date = db.Column(db.DateTime)
    rejected_by_pm_date = db.Column(db.DateTime)
    pm_rejection_reason = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    rfq = db.relationship("RFQ", back_populates="admin_quote")
    admin = db.relationship("User")
