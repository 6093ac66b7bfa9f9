from datetime import datetime
from configs import db
from sqlalchemy import text
import enum


class QuotationStatus(enum.Enum):
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Quotation(db.Model):
    """A contractor's priced response to an RFQ."""

    __tablename__ = "quotation"
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    quote_number = db.Column(db.String(40), unique=True, nullable=False)

    rfq_id = db.Column(
        db.Integer, db.ForeignKey("pm_rfq.id", ondelete="CASCADE"), nullable=False
    )
    rfq_number = db.Column(db.String(40), nullable=False, index=True)
    contractor_id = db.Column(db.Integer, db.ForeignKey("contractor.id"), nullable=False)

    subtotal = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(18, 2), nullable=False, default=0)

    notes = db.Column(db.Text)
    attachments = db.Column(db.JSON, default=list)

    status = db.Column(
        db.Enum(QuotationStatus),
        default=QuotationStatus.SUBMITTED,
        nullable=False,
    )
    rejection_reason = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # at most one APPROVED quotation per RFQ
    __table_args__ = (
        db.Index(
            "uq_quotation_one_approved_per_rfq",
            "rfq_id",
            unique=True,
            sqlite_where=text("status = 'APPROVED'"),
            postgresql_where=text("status = 'APPROVED'"),
        ),
    )

    rfq = db.relationship("RFQ", back_populates="quotations")
    contractor = db.relationship("Contractor", backref="quotations")

    @property
    def approved(self) -> bool:
        return self.status == QuotationStatus.APPROVED

    def __str__(self):
        return self.quote_number
