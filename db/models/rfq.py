from datetime import datetime
from configs import db
import enum


class RFQStatus(enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    RECEIVED = "RECEIVED"
    UNDER_REVIEW = "UNDER_REVIEW"
    QUOTED = "QUOTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CONVERTED_TO_ORDER = "CONVERTED_TO_ORDER"


class RFQUrgency(enum.Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class RFQ(db.Model):
    __tablename__ = "pm_rfq"
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    rfq_number = db.Column(db.String(40), unique=True, nullable=False, index=True)

    property_manager_id = db.Column(
        db.Integer, db.ForeignKey("user_account.id"), nullable=False, index=True
    )
    building_id = db.Column(db.Integer, db.ForeignKey("building.id"))

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    scope_of_work = db.Column(db.Text, nullable=False)
    # snapshot of the building at creation time
    building_name = db.Column(db.String(255))
    building_address = db.Column(db.Text, nullable=False)

    urgency = db.Column(db.Enum(RFQUrgency), default=RFQUrgency.NORMAL, nullable=False)
    estimated_budget = db.Column(db.Numeric(18, 2))
    notes = db.Column(db.Text)
    attachments = db.Column(db.JSON, default=list)
    selected_contractor_ids = db.Column(db.JSON, default=list)

    status = db.Column(
        db.Enum(RFQStatus), default=RFQStatus.DRAFT, nullable=False, index=True
    )
    submitted_date = db.Column(db.DateTime)
    approved_date = db.Column(db.DateTime)
    rejected_date = db.Column(db.DateTime)
    rejection_reason = db.Column(db.Text)

    # bumped on every UPDATE; concurrent writers on a stale row fail
    version_id = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    property_manager = db.relationship("User", backref="rfqs")
    building = db.relationship("Building")

    quotations = db.relationship(
        "Quotation",
        back_populates="rfq",
        cascade="all, delete-orphan",
        lazy="select",
        passive_deletes=True,
        order_by="Quotation.total",
    )
    admin_quote = db.relationship(
        "AdminQuote",
        back_populates="rfq",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    generated_order = db.relationship(
        "Order", back_populates="source_rfq", uselist=False
    )

    @property
    def generated_order_id(self):
        return self.generated_order.id if self.generated_order else None

    def __str__(self):
        return self.rfq_number
