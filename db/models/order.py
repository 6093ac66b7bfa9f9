from configs import db
from datetime import datetime
import enum


class OrderStatus(enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Order(db.Model):
    __tablename__ = "pm_order"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_number = db.Column(db.String(40), unique=True, nullable=False)

    property_manager_id = db.Column(
        db.Integer, db.ForeignKey("user_account.id"), nullable=False, index=True
    )
    contractor_id = db.Column(db.Integer, db.ForeignKey("contractor.id"))
    # one order per RFQ
    generated_from_rfq_id = db.Column(
        db.Integer, db.ForeignKey("pm_rfq.id"), unique=True
    )

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    scope_of_work = db.Column(db.Text, nullable=False)
    building_name = db.Column(db.String(255))
    building_address = db.Column(db.Text, nullable=False)

    # [{"description": ..., "quantity": ..., "unit_price": ...}]
    materials = db.Column(db.JSON, default=list)
    labour_rate = db.Column(db.Numeric(18, 2), default=0)
    call_out_fee = db.Column(db.Numeric(18, 2), default=0)
    total_amount = db.Column(db.Numeric(18, 2), default=0)

    notes = db.Column(db.Text)
    attachments = db.Column(db.JSON, default=list)

    status = db.Column(
        db.Enum(OrderStatus, name="orderstatus"),
        default=OrderStatus.DRAFT,
        nullable=False,
    )
    progress_percentage = db.Column(db.Integer, default=0, nullable=False)
    submitted_date = db.Column(db.DateTime)
    accepted_date = db.Column(db.DateTime)
    start_date = db.Column(db.DateTime)
    completed_date = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    property_manager = db.relationship("User", backref="orders")
    contractor = db.relationship("Contractor", backref="orders")
    source_rfq = db.relationship("RFQ", back_populates="generated_order")

    def __str__(self):
        return self.order_number
