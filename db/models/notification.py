from datetime import datetime
from configs import db
import enum


class NotificationType(enum.Enum):
    RFQ_SUBMITTED = "RFQ_SUBMITTED"
    RFQ_QUOTED = "RFQ_QUOTED"
    QUOTATION_RECEIVED = "QUOTATION_RECEIVED"
    RFQ_APPROVED = "RFQ_APPROVED"
    RFQ_REJECTED = "RFQ_REJECTED"
    ORDER_ASSIGNED = "ORDER_ASSIGNED"
    ORDER_SUBMITTED = "ORDER_SUBMITTED"
    ORDER_STATUS_UPDATE = "ORDER_STATUS_UPDATE"


class Notification(db.Model):
    __tablename__ = "notification"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    recipient_id = db.Column(
        db.Integer, db.ForeignKey("user_account.id"), nullable=False, index=True
    )
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.Enum(NotificationType), nullable=False)
    related_entity_type = db.Column(db.String(40))
    related_entity_id = db.Column(db.Integer)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    recipient = db.relationship("User")
