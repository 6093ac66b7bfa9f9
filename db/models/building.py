from datetime import datetime
from configs import db


class Building(db.Model):
    __tablename__ = "building"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.Text, nullable=False)
    property_manager_id = db.Column(
        db.Integer, db.ForeignKey("user_account.id"), nullable=False, index=True
    )
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    property_manager = db.relationship("User", backref="buildings")

    def __str__(self):
        return self.name
