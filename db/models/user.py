# db/models/user.py
import enum
from datetime import datetime
from configs import db
from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash


class UserRole(enum.Enum):
    ADMIN = "ADMIN"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    CONTRACTOR = "CONTRACTOR"  # portal access for invited contractors


class User(db.Model, UserMixin):
    __tablename__ = "user_account"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120))
    phone = db.Column(db.String(30))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    role = db.Column(
        db.Enum(UserRole), default=UserRole.PROPERTY_MANAGER, nullable=False
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def get_id(self):
        return str(self.id)

    def has_role(self, *roles: UserRole):
        """True if the user holds one of the given roles."""
        return self.role in roles

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    def __str__(self):
        return self.display_name
