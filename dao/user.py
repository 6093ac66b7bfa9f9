from typing import Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from configs import db
from db.models.user import User, UserRole
from utils.errors import ConflictError, PermissionDeniedError, ValidationError


def authenticate(username: str, password: str) -> Optional[User]:
    user = User.query.filter_by(username=(username or "").strip()).first()
    if not user or not user.check_password(password or ""):
        return None
    return user


def create_user(
    username: str,
    email: str,
    password: str,
    role: UserRole,
    full_name: str | None = None,
    phone: str | None = None,
) -> User:
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if len(username) < 3:
        raise ValidationError("Username must be at least 3 characters.")
    if "@" not in email:
        raise ValidationError("A valid e-mail address is required.")
    if len(password or "") < 8:
        raise ValidationError("Password must be at least 8 characters.")

    u = User(
        username=username,
        email=email,
        full_name=(full_name or "").strip() or None,
        phone=phone,
        role=role,
        is_active=True,
    )
    u.set_password(password)
    db.session.add(u)
    _commit()
    return u


def create_property_manager(admin, fields: dict) -> User:
    """Administrators onboard property managers."""
    if not admin.has_role(UserRole.ADMIN):
        raise PermissionDeniedError("Only administrators can onboard property managers.")
    return create_user(
        fields.get("username"),
        fields.get("email"),
        fields.get("password"),
        UserRole.PROPERTY_MANAGER,
        full_name=fields.get("full_name"),
        phone=fields.get("phone"),
    )


def _commit():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username or e-mail is already in use.")
    except SQLAlchemyError:
        db.session.rollback()
        raise
