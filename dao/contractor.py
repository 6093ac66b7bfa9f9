from typing import Dict, Iterable, List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from configs import db
from db.models.contractor import Contractor, ContractorReview
from db.models.user import User, UserRole
from utils.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


def list_contractors() -> List[Contractor]:
    return (
        Contractor.query.filter_by(is_active=True)
        .order_by(Contractor.company_name.asc(), Contractor.email.asc())
        .all()
    )


def get_contractor(contractor_id: int) -> Optional[Contractor]:
    return db.session.get(Contractor, int(contractor_id))


def require_contractors(ids: Iterable) -> List[Contractor]:
    """Resolve contractor ids, failing on any unknown id."""
    try:
        wanted = sorted({int(i) for i in ids or []})
    except (TypeError, ValueError):
        raise ValidationError("Contractor ids must be integers.") from None
    if not wanted:
        return []
    found = Contractor.query.filter(Contractor.id.in_(wanted)).all()
    missing = set(wanted) - {c.id for c in found}
    if missing:
        raise NotFoundError(f"Contractor(s) not found: {sorted(missing)}.")
    return found


def get_contractor_for_user(user) -> Contractor:
    """Contractor record behind a portal login."""
    c = Contractor.query.filter_by(user_id=user.id).first()
    if not c:
        c = Contractor.query.filter_by(email=user.email).first()
    if not c or not c.portal_access_enabled:
        raise PermissionDeniedError("No contractor profile with portal access.")
    return c


def portal_user_for(contractor: Contractor) -> Optional[User]:
    if not contractor.portal_access_enabled:
        return None
    if contractor.user is not None:
        return contractor.user
    return User.query.filter_by(
        email=contractor.email, role=UserRole.CONTRACTOR
    ).first()


def get_or_create_by_email(email: str, name: str | None = None) -> Contractor:
    """Contractor for an external e-mail; adds to the session without committing."""
    email = (email or "").strip().lower()
    c = Contractor.query.filter_by(email=email).first()
    if c:
        return c
    c = Contractor(email=email, company_name=(name or "").strip() or None)
    db.session.add(c)
    db.session.flush()
    return c


def create_contractor(fields: dict) -> Contractor:
    email = (fields.get("email") or "").strip().lower()
    if "@" not in email:
        raise ValidationError("A valid e-mail address is required.")
    first = (fields.get("first_name") or "").strip() or None
    last = (fields.get("last_name") or "").strip() or None
    company = (fields.get("company_name") or "").strip() or None
    if not (company or first or last):
        raise ValidationError("Contractor needs a company name or a person's name.")

    c = Contractor(
        first_name=first,
        last_name=last,
        company_name=company,
        email=email,
        phone=fields.get("phone"),
        portal_access_enabled=bool(fields.get("portal_access_enabled", False)),
    )
    user_id = fields.get("user_id")
    if user_id:
        c.user_id = int(user_id)
    db.session.add(c)
    _commit()
    return c


def add_review(user, contractor_id: int, rating, comment: str | None = None) -> ContractorReview:
    contractor = get_contractor(contractor_id)
    if not contractor:
        raise NotFoundError("Contractor not found.")
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise ValidationError("Rating must be a whole number.") from None
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5.")
    r = ContractorReview(
        contractor_id=contractor.id, reviewer_id=user.id, rating=rating, comment=comment
    )
    db.session.add(r)
    _commit()
    return r


def average_ratings(contractor_ids: Iterable[int]) -> Dict[int, float]:
    """Average review rating per contractor, rounded to one decimal."""
    ids = list({int(i) for i in contractor_ids if i is not None})
    if not ids:
        return {}
    rows = (
        db.session.query(ContractorReview.contractor_id, func.avg(ContractorReview.rating))
        .filter(ContractorReview.contractor_id.in_(ids))
        .group_by(ContractorReview.contractor_id)
        .all()
    )
    return {cid: round(float(avg), 1) for cid, avg in rows if avg is not None}


def _commit():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A contractor with this e-mail already exists.")
    except SQLAlchemyError:
        db.session.rollback()
        raise
