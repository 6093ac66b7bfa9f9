import secrets
from datetime import datetime, timedelta
from typing import Optional
from flask import current_app
from configs import db
from db.models.invite import QuoteInvite
from utils.errors import NotFoundError, PreconditionError


def create_invite(rfq, email: str, name: Optional[str] = None, contractor=None) -> QuoteInvite:
    """Queue a one-time submission link for ``rfq``; the caller commits."""
    days = int(current_app.config.get("INVITE_EXPIRY_DAYS", 14))
    inv = QuoteInvite(
        token=secrets.token_urlsafe(32),
        email=email.strip().lower(),
        name=name,
        rfq=rfq,
        contractor_id=contractor.id if contractor else None,
        expires_at=datetime.utcnow() + timedelta(days=days),
    )
    db.session.add(inv)
    return inv


def get_valid_invite(token: str, *, lock: bool = False) -> QuoteInvite:
    q = QuoteInvite.query.filter_by(token=(token or "").strip())
    if lock:
        q = q.with_for_update().populate_existing()
    inv = q.first()
    if not inv:
        raise NotFoundError("This quotation link is not valid.")
    if inv.used_at is not None:
        raise PreconditionError("This quotation link has already been used.")
    if inv.is_expired():
        raise PreconditionError("This quotation link has expired.")
    return inv


def mark_used(inv: QuoteInvite):
    inv.used_at = datetime.utcnow()
