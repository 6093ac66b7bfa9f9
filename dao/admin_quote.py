import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from configs import db
from db.models.admin_quote import AdminQuote, AdminQuoteStatus
from db.models.notification import NotificationType
from db.models.rfq import RFQ
from db.models.user import UserRole
from dao import notification as notification_dao
from dao import rfq as rfq_dao
from utils import rfq_workflow as wf
from utils.errors import ConflictError, NotFoundError, PermissionDeniedError
from utils.money import to_money
from utils.numbering import next_number

logger = logging.getLogger(__name__)


def issue_admin_quote(
    admin,
    rfq_id: int,
    subtotal,
    tax=0,
    estimated_duration: Optional[str] = None,
    notes: Optional[str] = None,
) -> AdminQuote:
    """An administrator prices the RFQ directly; the RFQ moves to QUOTED."""
    if not admin.has_role(UserRole.ADMIN):
        raise PermissionDeniedError("Only administrators can issue quotes.")
    subtotal = to_money(subtotal, "Subtotal")
    tax = to_money(tax if tax is not None else 0, "Tax")

    rfq = (
        RFQ.query.filter_by(id=int(rfq_id))
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not rfq:
        raise NotFoundError("RFQ not found.")
    if rfq.admin_quote is not None:
        raise ConflictError(f"RFQ {rfq.rfq_number} already has a quote.")

    rfq_dao.apply_transition(rfq, wf.RFQAction.ISSUE_QUOTE, admin)
    quote = AdminQuote(
        quote_number=next_number(AdminQuote.quote_number, "ADMIN_QUOTE_NUMBER_PREFIX"),
        rfq=rfq,
        admin_id=admin.id,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        estimated_duration=(estimated_duration or "").strip() or None,
        notes=(notes or "").strip() or None,
        status=AdminQuoteStatus.PENDING,
    )
    db.session.add(quote)
    db.session.flush()

    notification_dao.notify(
        rfq.property_manager_id,
        f"Your RFQ {rfq.rfq_number} has been quoted: {quote.quote_number}.",
        NotificationType.RFQ_QUOTED,
        "PROPERTY_MANAGER_RFQ",
        rfq.id,
    )
    _commit()
    logger.info("Admin %s quoted RFQ %s (%s)", admin.id, rfq.rfq_number, quote.total)
    return quote


def _commit():
    try:
        db.session.commit()
    except (StaleDataError, IntegrityError):
        db.session.rollback()
        raise ConflictError()
    except SQLAlchemyError:
        db.session.rollback()
        raise
