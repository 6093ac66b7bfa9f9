import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from configs import db
from db.models.notification import NotificationType
from db.models.quotation import Quotation, QuotationStatus
from db.models.rfq import RFQ, RFQStatus
from dao import contractor as contractor_dao
from dao import invite as invite_dao
from dao import notification as notification_dao
from dao import rfq as rfq_dao
from utils import rfq_workflow as wf
from utils.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    ValidationError,
)
from utils.money import to_money
from utils.numbering import next_number
from utils.serializers import quotation_to_dict

logger = logging.getLogger(__name__)

COMPARABLE_STATES = (RFQStatus.RECEIVED, RFQStatus.UNDER_REVIEW)
APPROVED_VIEW_STATES = (RFQStatus.APPROVED, RFQStatus.CONVERTED_TO_ORDER)


# ======== Contractor side ========
def receive_quotation(
    rfq_number: str,
    contractor,
    subtotal,
    tax=0,
    notes: Optional[str] = None,
    attachments: Optional[List[str]] = None,
) -> Quotation:
    """Record a contractor's quotation; the first one moves SUBMITTED -> RECEIVED."""
    subtotal = to_money(subtotal, "Subtotal")
    tax = to_money(tax if tax is not None else 0, "Tax")
    attachments = rfq_dao.normalize_attachments(attachments)

    rfq = (
        RFQ.query.filter_by(rfq_number=(rfq_number or "").strip())
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not rfq:
        raise NotFoundError("RFQ not found.")
    if not wf.can(rfq.status, wf.RFQAction.RECEIVE_QUOTATION):
        raise PreconditionError(
            f"RFQ {rfq.rfq_number} is not accepting quotations (status: {rfq.status.value})."
        )
    duplicate = Quotation.query.filter_by(rfq_id=rfq.id, contractor_id=contractor.id).first()
    if duplicate:
        raise ConflictError("This contractor has already quoted on this RFQ.")

    q = Quotation(
        quote_number=next_number(Quotation.quote_number, "QUOTE_NUMBER_PREFIX"),
        rfq=rfq,
        rfq_number=rfq.rfq_number,
        contractor_id=contractor.id,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        notes=(notes or "").strip() or None,
        attachments=attachments,
        status=QuotationStatus.SUBMITTED,
    )
    db.session.add(q)
    _flush()

    rfq_dao.apply_transition(rfq, wf.RFQAction.RECEIVE_QUOTATION, contractor.user)
    notification_dao.notify(
        rfq.property_manager_id,
        f"A quotation ({q.quote_number}) was submitted for RFQ {rfq.rfq_number} "
        f"by {contractor.display_name}.",
        NotificationType.QUOTATION_RECEIVED,
        "QUOTATION",
        q.id,
    )
    _commit()
    logger.info(
        "Quotation %s (total %s) received for RFQ %s from contractor %s",
        q.quote_number,
        q.total,
        rfq.rfq_number,
        contractor.id,
    )
    return q


def submit_portal_quotation(user, rfq_number: str, fields: Dict) -> Quotation:
    """Quotation from a logged-in contractor who was invited to the RFQ."""
    contractor = contractor_dao.get_contractor_for_user(user)
    rfq = RFQ.query.filter_by(rfq_number=(rfq_number or "").strip()).first()
    if not rfq:
        raise NotFoundError("RFQ not found.")
    if contractor.id not in (rfq.selected_contractor_ids or []):
        raise PermissionDeniedError("This RFQ was not sent to you.")
    return receive_quotation(
        rfq.rfq_number,
        contractor,
        fields.get("subtotal"),
        fields.get("tax", 0),
        fields.get("notes"),
        fields.get("attachments"),
    )


def submit_external_quotation(
    token: str, total, notes: Optional[str] = None, attachments=None
) -> Quotation:
    """Quotation through a one-time invite link; tax is not itemised there."""
    total = to_money(total, "Total")
    inv = invite_dao.get_valid_invite(token, lock=True)
    contractor = inv.contractor or contractor_dao.get_or_create_by_email(inv.email, inv.name)
    invite_dao.mark_used(inv)
    note = notes or f"External contractor quotation submitted via e-mail link for RFQ: {inv.rfq.title}"
    return receive_quotation(inv.rfq.rfq_number, contractor, total, 0, note, attachments)


# ======== Property-manager side ========
def list_quotations_for_rfq(user, rfq_number: str) -> List[Dict]:
    """Quotations to compare, cheapest first, each with the contractor's rating."""
    rfq = rfq_dao.get_owned_rfq_by_number(user, rfq_number)
    if rfq.status not in COMPARABLE_STATES:
        raise PreconditionError("RFQ must be in Received or Under Review to compare quotations.")
    quotations = (
        Quotation.query.filter_by(rfq_id=rfq.id)
        .order_by(Quotation.total.asc(), Quotation.id.asc())
        .all()
    )
    ratings = contractor_dao.average_ratings(q.contractor_id for q in quotations)
    return [quotation_to_dict(q, ratings.get(q.contractor_id)) for q in quotations]


def select_quotation(user, rfq_number: str, quotation_id: int) -> Dict:
    """
    Approve one quotation and reject the others in a single transaction.

    The RFQ row is locked and version-checked, so of two concurrent selections
    only one commits; the other sees APPROVED (precondition) or a stale
    version (conflict). The partial unique index on quotation backs this up.
    """
    try:
        quotation_id = int(quotation_id)
    except (TypeError, ValueError):
        raise ValidationError("quotation_id must be an integer.") from None

    rfq = rfq_dao.get_owned_rfq_by_number(user, rfq_number, lock=True)
    if rfq.generated_order is not None:
        raise PreconditionError("This RFQ has already been converted to an order.")
    if rfq.status != RFQStatus.UNDER_REVIEW:
        wf.next_status(rfq.status, wf.RFQAction.SELECT_QUOTATION)

    quotations = Quotation.query.filter_by(rfq_id=rfq.id).all()
    if not quotations:
        raise NotFoundError("No quotations found for this RFQ number.")
    selected = next((q for q in quotations if q.id == quotation_id), None)
    if selected is None:
        raise ValidationError("Selected quotation does not belong to this RFQ.")

    rfq_dao.apply_transition(rfq, wf.RFQAction.SELECT_QUOTATION, user)
    rfq.approved_date = datetime.utcnow()

    rejected = []
    for q in quotations:
        if q is selected:
            continue
        q.status = QuotationStatus.REJECTED
        q.rejection_reason = "Not selected"
        rejected.append(q.id)
    # rejections flush first so the one-approved index never sees two rows
    _flush()
    selected.status = QuotationStatus.APPROVED
    selected.rejection_reason = None

    notification_dao.notify_admins(
        f"Quotation {selected.quote_number} was selected for RFQ {rfq.rfq_number} "
        f"by {user.display_name}",
        NotificationType.RFQ_APPROVED,
        "PROPERTY_MANAGER_RFQ",
        rfq.id,
    )
    _commit()
    logger.info(
        "RFQ %s: quotation %s approved, %d rejected",
        rfq.rfq_number,
        selected.quote_number,
        len(rejected),
    )
    return {
        "success": True,
        "rfq_number": rfq.rfq_number,
        "rfq_status": rfq.status.value,
        "approved_quotation_id": selected.id,
        "rejected_quotation_ids": rejected,
    }


def get_approved_quotation(rfq_id: int) -> Optional[Quotation]:
    return Quotation.query.filter_by(rfq_id=rfq_id, status=QuotationStatus.APPROVED).first()


def list_approved_quotations(user) -> List[Dict]:
    """Approved view: winning quotations stay visible after conversion."""
    rfq_dao.ensure_property_manager(user)
    rows = (
        Quotation.query.join(RFQ, Quotation.rfq_id == RFQ.id)
        .filter(
            RFQ.property_manager_id == user.id,
            RFQ.status.in_(APPROVED_VIEW_STATES),
            Quotation.status == QuotationStatus.APPROVED,
        )
        .order_by(Quotation.id.desc())
        .all()
    )
    ratings = contractor_dao.average_ratings(q.contractor_id for q in rows)
    out = []
    for q in rows:
        d = quotation_to_dict(q, ratings.get(q.contractor_id))
        d["rfq_status"] = q.rfq.status.value
        d["generated_order_id"] = q.rfq.generated_order_id
        out.append(d)
    return out


def _commit():
    _finish(db.session.commit)


def _flush():
    _finish(db.session.flush)


def _finish(step):
    try:
        step()
    except (StaleDataError, IntegrityError):
        db.session.rollback()
        raise ConflictError()
    except SQLAlchemyError:
        db.session.rollback()
        raise
