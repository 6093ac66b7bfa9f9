import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from configs import db
from db.models.admin_quote import AdminQuoteStatus
from db.models.notification import NotificationType
from db.models.quotation import QuotationStatus
from db.models.rfq import RFQ, RFQStatus, RFQUrgency
from db.models.user import UserRole
from dao import building as building_dao
from dao import contractor as contractor_dao
from dao import invite as invite_dao
from dao import notification as notification_dao
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

logger = logging.getLogger(__name__)

# Form/JSON string -> RFQUrgency (case-insensitive)
_FORM_TO_URGENCY = {u.value.lower(): u for u in RFQUrgency}

# field -> minimum length after strip
_REQUIRED_TEXT = {
    "title": 3,
    "description": 10,
    "scope_of_work": 10,
}

STATUS_ACTIONS = (wf.RFQAction.START_REVIEW, wf.RFQAction.REJECT, wf.RFQAction.APPROVE)
EDITABLE_STATES = (RFQStatus.DRAFT, RFQStatus.SUBMITTED)


def _to_urgency(value) -> RFQUrgency:
    if value is None or value == "":
        return RFQUrgency.NORMAL
    if isinstance(value, RFQUrgency):
        return value
    try:
        return _FORM_TO_URGENCY[str(value).strip().lower()]
    except KeyError:
        raise ValidationError("Urgency must be one of LOW, NORMAL, HIGH, URGENT.") from None


def normalize_attachments(value) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError("Attachments must be a list of URLs.")
    out = []
    for idx, item in enumerate(value, 1):
        if not isinstance(item, str) or not item.strip():
            raise ValidationError(f"Attachment {idx}: expected a non-empty URL.")
        out.append(item.strip())
    return out


def _normalize_fields(fields: Dict, partial: bool = False) -> Dict:
    """Validate RFQ input. With ``partial`` only the keys present are checked."""
    out: Dict = {}
    for key, min_len in _REQUIRED_TEXT.items():
        if partial and fields.get(key) in (None, ""):
            continue
        value = (fields.get(key) or "").strip()
        if len(value) < min_len:
            label = key.replace("_", " ").capitalize()
            raise ValidationError(f"{label} is required (at least {min_len} characters).")
        out[key] = value

    if "building_id" in fields and fields.get("building_id") not in (None, ""):
        try:
            out["building_id"] = int(fields["building_id"])
        except (TypeError, ValueError):
            raise ValidationError("building_id must be an integer.") from None
    for key in ("building_name", "building_address"):
        value = fields.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            label = key.replace("_", " ").capitalize()
            raise ValidationError(f"{label} must be text.")
        if key == "building_name":
            out[key] = value.strip() or None
        elif value.strip():
            out[key] = value.strip()

    if not partial or "urgency" in fields:
        out["urgency"] = _to_urgency(fields.get("urgency"))
    if not partial or "estimated_budget" in fields:
        out["estimated_budget"] = to_money(
            fields.get("estimated_budget"), "Estimated budget", allow_none=True
        )
    if not partial or "notes" in fields:
        out["notes"] = (fields.get("notes") or "").strip() or None
    if not partial or "attachments" in fields:
        out["attachments"] = normalize_attachments(fields.get("attachments"))
    if not partial or "contractor_ids" in fields:
        out["contractor_ids"] = [
            c.id for c in contractor_dao.require_contractors(fields.get("contractor_ids"))
        ]
    if not partial or "external_contractor_emails" in fields:
        emails = fields.get("external_contractor_emails") or []
        if not isinstance(emails, (list, tuple)):
            raise ValidationError("external_contractor_emails must be a list.")
        for e in emails:
            if not isinstance(e, str) or "@" not in e:
                raise ValidationError(f"Invalid contractor e-mail: {e!r}.")
        out["external_contractor_emails"] = [e.strip().lower() for e in emails]
    return out


def _apply_building(user, rfq: RFQ, data: Dict):
    """Link a building and snapshot its name/address unless given explicitly."""
    if data.get("building_id"):
        b = building_dao.get_owned_building(user, data["building_id"])
        rfq.building_id = b.id
        rfq.building_name = data.get("building_name") or b.name
        rfq.building_address = data.get("building_address") or b.address
    else:
        if "building_name" in data:
            rfq.building_name = data["building_name"]
        if "building_address" in data:
            rfq.building_address = data["building_address"]
    if len((rfq.building_address or "").strip()) < 5:
        raise ValidationError("Building address is required (at least 5 characters).")


# -------- access helpers (shared with quotation/order dao) --------
def ensure_property_manager(user, message: str = "Only Property Managers can do this."):
    if not user.has_role(UserRole.PROPERTY_MANAGER):
        raise PermissionDeniedError(message)


def _ensure_owner(user, rfq: RFQ, message: str = "You can only update your own RFQs."):
    if rfq.property_manager_id != user.id:
        raise PermissionDeniedError(message)


def get_owned_rfq(user, rfq_id: int, *, lock: bool = False) -> RFQ:
    """Load an RFQ the property manager owns; ``lock`` takes a row lock and re-reads it."""
    ensure_property_manager(user)
    q = RFQ.query.filter_by(id=int(rfq_id))
    if lock:
        q = q.with_for_update().populate_existing()
    rfq = q.first()
    if not rfq:
        raise NotFoundError("RFQ not found.")
    _ensure_owner(user, rfq)
    return rfq


def get_owned_rfq_by_number(user, rfq_number: str, *, lock: bool = False) -> RFQ:
    ensure_property_manager(user)
    q = RFQ.query.filter_by(rfq_number=(rfq_number or "").strip())
    if lock:
        q = q.with_for_update().populate_existing()
    rfq = q.first()
    if not rfq:
        raise NotFoundError("RFQ not found.")
    _ensure_owner(user, rfq)
    return rfq


def apply_transition(rfq: RFQ, action: wf.RFQAction, actor=None) -> RFQStatus:
    """Move ``rfq`` along the transition table; raises PreconditionError otherwise."""
    old = rfq.status
    try:
        rfq.status = wf.next_status(old, action)
    except PreconditionError:
        logger.warning(
            "Refused %s on RFQ %s in status %s", action.value, rfq.rfq_number, old.value
        )
        raise
    logger.info(
        "RFQ %s: %s -> %s (%s by %s)",
        rfq.rfq_number,
        old.value,
        rfq.status.value,
        action.value,
        getattr(actor, "id", "system"),
    )
    return old


# -------- queries --------
def list_rfqs(user, status: Optional[str] = None) -> List[RFQ]:
    q = RFQ.query
    if user.has_role(UserRole.PROPERTY_MANAGER):
        q = q.filter(RFQ.property_manager_id == user.id)
    elif user.has_role(UserRole.CONTRACTOR):
        return _list_rfqs_for_contractor(user, status)
    if status:
        q = q.filter(RFQ.status == wf.to_status(status))
    return q.order_by(RFQ.id.desc()).all()


def _list_rfqs_for_contractor(user, status: Optional[str]) -> List[RFQ]:
    contractor = contractor_dao.get_contractor_for_user(user)
    open_states = (RFQStatus.SUBMITTED, RFQStatus.RECEIVED, RFQStatus.UNDER_REVIEW)
    q = RFQ.query.filter(RFQ.status.in_(open_states))
    if status:
        q = q.filter(RFQ.status == wf.to_status(status))
    rfqs = q.order_by(RFQ.id.desc()).all()
    return [r for r in rfqs if contractor.id in (r.selected_contractor_ids or [])]


def get_rfq(user, rfq_id: int) -> RFQ:
    rfq = db.session.get(RFQ, int(rfq_id))
    if not rfq:
        raise NotFoundError("RFQ not found.")
    if user.has_role(UserRole.ADMIN):
        return rfq
    if user.has_role(UserRole.CONTRACTOR):
        contractor = contractor_dao.get_contractor_for_user(user)
        if contractor.id in (rfq.selected_contractor_ids or []):
            return rfq
        raise PermissionDeniedError("This RFQ was not sent to you.")
    _ensure_owner(user, rfq, "You can only view your own RFQs.")
    return rfq


# -------- mutations --------
def create_rfq(user, fields: Dict, submit: bool = False) -> RFQ:
    """Create an RFQ in DRAFT; ``submit`` sends it out in the same call."""
    ensure_property_manager(user, "Only Property Managers can create RFQs.")
    data = _normalize_fields(fields)

    r = RFQ(
        rfq_number=next_number(RFQ.rfq_number, "RFQ_NUMBER_PREFIX"),
        property_manager_id=user.id,
        title=data["title"],
        description=data["description"],
        scope_of_work=data["scope_of_work"],
        urgency=data["urgency"],
        estimated_budget=data["estimated_budget"],
        notes=data["notes"],
        attachments=data["attachments"],
        selected_contractor_ids=data["contractor_ids"],
        status=RFQStatus.DRAFT,
    )
    _apply_building(user, r, data)
    db.session.add(r)
    db.session.flush()
    logger.info("RFQ %s created in DRAFT by user %s", r.rfq_number, user.id)

    _add_external_contractors(r, data["external_contractor_emails"])
    if submit:
        apply_transition(r, wf.RFQAction.SUBMIT, user)
        r.submitted_date = datetime.utcnow()
        _invite_contractors(r, user)

    _commit()
    return r


def _add_external_contractors(rfq: RFQ, emails: List[str]):
    """E-mail-only contractors become contractor records on the invite list."""
    ids = list(rfq.selected_contractor_ids or [])
    for email in emails or []:
        c = contractor_dao.get_or_create_by_email(email)
        if c.id not in ids:
            ids.append(c.id)
    rfq.selected_contractor_ids = ids


def update_rfq(user, rfq_id: int, fields: Dict, resubmit: bool = False) -> RFQ:
    """Edit a DRAFT/SUBMITTED RFQ; ``resubmit`` always lands in SUBMITTED."""
    data = _normalize_fields(fields, partial=True)
    r = get_owned_rfq(user, rfq_id, lock=True)
    if r.status not in EDITABLE_STATES:
        raise PreconditionError(
            f"Only draft or submitted RFQs can be edited (current status: {r.status.value})"
        )

    for key in ("title", "description", "scope_of_work", "urgency", "notes", "attachments"):
        if key in data:
            setattr(r, key, data[key])
    if "estimated_budget" in data:
        r.estimated_budget = data["estimated_budget"]
    already_sent = list(r.selected_contractor_ids or [])
    if "contractor_ids" in data:
        r.selected_contractor_ids = data["contractor_ids"]
    _apply_building(user, r, data)
    _add_external_contractors(r, data.get("external_contractor_emails", []))

    if resubmit:
        old = apply_transition(r, wf.RFQAction.EDIT_AND_RESUBMIT, user)
        r.submitted_date = datetime.utcnow()
        if old == RFQStatus.DRAFT:
            _invite_contractors(r, user)
        else:
            added = [cid for cid in r.selected_contractor_ids if cid not in already_sent]
            if added:
                _invite_contractors(r, user, added)

    _commit()
    return r


def submit_rfq(user, rfq_id: int) -> RFQ:
    r = get_owned_rfq(user, rfq_id, lock=True)
    apply_transition(r, wf.RFQAction.SUBMIT, user)
    r.submitted_date = datetime.utcnow()
    _invite_contractors(r, user)
    _commit()
    return r


def change_rfq_status(
    user,
    rfq_id: int,
    action,
    rejection_reason: Optional[str] = None,
    expected_status=None,
) -> RFQ:
    """START_REVIEW / REJECT / APPROVE with server-side precondition checks."""
    action = wf.to_action(action)
    if action not in STATUS_ACTIONS:
        raise ValidationError("Action must be one of START_REVIEW, REJECT, APPROVE.")
    reason = (rejection_reason or "").strip()
    if action == wf.RFQAction.REJECT and not reason:
        raise ValidationError("A rejection reason is required.")
    expected = wf.to_status(expected_status) if expected_status else None

    r = get_owned_rfq(user, rfq_id, lock=True)
    if expected is not None and r.status != expected:
        raise ConflictError(
            f"RFQ {r.rfq_number} is now {r.status.value}, not {expected.value}. Reload and try again."
        )
    if (
        action in (wf.RFQAction.APPROVE, wf.RFQAction.REJECT)
        and r.status == RFQStatus.QUOTED
        and r.admin_quote is None
    ):
        raise PreconditionError("No quote available for this RFQ.")

    old = apply_transition(r, action, user)
    now = datetime.utcnow()

    if action == wf.RFQAction.APPROVE:
        r.approved_date = now
        r.admin_quote.status = AdminQuoteStatus.APPROVED
        r.admin_quote.approved_by_pm_date = now
        _reject_open_quotations(r, "Not selected")
    elif action == wf.RFQAction.REJECT:
        r.rejected_date = now
        r.rejection_reason = reason
        if old == RFQStatus.QUOTED:
            r.admin_quote.status = AdminQuoteStatus.REJECTED
            r.admin_quote.rejected_by_pm_date = now
            r.admin_quote.pm_rejection_reason = reason
        _reject_open_quotations(r, "RFQ rejected")

    if action == wf.RFQAction.APPROVE:
        notification_dao.notify_admins(
            f"RFQ {r.rfq_number} has been approved by {user.display_name}",
            NotificationType.RFQ_APPROVED,
            "PROPERTY_MANAGER_RFQ",
            r.id,
        )
    elif action == wf.RFQAction.REJECT:
        notification_dao.notify_admins(
            f"RFQ {r.rfq_number} has been rejected by {user.display_name}: {reason}",
            NotificationType.RFQ_REJECTED,
            "PROPERTY_MANAGER_RFQ",
            r.id,
        )

    _commit()
    return r


def _reject_open_quotations(rfq: RFQ, reason: str):
    for q in rfq.quotations:
        if q.status == QuotationStatus.SUBMITTED:
            q.status = QuotationStatus.REJECTED
            q.rejection_reason = reason


def delete_rfq(user, rfq_id: int):
    r = get_owned_rfq(user, rfq_id, lock=True)
    if r.status != RFQStatus.DRAFT:
        raise PreconditionError("Only draft RFQs can be deleted.")
    db.session.delete(r)
    _commit()


def _invite_contractors(rfq: RFQ, user, contractor_ids: Optional[List[int]] = None):
    """Notify portal contractors, send invite links to the rest, or tell admins.

    ``contractor_ids`` limits the round to contractors added after the first send.
    """
    first_round = contractor_ids is None
    if first_round:
        contractor_ids = rfq.selected_contractor_ids
    reached = 0
    for contractor in contractor_dao.require_contractors(contractor_ids):
        portal_user = contractor_dao.portal_user_for(contractor)
        if portal_user is not None:
            notification_dao.notify(
                portal_user.id,
                f"You have received a new RFQ ({rfq.rfq_number}) from {user.display_name}.",
                NotificationType.RFQ_SUBMITTED,
                "PROPERTY_MANAGER_RFQ",
                rfq.id,
            )
        else:
            invite_dao.create_invite(rfq, contractor.email, contractor.display_name, contractor)
        reached += 1

    if reached == 0 and first_round:
        notification_dao.notify_admins(
            f"New RFQ {rfq.rfq_number} submitted by {user.display_name} requires attention.",
            NotificationType.RFQ_SUBMITTED,
            "PROPERTY_MANAGER_RFQ",
            rfq.id,
        )
    logger.info("RFQ %s sent to %d contractor(s)", rfq.rfq_number, reached)


def _commit():
    try:
        db.session.commit()
    except (StaleDataError, IntegrityError):
        db.session.rollback()
        raise ConflictError()
    except SQLAlchemyError:
        db.session.rollback()
        raise
