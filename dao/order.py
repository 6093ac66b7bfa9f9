# dao/order.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from configs import db
from db.models.admin_quote import AdminQuoteStatus
from db.models.notification import NotificationType
from db.models.order import Order, OrderStatus
from db.models.rfq import RFQStatus
from db.models.user import UserRole
from dao import contractor as contractor_dao
from dao import notification as notification_dao
from dao import quotation as quotation_dao
from dao import rfq as rfq_dao
from utils import rfq_workflow as wf
from utils.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    ValidationError,
)
from utils.money import format_money, to_money
from utils.numbering import next_number

logger = logging.getLogger(__name__)

FINAL_STATES = (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

# status -> timestamp column stamped the first time the status is reached
_STATUS_DATES = {
    OrderStatus.SUBMITTED: "submitted_date",
    OrderStatus.ACCEPTED: "accepted_date",
    OrderStatus.IN_PROGRESS: "start_date",
    OrderStatus.COMPLETED: "completed_date",
}


def _to_order_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    value = (value or "").strip().upper()
    try:
        return OrderStatus[value]
    except KeyError:
        raise ValidationError(f"Unknown order status: {value!r}.") from None


def _normalize_materials(value) -> List[Dict]:
    """[{description, quantity, unit_price}] with quantity > 0 and price >= 0."""
    if not value:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError("Materials must be a list.")
    out = []
    for idx, m in enumerate(value, 1):
        if not isinstance(m, dict):
            raise ValidationError(f"Material {idx}: expected an object.")
        desc = (m.get("description") or "").strip()
        if not desc:
            raise ValidationError(f"Material {idx}: description is required.")
        try:
            qty = Decimal(str(m.get("quantity")))
        except (ArithmeticError, ValueError):
            raise ValidationError(f"Material {idx}: quantity must be a number.") from None
        if qty <= 0:
            raise ValidationError(f"Material {idx}: quantity must be greater than 0.")
        price = to_money(m.get("unit_price"), f"Material {idx}: unit price")
        out.append({"description": desc, "quantity": float(qty), "unit_price": float(price)})
    return out


def _materials_total(materials: List[Dict]) -> Decimal:
    total = Decimal("0")
    for m in materials:
        total += Decimal(str(m["quantity"])) * Decimal(str(m["unit_price"]))
    return total


def _require_text(fields: Dict, key: str, min_len: int) -> str:
    value = (fields.get(key) or "").strip()
    if len(value) < min_len:
        label = key.replace("_", " ").capitalize()
        raise ValidationError(f"{label} is required (at least {min_len} characters).")
    return value


def _resolve_contractor(contractor_id):
    if contractor_id in (None, ""):
        return None
    c = contractor_dao.get_contractor(contractor_id)
    if not c:
        raise NotFoundError("Selected contractor not found.")
    return c


def _build_itemised_scope(rfq, quote, materials: List[Dict]) -> str:
    lines = []
    if materials:
        lines.append("ITEMISED SCOPE OF WORK")
        for idx, m in enumerate(materials, 1):
            line_total = Decimal(str(m["quantity"])) * Decimal(str(m["unit_price"]))
            lines.append(
                f"{idx}. {m['description']} ({m['quantity']:g} @ "
                f"{format_money(m['unit_price'])} = {format_money(line_total)})"
            )
        lines.append("")
    else:
        lines.append("SCOPE OF WORK")
        lines.append(rfq.scope_of_work)
        lines.append("")
    lines.append("BILLING SUMMARY")
    lines.append(f"Subtotal: {format_money(quote.subtotal)}")
    lines.append(f"VAT/Tax: {format_money(quote.tax)}")
    lines.append(f"Total: {format_money(quote.total)}")
    return "\n".join(lines).strip()


def _notify_assignment(order: Order, user):
    portal_user = contractor_dao.portal_user_for(order.contractor) if order.contractor else None
    if portal_user is not None:
        notification_dao.notify(
            portal_user.id,
            f"New order {order.order_number} assigned to you by {user.display_name}",
            NotificationType.ORDER_ASSIGNED,
            "PROPERTY_MANAGER_ORDER",
            order.id,
        )
    elif order.contractor is None:
        notification_dao.notify_admins(
            f"New order {order.order_number} submitted by {user.display_name} "
            "requires a contractor to be assigned.",
            NotificationType.ORDER_SUBMITTED,
            "PROPERTY_MANAGER_ORDER",
            order.id,
        )


# ======== queries ========
def list_orders(user, status: Optional[str] = None) -> List[Order]:
    q = Order.query
    if user.has_role(UserRole.PROPERTY_MANAGER):
        q = q.filter(Order.property_manager_id == user.id)
    elif user.has_role(UserRole.CONTRACTOR):
        q = q.filter(Order.contractor_id == contractor_dao.get_contractor_for_user(user).id)
    if status:
        q = q.filter(Order.status == _to_order_status(status))
    return q.order_by(Order.id.desc()).all()


def get_order(user, order_id: int) -> Order:
    o = db.session.get(Order, int(order_id))
    if not o:
        raise NotFoundError("Order not found.")
    _ensure_can_access(user, o)
    return o


def _ensure_can_access(user, o: Order):
    if user.has_role(UserRole.ADMIN):
        return
    if user.has_role(UserRole.PROPERTY_MANAGER) and o.property_manager_id == user.id:
        return
    if user.has_role(UserRole.CONTRACTOR):
        if o.contractor_id == contractor_dao.get_contractor_for_user(user).id:
            return
    raise PermissionDeniedError("You can only access your own orders.")


# ======== mutations ========
def create_order(user, fields: Dict) -> Order:
    """Manual order; total = materials + labour + call-out unless given explicitly."""
    rfq_dao.ensure_property_manager(user, "Only Property Managers can create orders.")
    title = _require_text(fields, "title", 3)
    description = _require_text(fields, "description", 10)
    scope = _require_text(fields, "scope_of_work", 10)
    address = _require_text(fields, "building_address", 5)
    materials = _normalize_materials(fields.get("materials"))
    labour = to_money(fields.get("labour_rate") or 0, "Labour rate")
    call_out = to_money(fields.get("call_out_fee") or 0, "Call-out fee")
    explicit_total = to_money(fields.get("total_amount"), "Total amount", allow_none=True)
    contractor = _resolve_contractor(fields.get("contractor_id"))

    o = Order(
        order_number=next_number(Order.order_number, "ORDER_NUMBER_PREFIX"),
        property_manager_id=user.id,
        contractor=contractor,
        title=title,
        description=description,
        scope_of_work=scope,
        building_name=(fields.get("building_name") or "").strip() or None,
        building_address=address,
        materials=materials,
        labour_rate=labour,
        call_out_fee=call_out,
        total_amount=(
            explicit_total
            if explicit_total is not None
            else _materials_total(materials) + labour + call_out
        ),
        notes=(fields.get("notes") or "").strip() or None,
        attachments=rfq_dao.normalize_attachments(fields.get("attachments")),
        status=OrderStatus.DRAFT,
    )
    db.session.add(o)
    _flush()
    _notify_assignment(o, user)
    _commit()
    logger.info("Order %s created by user %s (total %s)", o.order_number, user.id, o.total_amount)
    return o


def convert_rfq_to_order(user, rfq_id: int, fields: Optional[Dict] = None) -> Order:
    """
    Turn an APPROVED RFQ into a work order.

    The RFQ is re-read under a row lock right before the write so a second
    conversion (concurrent or not) fails with a precondition error and never
    creates a second order.
    """
    fields = fields or {}
    materials = _normalize_materials(fields.get("materials"))
    labour = to_money(fields.get("labour_rate") or 0, "Labour rate")
    call_out = to_money(fields.get("call_out_fee") or 0, "Call-out fee")

    rfq = rfq_dao.get_owned_rfq(user, rfq_id, lock=True)
    if rfq.generated_order is not None:
        raise PreconditionError("An order has already been generated from this RFQ.")
    if rfq.status != RFQStatus.APPROVED:
        wf.next_status(rfq.status, wf.RFQAction.CONVERT_TO_ORDER)

    quote = quotation_dao.get_approved_quotation(rfq.id)
    if quote is None and rfq.admin_quote is not None:
        if rfq.admin_quote.status == AdminQuoteStatus.APPROVED:
            quote = rfq.admin_quote

    contractor = _resolve_contractor(fields.get("contractor_id"))
    if contractor is None and quote is not None:
        contractor = getattr(quote, "contractor", None)

    description = (fields.get("description") or "").strip() or rfq.description
    if quote is not None:
        description = (
            "This work order is issued based on the approved quotation for RFQ "
            f"{rfq.rfq_number}.\n\n{description}"
        )
        scope = _build_itemised_scope(rfq, quote, materials)
        total = quote.total
    else:
        scope = (fields.get("scope_of_work") or "").strip() or rfq.scope_of_work
        total = _materials_total(materials) + labour + call_out

    attachments = (
        rfq_dao.normalize_attachments(fields["attachments"])
        if fields.get("attachments") is not None
        else list(rfq.attachments or [])
    )

    o = Order(
        order_number=next_number(Order.order_number, "ORDER_NUMBER_PREFIX"),
        property_manager_id=user.id,
        contractor=contractor,
        source_rfq=rfq,
        title=(fields.get("title") or "").strip() or rfq.title,
        description=description,
        scope_of_work=scope,
        building_name=(fields.get("building_name") or "").strip() or rfq.building_name,
        building_address=rfq.building_address,
        materials=materials,
        labour_rate=labour,
        call_out_fee=call_out,
        total_amount=total,
        notes=(fields.get("notes") or "").strip() or None,
        attachments=attachments,
        status=OrderStatus.DRAFT,
    )
    db.session.add(o)
    rfq_dao.apply_transition(rfq, wf.RFQAction.CONVERT_TO_ORDER, user)
    _flush()
    _notify_assignment(o, user)
    _commit()
    logger.info(
        "RFQ %s converted to order %s (total %s, contractor %s)",
        rfq.rfq_number,
        o.order_number,
        o.total_amount,
        o.contractor_id,
    )
    return o


def update_order_status(
    user,
    order_id: int,
    status,
    progress: Optional[int] = None,
    notes: Optional[str] = None,
) -> Order:
    new_status = _to_order_status(status)
    if progress is not None:
        try:
            progress = int(progress)
        except (TypeError, ValueError):
            raise ValidationError("Progress must be a whole number.") from None
        if not 0 <= progress <= 100:
            raise ValidationError("Progress must be between 0 and 100.")

    o = Order.query.filter_by(id=int(order_id)).with_for_update().populate_existing().first()
    if not o:
        raise NotFoundError("Order not found.")
    _ensure_can_access(user, o)
    if o.status in FINAL_STATES:
        raise PreconditionError(
            f"Order {o.order_number} is {o.status.value} and can no longer change."
        )

    old = o.status
    o.status = new_status
    if progress is not None:
        o.progress_percentage = progress
    if notes:
        o.notes = notes.strip()
    date_attr = _STATUS_DATES.get(new_status)
    if date_attr and getattr(o, date_attr) is None:
        setattr(o, date_attr, datetime.utcnow())
    if new_status == OrderStatus.COMPLETED:
        o.progress_percentage = 100

    if o.property_manager_id != user.id:
        notification_dao.notify(
            o.property_manager_id,
            f"Order {o.order_number} status updated to {new_status.value}.",
            NotificationType.ORDER_STATUS_UPDATE,
            "ORDER",
            o.id,
        )
    _commit()
    logger.info(
        "Order %s: %s -> %s by user %s", o.order_number, old.value, new_status.value, user.id
    )
    return o


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
