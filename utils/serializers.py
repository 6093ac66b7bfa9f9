"""JSON shapes returned by the API."""
from typing import Dict, Optional

from utils import rfq_workflow
from utils.money import as_float


def _iso(value):
    return value.isoformat() if value else None


def _enum(value):
    return value.value if value is not None else None


def user_to_dict(user) -> Dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "full_name": user.full_name,
        "phone": user.phone,
        "role": _enum(user.role),
        "is_active": bool(user.is_active),
    }


def building_to_dict(b) -> Dict:
    return {
        "id": b.id,
        "name": b.name,
        "address": b.address,
        "property_manager_id": b.property_manager_id,
    }


def contractor_to_dict(c, rating: Optional[float] = None) -> Dict:
    return {
        "id": c.id,
        "first_name": c.first_name,
        "last_name": c.last_name,
        "company_name": c.company_name,
        "display_name": c.display_name,
        "email": c.email,
        "phone": c.phone,
        "portal_access_enabled": bool(c.portal_access_enabled),
        "rating": rating,
    }


def admin_quote_to_dict(q) -> Optional[Dict]:
    if q is None:
        return None
    return {
        "id": q.id,
        "quote_number": q.quote_number,
        "subtotal": as_float(q.subtotal),
        "tax": as_float(q.tax),
        "total": as_float(q.total),
        "estimated_duration": q.estimated_duration,
        "notes": q.notes,
        "status": _enum(q.status),
        "pm_rejection_reason": q.pm_rejection_reason,
    }


def quotation_to_dict(q, rating: Optional[float] = None) -> Dict:
    c = q.contractor
    return {
        "id": q.id,
        "quote_number": q.quote_number,
        "rfq_id": q.rfq_id,
        "rfq_number": q.rfq_number,
        "subtotal": as_float(q.subtotal),
        "tax": as_float(q.tax),
        "total": as_float(q.total),
        "notes": q.notes,
        "attachments": list(q.attachments or []),
        "status": _enum(q.status),
        "approved": q.approved,
        "rejection_reason": q.rejection_reason,
        "created_at": _iso(q.created_at),
        "contractor": (
            {
                "id": c.id,
                "first_name": c.first_name,
                "last_name": c.last_name,
                "company_name": c.company_name,
                "email": c.email,
                "rating": rating,
            }
            if c
            else None
        ),
    }


def rfq_to_dict(rfq) -> Dict:
    actions = rfq_workflow.allowed_actions(rfq.status)
    return {
        "id": rfq.id,
        "rfq_number": rfq.rfq_number,
        "title": rfq.title,
        "description": rfq.description,
        "scope_of_work": rfq.scope_of_work,
        "building_id": rfq.building_id,
        "building_name": rfq.building_name,
        "building_address": rfq.building_address,
        "urgency": _enum(rfq.urgency),
        "estimated_budget": as_float(rfq.estimated_budget),
        "notes": rfq.notes,
        "attachments": list(rfq.attachments or []),
        "selected_contractor_ids": list(rfq.selected_contractor_ids or []),
        "status": _enum(rfq.status),
        "allowed_actions": sorted(a.value for a in actions),
        "is_terminal": rfq_workflow.is_terminal(rfq.status),
        "property_manager_id": rfq.property_manager_id,
        "submitted_date": _iso(rfq.submitted_date),
        "approved_date": _iso(rfq.approved_date),
        "rejected_date": _iso(rfq.rejected_date),
        "rejection_reason": rfq.rejection_reason,
        "admin_quote": admin_quote_to_dict(rfq.admin_quote),
        "generated_order_id": rfq.generated_order_id,
        "created_at": _iso(rfq.created_at),
        "updated_at": _iso(rfq.updated_at),
    }


def order_to_dict(o) -> Dict:
    return {
        "id": o.id,
        "order_number": o.order_number,
        "property_manager_id": o.property_manager_id,
        "contractor_id": o.contractor_id,
        "generated_from_rfq_id": o.generated_from_rfq_id,
        "title": o.title,
        "description": o.description,
        "scope_of_work": o.scope_of_work,
        "building_name": o.building_name,
        "building_address": o.building_address,
        "materials": list(o.materials or []),
        "labour_rate": as_float(o.labour_rate),
        "call_out_fee": as_float(o.call_out_fee),
        "total_amount": as_float(o.total_amount),
        "notes": o.notes,
        "attachments": list(o.attachments or []),
        "status": _enum(o.status),
        "progress_percentage": o.progress_percentage,
        "submitted_date": _iso(o.submitted_date),
        "accepted_date": _iso(o.accepted_date),
        "start_date": _iso(o.start_date),
        "completed_date": _iso(o.completed_date),
        "created_at": _iso(o.created_at),
    }


def notification_to_dict(n) -> Dict:
    return {
        "id": n.id,
        "message": n.message,
        "type": _enum(n.type),
        "related_entity_type": n.related_entity_type,
        "related_entity_id": n.related_entity_id,
        "is_read": bool(n.is_read),
        "created_at": _iso(n.created_at),
    }
