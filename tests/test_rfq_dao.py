import pytest

from dao import admin_quote as admin_quote_dao
from dao import quotation as quotation_dao
from dao import rfq as rfq_dao
from db.models.admin_quote import AdminQuoteStatus
from db.models.invite import QuoteInvite
from db.models.notification import Notification, NotificationType
from db.models.quotation import QuotationStatus
from db.models.rfq import RFQ, RFQStatus, RFQUrgency
from utils.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    ValidationError,
)


def _received(pm, contractors, rfq_fields):
    ids = [c.id for c in contractors]
    r = rfq_dao.create_rfq(pm, rfq_fields(contractor_ids=ids), submit=True)
    quotation_dao.receive_quotation(r.rfq_number, contractors[0], 1000, 150)
    return r


def test_create_rfq_starts_in_draft(pm, rfq_fields):
    r = rfq_dao.create_rfq(pm, rfq_fields())
    assert r.status == RFQStatus.DRAFT
    assert r.rfq_number == "RFQ-00001"
    assert r.urgency == RFQUrgency.HIGH
    assert r.submitted_date is None


def test_create_and_submit_invites_email_only_contractors(pm, contractors, rfq_fields):
    r = rfq_dao.create_rfq(
        pm,
        rfq_fields(
            contractor_ids=[contractors[0].id],
            external_contractor_emails=["New.Roofer@Example.com"],
        ),
        submit=True,
    )
    assert r.status == RFQStatus.SUBMITTED
    assert r.submitted_date is not None
    assert len(r.selected_contractor_ids) == 2
    emails = sorted(i.email for i in QuoteInvite.query.filter_by(rfq_id=r.id))
    assert emails == ["c1@example.com", "new.roofer@example.com"]


@pytest.mark.parametrize(
    "override",
    [
        {"title": "ab"},
        {"description": "too short"},
        {"scope_of_work": ""},
        {"building_address": "1 Rd"},
        {"urgency": "WHENEVER"},
        {"estimated_budget": -5},
        {"contractor_ids": ["x"]},
        {"building_address": 12345},
        {"building_name": ["Harbour View"]},
    ],
)
def test_create_rfq_validation_writes_nothing(pm, rfq_fields, override):
    with pytest.raises(ValidationError):
        rfq_dao.create_rfq(pm, rfq_fields(**override))
    assert RFQ.query.count() == 0


def test_unknown_contractor_is_not_found(pm, rfq_fields):
    with pytest.raises(NotFoundError):
        rfq_dao.create_rfq(pm, rfq_fields(contractor_ids=[999]))


def test_only_property_managers_create(admin, rfq_fields):
    with pytest.raises(PermissionDeniedError):
        rfq_dao.create_rfq(admin, rfq_fields())


@pytest.mark.parametrize("submit_first", [False, True])
def test_edit_and_resubmit_yields_submitted(pm, rfq_fields, submit_first):
    r = rfq_dao.create_rfq(pm, rfq_fields(), submit=submit_first)
    r = rfq_dao.update_rfq(pm, r.id, {"title": "Fix roof leak urgently"}, resubmit=True)
    assert r.status == RFQStatus.SUBMITTED
    assert r.title == "Fix roof leak urgently"
    assert r.submitted_date is not None


def test_resubmit_invites_newly_added_contractors(pm, contractors, portal_contractor, rfq_fields):
    _, roofer = portal_contractor
    r = rfq_dao.create_rfq(pm, rfq_fields(contractor_ids=[contractors[0].id]), submit=True)
    ids = [contractors[0].id, contractors[1].id, roofer.id]
    rfq_dao.update_rfq(pm, r.id, {"contractor_ids": ids}, resubmit=True)

    emails = sorted(i.email for i in QuoteInvite.query.filter_by(rfq_id=r.id))
    assert emails == ["c1@example.com", "c2@example.com"]
    roofer_notes = Notification.query.filter_by(recipient_id=roofer.user_id).all()
    assert [n.type for n in roofer_notes] == [NotificationType.RFQ_SUBMITTED]


def test_resubmit_without_new_contractors_sends_nothing(pm, contractors, rfq_fields):
    r = rfq_dao.create_rfq(pm, rfq_fields(contractor_ids=[contractors[0].id]), submit=True)
    rfq_dao.update_rfq(pm, r.id, {"notes": "Access via side gate"}, resubmit=True)
    assert QuoteInvite.query.filter_by(rfq_id=r.id).count() == 1


def test_edit_without_resubmit_keeps_status(pm, rfq_fields):
    r = rfq_dao.create_rfq(pm, rfq_fields())
    r = rfq_dao.update_rfq(pm, r.id, {"notes": "Gate code 1234"})
    assert r.status == RFQStatus.DRAFT
    assert r.notes == "Gate code 1234"


def test_edit_refused_once_quotations_arrive(pm, contractors, rfq_fields):
    r = _received(pm, contractors, rfq_fields)
    with pytest.raises(PreconditionError):
        rfq_dao.update_rfq(pm, r.id, {"title": "Something else"}, resubmit=True)
    assert rfq_dao.get_rfq(pm, r.id).status == RFQStatus.RECEIVED


def test_submit_twice_is_refused(pm, rfq_fields):
    r = rfq_dao.create_rfq(pm, rfq_fields())
    rfq_dao.submit_rfq(pm, r.id)
    with pytest.raises(PreconditionError):
        rfq_dao.submit_rfq(pm, r.id)


@pytest.mark.parametrize("reason", [None, "", "   \t "])
def test_reject_requires_reason(pm, contractors, rfq_fields, reason):
    r = _received(pm, contractors, rfq_fields)
    with pytest.raises(ValidationError):
        rfq_dao.change_rfq_status(pm, r.id, "REJECT", rejection_reason=reason)
    r = rfq_dao.get_rfq(pm, r.id)
    assert r.status == RFQStatus.RECEIVED
    assert r.rejection_reason is None


def test_reject_from_received_closes_open_quotations(pm, contractors, rfq_fields):
    r = _received(pm, contractors, rfq_fields)
    r = rfq_dao.change_rfq_status(pm, r.id, "REJECT", rejection_reason="  Over budget ")
    assert r.status == RFQStatus.REJECTED
    assert r.rejection_reason == "Over budget"
    assert r.rejected_date is not None
    assert all(q.status == QuotationStatus.REJECTED for q in r.quotations)


def test_expected_status_mismatch_is_conflict(pm, contractors, rfq_fields):
    r = _received(pm, contractors, rfq_fields)
    with pytest.raises(ConflictError):
        rfq_dao.change_rfq_status(pm, r.id, "START_REVIEW", expected_status="SUBMITTED")
    r = rfq_dao.change_rfq_status(pm, r.id, "START_REVIEW", expected_status="RECEIVED")
    assert r.status == RFQStatus.UNDER_REVIEW


def test_status_endpoint_accepts_only_review_actions(pm, rfq_fields):
    r = rfq_dao.create_rfq(pm, rfq_fields())
    with pytest.raises(ValidationError):
        rfq_dao.change_rfq_status(pm, r.id, "CONVERT_TO_ORDER")
    with pytest.raises(PreconditionError):
        rfq_dao.change_rfq_status(pm, r.id, "START_REVIEW")


def test_admin_quote_then_approve(pm, admin, rfq_fields):
    r = rfq_dao.create_rfq(pm, rfq_fields(), submit=True)
    quote = admin_quote_dao.issue_admin_quote(admin, r.id, 2000, 300, "3 days")
    assert quote.total == 2300
    assert rfq_dao.get_rfq(pm, r.id).status == RFQStatus.QUOTED
    with pytest.raises(ConflictError):
        admin_quote_dao.issue_admin_quote(admin, r.id, 10, 0)

    r = rfq_dao.change_rfq_status(pm, r.id, "APPROVE")
    assert r.status == RFQStatus.APPROVED
    assert r.approved_date is not None
    assert r.admin_quote.status == AdminQuoteStatus.APPROVED


def test_reject_admin_quote(pm, admin, rfq_fields):
    r = rfq_dao.create_rfq(pm, rfq_fields(), submit=True)
    admin_quote_dao.issue_admin_quote(admin, r.id, 2000, 300)
    r = rfq_dao.change_rfq_status(pm, r.id, "REJECT", rejection_reason="Too slow")
    assert r.status == RFQStatus.REJECTED
    assert r.admin_quote.status == AdminQuoteStatus.REJECTED
    assert r.admin_quote.pm_rejection_reason == "Too slow"


def _quoted_after_quotation(pm, admin, contractors, rfq_fields):
    r = _received(pm, contractors, rfq_fields)
    admin_quote_dao.issue_admin_quote(admin, r.id, 2000, 300)
    assert rfq_dao.get_rfq(pm, r.id).status == RFQStatus.QUOTED
    return r


def test_approving_admin_quote_closes_contractor_quotations(pm, admin, contractors, rfq_fields):
    r = _quoted_after_quotation(pm, admin, contractors, rfq_fields)
    r = rfq_dao.change_rfq_status(pm, r.id, "APPROVE")
    assert r.status == RFQStatus.APPROVED
    assert [(q.status, q.rejection_reason) for q in r.quotations] == [
        (QuotationStatus.REJECTED, "Not selected")
    ]
    assert quotation_dao.get_approved_quotation(r.id) is None


def test_rejecting_admin_quote_closes_contractor_quotations(pm, admin, contractors, rfq_fields):
    r = _quoted_after_quotation(pm, admin, contractors, rfq_fields)
    r = rfq_dao.change_rfq_status(pm, r.id, "REJECT", rejection_reason="Too expensive")
    assert r.status == RFQStatus.REJECTED
    assert r.admin_quote.status == AdminQuoteStatus.REJECTED
    assert [(q.status, q.rejection_reason) for q in r.quotations] == [
        (QuotationStatus.REJECTED, "RFQ rejected")
    ]


def test_only_admins_issue_quotes(pm, rfq_fields):
    r = rfq_dao.create_rfq(pm, rfq_fields(), submit=True)
    with pytest.raises(PermissionDeniedError):
        admin_quote_dao.issue_admin_quote(pm, r.id, 100, 0)


def test_delete_only_drafts(pm, rfq_fields):
    draft = rfq_dao.create_rfq(pm, rfq_fields())
    rfq_dao.delete_rfq(pm, draft.id)
    assert RFQ.query.count() == 0

    sent = rfq_dao.create_rfq(pm, rfq_fields(), submit=True)
    with pytest.raises(PreconditionError):
        rfq_dao.delete_rfq(pm, sent.id)


def test_property_managers_only_see_their_own(pm, other_pm, rfq_fields):
    r = rfq_dao.create_rfq(pm, rfq_fields())
    assert rfq_dao.list_rfqs(other_pm) == []
    with pytest.raises(PermissionDeniedError):
        rfq_dao.get_rfq(other_pm, r.id)
    with pytest.raises(PermissionDeniedError):
        rfq_dao.submit_rfq(other_pm, r.id)


def test_list_filters_by_status(pm, rfq_fields):
    rfq_dao.create_rfq(pm, rfq_fields())
    rfq_dao.create_rfq(pm, rfq_fields(), submit=True)
    assert [r.status for r in rfq_dao.list_rfqs(pm, "submitted")] == [RFQStatus.SUBMITTED]
    assert len(rfq_dao.list_rfqs(pm)) == 2
