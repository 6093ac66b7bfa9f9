import pytest

from db.models.rfq import RFQStatus as S
from utils import rfq_workflow as wf
from utils.errors import PreconditionError, ValidationError

A = wf.RFQAction

OFFERED = {
    S.DRAFT: {A.SUBMIT, A.EDIT_AND_RESUBMIT},
    S.SUBMITTED: {A.EDIT_AND_RESUBMIT},
    S.RECEIVED: {A.START_REVIEW, A.REJECT},
    S.UNDER_REVIEW: {A.SELECT_QUOTATION},
    S.QUOTED: {A.APPROVE, A.REJECT},
    S.APPROVED: {A.CONVERT_TO_ORDER},
    S.REJECTED: set(),
    S.CONVERTED_TO_ORDER: set(),
}


@pytest.mark.parametrize("status", list(S))
def test_offered_actions_match_table(status):
    assert wf.allowed_actions(status) == OFFERED[status]


def test_external_events_never_offered():
    for status in S:
        assert not (wf.allowed_actions(status) & wf.EXTERNAL_EVENTS)


@pytest.mark.parametrize("status", list(S))
def test_disallowed_actions_raise_precondition(status):
    for action in wf.OPERATOR_ACTIONS - OFFERED[status]:
        with pytest.raises(PreconditionError) as exc:
            wf.next_status(status, action)
        assert status.value in exc.value.message


@pytest.mark.parametrize("status", [S.DRAFT, S.SUBMITTED])
def test_edit_and_resubmit_always_lands_in_submitted(status):
    assert wf.next_status(status, A.EDIT_AND_RESUBMIT) == S.SUBMITTED


def test_receive_quotation_event():
    assert wf.next_status(S.SUBMITTED, A.RECEIVE_QUOTATION) == S.RECEIVED
    assert wf.next_status(S.RECEIVED, A.RECEIVE_QUOTATION) == S.RECEIVED
    assert wf.next_status(S.UNDER_REVIEW, A.RECEIVE_QUOTATION) == S.UNDER_REVIEW
    with pytest.raises(PreconditionError):
        wf.next_status(S.DRAFT, A.RECEIVE_QUOTATION)
    with pytest.raises(PreconditionError):
        wf.next_status(S.APPROVED, A.RECEIVE_QUOTATION)


def test_issue_quote_event():
    for status in (S.SUBMITTED, S.RECEIVED, S.UNDER_REVIEW):
        assert wf.next_status(status, A.ISSUE_QUOTE) == S.QUOTED
    with pytest.raises(PreconditionError):
        wf.next_status(S.DRAFT, A.ISSUE_QUOTE)


def test_terminal_states_have_no_exit():
    assert {s for s in S if wf.is_terminal(s)} == {S.REJECTED, S.CONVERTED_TO_ORDER}
    for status in wf.TERMINAL_STATES:
        assert not any(src == status for (src, _) in wf.TRANSITIONS)


def test_parse_action_and_status():
    assert wf.to_action(" start_review ") == A.START_REVIEW
    assert wf.to_status("under_review") == S.UNDER_REVIEW
    with pytest.raises(ValidationError):
        wf.to_action("TELEPORT")
    with pytest.raises(ValidationError):
        wf.to_status("")
