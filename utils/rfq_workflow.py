# utils/rfq_workflow.py
"""
RFQ lifecycle as an explicit transition table.

Property-manager actions are the only ones ever offered to an operator.
RECEIVE_QUOTATION (contractor) and ISSUE_QUOTE (administrator) are server-side
events that share the same table so every status write goes through
``next_status``.
"""
import enum
from typing import FrozenSet

from db.models.rfq import RFQStatus
from utils.errors import PreconditionError, ValidationError


class RFQAction(enum.Enum):
    SUBMIT = "SUBMIT"
    EDIT_AND_RESUBMIT = "EDIT_AND_RESUBMIT"
    START_REVIEW = "START_REVIEW"
    REJECT = "REJECT"
    SELECT_QUOTATION = "SELECT_QUOTATION"
    APPROVE = "APPROVE"
    CONVERT_TO_ORDER = "CONVERT_TO_ORDER"
    RECEIVE_QUOTATION = "RECEIVE_QUOTATION"
    ISSUE_QUOTE = "ISSUE_QUOTE"


OPERATOR_ACTIONS: FrozenSet[RFQAction] = frozenset(
    {
        RFQAction.SUBMIT,
        RFQAction.EDIT_AND_RESUBMIT,
        RFQAction.START_REVIEW,
        RFQAction.REJECT,
        RFQAction.SELECT_QUOTATION,
        RFQAction.APPROVE,
        RFQAction.CONVERT_TO_ORDER,
    }
)
EXTERNAL_EVENTS: FrozenSet[RFQAction] = frozenset(
    {RFQAction.RECEIVE_QUOTATION, RFQAction.ISSUE_QUOTE}
)

S = RFQStatus
TRANSITIONS = {
    (S.DRAFT, RFQAction.SUBMIT): S.SUBMITTED,
    (S.DRAFT, RFQAction.EDIT_AND_RESUBMIT): S.SUBMITTED,
    (S.SUBMITTED, RFQAction.EDIT_AND_RESUBMIT): S.SUBMITTED,
    (S.RECEIVED, RFQAction.START_REVIEW): S.UNDER_REVIEW,
    (S.RECEIVED, RFQAction.REJECT): S.REJECTED,
    (S.UNDER_REVIEW, RFQAction.SELECT_QUOTATION): S.APPROVED,
    (S.QUOTED, RFQAction.APPROVE): S.APPROVED,
    (S.QUOTED, RFQAction.REJECT): S.REJECTED,
    (S.APPROVED, RFQAction.CONVERT_TO_ORDER): S.CONVERTED_TO_ORDER,
    # contractor responses
    (S.SUBMITTED, RFQAction.RECEIVE_QUOTATION): S.RECEIVED,
    (S.RECEIVED, RFQAction.RECEIVE_QUOTATION): S.RECEIVED,
    (S.UNDER_REVIEW, RFQAction.RECEIVE_QUOTATION): S.UNDER_REVIEW,
    # administrator quote
    (S.SUBMITTED, RFQAction.ISSUE_QUOTE): S.QUOTED,
    (S.RECEIVED, RFQAction.ISSUE_QUOTE): S.QUOTED,
    (S.UNDER_REVIEW, RFQAction.ISSUE_QUOTE): S.QUOTED,
}

TERMINAL_STATES: FrozenSet[RFQStatus] = frozenset({S.REJECTED, S.CONVERTED_TO_ORDER})

_REFUSALS = {
    RFQAction.SUBMIT: "Only draft RFQs can be submitted.",
    RFQAction.EDIT_AND_RESUBMIT: "Only draft or submitted RFQs can be edited.",
    RFQAction.START_REVIEW: "Can only start review for received RFQs.",
    RFQAction.REJECT: "RFQ must be Received or Quoted to reject.",
    RFQAction.SELECT_QUOTATION: "RFQ must be in Under Review to approve a quotation.",
    RFQAction.APPROVE: "RFQ must be in QUOTED status to approve.",
    RFQAction.CONVERT_TO_ORDER: "RFQ must be approved to convert to order.",
    RFQAction.RECEIVE_QUOTATION: "This RFQ is not accepting quotations.",
    RFQAction.ISSUE_QUOTE: "A quote can only be issued for an open RFQ.",
}


def allowed_actions(status: RFQStatus) -> FrozenSet[RFQAction]:
    """Operator actions enabled in ``status``."""
    return frozenset(
        action
        for (source, action) in TRANSITIONS
        if source == status and action in OPERATOR_ACTIONS
    )


def can(status: RFQStatus, action: RFQAction) -> bool:
    return (status, action) in TRANSITIONS


def next_status(status: RFQStatus, action: RFQAction) -> RFQStatus:
    try:
        return TRANSITIONS[(status, action)]
    except KeyError:
        raise PreconditionError(
            f"{_REFUSALS[action]} (current status: {status.value})"
        ) from None


def is_terminal(status: RFQStatus) -> bool:
    return status in TERMINAL_STATES


def to_action(value) -> RFQAction:
    if isinstance(value, RFQAction):
        return value
    try:
        return RFQAction[str(value or "").strip().upper()]
    except KeyError:
        raise ValidationError(f"Unknown RFQ action: {value!r}.") from None


def to_status(value) -> RFQStatus:
    if isinstance(value, RFQStatus):
        return value
    try:
        return RFQStatus[str(value or "").strip().upper()]
    except KeyError:
        raise ValidationError(f"Unknown RFQ status: {value!r}.") from None
