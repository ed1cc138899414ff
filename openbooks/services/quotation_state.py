"""Quotation lifecycle state machine and transition helpers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Union

from openbooks.models.quotations import QuotationStatus
from openbooks.services.errors import (
    AlreadyConvertedError,
    InvalidTransitionError,
    OpenBooksError,
)


# Statuses a user may pick directly; "converted" is reachable only by conversion
EDITABLE_STATES = frozenset(s for s in QuotationStatus if s != QuotationStatus.CONVERTED)


VALID_TRANSITIONS: Dict[QuotationStatus, frozenset] = {
    **{state: EDITABLE_STATES - {state} for state in EDITABLE_STATES},
    QuotationStatus.CONVERTED: frozenset(),  # terminal
}


@dataclass(frozen=True)
class UpdateStatus:
    target: QuotationStatus


@dataclass(frozen=True)
class Convert:
    pass


@dataclass(frozen=True)
class Delete:
    pass


QuotationEvent = Union[UpdateStatus, Convert, Delete]


@dataclass(frozen=True)
class TransitionOk:
    # None once the quotation has been deleted
    state: Optional[QuotationStatus]


@dataclass(frozen=True)
class TransitionRejected:
    error: OpenBooksError


TransitionResult = Union[TransitionOk, TransitionRejected]


def transition(state: QuotationStatus, event: QuotationEvent) -> TransitionResult:
    """
    Total transition function: every (state, event) pair yields a result,
    illegal ones a TransitionRejected carrying the error to surface.
    """
    state = QuotationStatus(state)

    # Deleting is allowed from every state, the linked invoice stays
    if isinstance(event, Delete):
        return TransitionOk(None)

    if state == QuotationStatus.CONVERTED:
        if isinstance(event, Convert):
            return TransitionRejected(AlreadyConvertedError())
        return TransitionRejected(
            AlreadyConvertedError("Cannot update status of a converted quotation")
        )

    if isinstance(event, UpdateStatus):
        target = QuotationStatus(event.target)
        if target == QuotationStatus.CONVERTED:
            return TransitionRejected(
                InvalidTransitionError(
                    state.value,
                    target.value,
                    "Use Convert to Invoice to mark a quotation as converted",
                )
            )
        if target == state:
            return TransitionOk(state)
        if target not in VALID_TRANSITIONS[state]:
            return TransitionRejected(InvalidTransitionError(state.value, target.value))
        return TransitionOk(target)

    if isinstance(event, Convert):
        return TransitionOk(QuotationStatus.CONVERTED)

    raise TypeError(f"Unknown quotation event: {event!r}")


def assert_transition(state: QuotationStatus, event: QuotationEvent) -> Optional[QuotationStatus]:
    """Apply a transition, raising the rejection error instead of returning it."""
    result = transition(state, event)
    if isinstance(result, TransitionRejected):
        raise result.error
    return result.state


def can_update_status(state: QuotationStatus) -> bool:
    return bool(VALID_TRANSITIONS.get(QuotationStatus(state)))


def can_convert(state: QuotationStatus) -> bool:
    return isinstance(transition(state, Convert()), TransitionOk)
