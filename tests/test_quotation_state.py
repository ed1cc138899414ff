import pytest

from openbooks.models.quotations import QuotationStatus
from openbooks.services.errors import AlreadyConvertedError, ErrorCode, InvalidTransitionError
from openbooks.services.quotation_state import (
    EDITABLE_STATES,
    VALID_TRANSITIONS,
    Convert,
    Delete,
    TransitionOk,
    TransitionRejected,
    UpdateStatus,
    assert_transition,
    can_convert,
    can_update_status,
    transition,
)


EDITABLE = sorted(EDITABLE_STATES, key=lambda s: s.value)


@pytest.mark.parametrize("source", EDITABLE)
@pytest.mark.parametrize("target", EDITABLE)
def test_any_editable_status_reaches_any_other(source, target):
    result = transition(source, UpdateStatus(target))

    assert isinstance(result, TransitionOk)
    assert result.state == target


@pytest.mark.parametrize("source", EDITABLE)
def test_update_to_converted_is_rejected(source):
    result = transition(source, UpdateStatus(QuotationStatus.CONVERTED))

    assert isinstance(result, TransitionRejected)
    assert isinstance(result.error, InvalidTransitionError)
    assert "Convert to Invoice" in result.error.message


@pytest.mark.parametrize("target", list(QuotationStatus))
def test_converted_is_terminal_for_status_updates(target):
    result = transition(QuotationStatus.CONVERTED, UpdateStatus(target))

    assert isinstance(result, TransitionRejected)
    assert result.error.code == ErrorCode.ALREADY_CONVERTED


def test_convert_from_editable_states():
    for source in EDITABLE:
        assert transition(source, Convert()) == TransitionOk(QuotationStatus.CONVERTED)


def test_convert_twice_is_rejected():
    result = transition(QuotationStatus.CONVERTED, Convert())

    assert isinstance(result, TransitionRejected)
    assert result.error.message == "Quotation has already been converted to an invoice"


def test_delete_from_any_state():
    for source in QuotationStatus:
        assert transition(source, Delete()) == TransitionOk(None)


def test_transition_table_shape():
    assert VALID_TRANSITIONS[QuotationStatus.CONVERTED] == frozenset()
    assert VALID_TRANSITIONS[QuotationStatus.SENT] == frozenset(
        {QuotationStatus.DRAFT, QuotationStatus.ACCEPTED, QuotationStatus.REJECTED, QuotationStatus.EXPIRED}
    )


def test_assert_transition_raises_carried_error():
    with pytest.raises(AlreadyConvertedError):
        assert_transition(QuotationStatus.CONVERTED, Convert())

    assert assert_transition("sent", UpdateStatus(QuotationStatus.ACCEPTED)) == QuotationStatus.ACCEPTED


def test_control_visibility_helpers():
    assert can_update_status(QuotationStatus.DRAFT) is True
    assert can_update_status(QuotationStatus.CONVERTED) is False
    assert can_convert(QuotationStatus.EXPIRED) is True
    assert can_convert(QuotationStatus.CONVERTED) is False
