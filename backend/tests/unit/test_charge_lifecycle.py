"""Unit tests for the growth charge transition table."""
import pytest

from firm_billing.models.billing_charge import ChargeStatus
from firm_billing.services.charge_lifecycle import TRANSITIONS, can_transition

ALLOWED = {
    (ChargeStatus.PENDING, ChargeStatus.APPROVED),
    (ChargeStatus.PENDING, ChargeStatus.CANCELLED),
    (ChargeStatus.APPROVED, ChargeStatus.BILLED),
    (ChargeStatus.APPROVED, ChargeStatus.CANCELLED),
    (ChargeStatus.BILLED, ChargeStatus.PAID),
}


@pytest.mark.parametrize("current", list(ChargeStatus))
@pytest.mark.parametrize("target", list(ChargeStatus))
def test_transition_table(current: ChargeStatus, target: ChargeStatus) -> None:
    assert can_transition(current, target) == ((current, target) in ALLOWED)


@pytest.mark.parametrize("terminal", [ChargeStatus.PAID, ChargeStatus.CANCELLED])
def test_terminal_statuses_have_no_exits(terminal: ChargeStatus) -> None:
    assert TRANSITIONS[terminal] == frozenset()
