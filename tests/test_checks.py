from datetime import timedelta
from decimal import Decimal

import pytest

from feedtrade.models.check import CheckDirection, CheckStatus, CheckType
from feedtrade.models.ledger import AccountTransaction
from feedtrade.services import check_service
from tests.conftest import TODAY, balance_of


@pytest.fixture
def received_check(db, customer):
    return check_service.create_check(db, contact_id=customer.id, direction=CheckDirection.received,
                                      amount=Decimal("5000"), issue_date=TODAY,
                                      due_date=TODAY + timedelta(days=90), check_no="A-100",
                                      bank_name="Halkbank")


def test_received_check_credits_holder(db, customer, received_check):
    assert received_check.status == CheckStatus.pending
    assert balance_of(db, customer) == Decimal("-5000.00")


def test_given_note_debits_contact(db, supplier):
    check_service.create_check(db, contact_id=supplier.id, direction=CheckDirection.given,
                               amount=Decimal("1200"), issue_date=TODAY, due_date=TODAY,
                               check_type=CheckType.promissory_note)
    assert balance_of(db, supplier) == Decimal("1200.00")


def test_happy_path_transitions(db, received_check):
    check_service.update_check_status(db, received_check.id, CheckStatus.deposited)
    check = check_service.update_check_status(db, received_check.id, CheckStatus.cleared, notes="Tahsil edildi")
    assert check.status == CheckStatus.cleared
    assert "Tahsil edildi" in check.notes


def test_bounced_check_can_be_represented(db, received_check):
    check_service.update_check_status(db, received_check.id, CheckStatus.deposited)
    check_service.update_check_status(db, received_check.id, CheckStatus.bounced)
    check = check_service.update_check_status(db, received_check.id, CheckStatus.pending)
    assert check.status == CheckStatus.pending


@pytest.mark.parametrize("path, target", [
    ([], CheckStatus.cleared),
    ([], CheckStatus.bounced),
    ([CheckStatus.deposited, CheckStatus.cleared], CheckStatus.pending),
    ([CheckStatus.cancelled], CheckStatus.pending),
])
def test_invalid_transitions_are_rejected(db, received_check, path, target):
    for status in path:
        check_service.update_check_status(db, received_check.id, status)
    with pytest.raises(ValueError, match="Invalid status transition"):
        check_service.update_check_status(db, received_check.id, target)


def test_endorsed_status_needs_the_endorse_operation(db, received_check):
    with pytest.raises(ValueError, match="endorse"):
        check_service.update_check_status(db, received_check.id, CheckStatus.endorsed)


def test_cancel_reverses_balance(db, customer, received_check):
    check_service.update_check_status(db, received_check.id, CheckStatus.cancelled)
    assert balance_of(db, customer) == Decimal("0.00")


def test_endorse_moves_check_to_target(db, customer, supplier, received_check):
    original, endorsed = check_service.endorse_check(db, received_check.id, supplier.id, notes="Yem borcu")

    assert original.status == CheckStatus.endorsed
    assert original.endorsed_to == supplier.name
    assert endorsed.direction == CheckDirection.given
    assert endorsed.status == CheckStatus.pending
    assert endorsed.endorsed_from_id == original.id
    assert endorsed.amount == original.amount

    # Holder keeps the credit, target is debited
    assert balance_of(db, customer) == Decimal("-5000.00")
    assert balance_of(db, supplier) == Decimal("5000.00")


def test_endorsed_check_cannot_be_trashed(db, customer, supplier, received_check):
    check_service.endorse_check(db, received_check.id, supplier.id)

    with pytest.raises(ValueError, match="endorsed"):
        check_service.soft_delete_check(db, received_check.id)

    assert check_service.get_check_by_id(db, received_check.id) is not None
    assert balance_of(db, customer) == Decimal("-5000.00")
    assert balance_of(db, supplier) == Decimal("5000.00")


def test_endorse_rules(db, customer, supplier, received_check):
    given = check_service.create_check(db, contact_id=supplier.id, direction=CheckDirection.given,
                                       amount=Decimal("100"), issue_date=TODAY, due_date=TODAY)
    with pytest.raises(ValueError, match="received"):
        check_service.endorse_check(db, given.id, customer.id)

    with pytest.raises(ValueError, match="holder"):
        check_service.endorse_check(db, received_check.id, customer.id)

    check_service.update_check_status(db, received_check.id, CheckStatus.deposited)
    with pytest.raises(ValueError, match="cannot be endorsed"):
        check_service.endorse_check(db, received_check.id, supplier.id)


def test_delete_restore_and_purge_check(db, customer, received_check):
    check_service.soft_delete_check(db, received_check.id)
    assert balance_of(db, customer) == Decimal("0.00")

    check_service.restore_check(db, received_check.id)
    assert balance_of(db, customer) == Decimal("-5000.00")

    check_service.soft_delete_check(db, received_check.id)
    assert check_service.permanently_delete_check(db, received_check.id) is True
    assert db.query(AccountTransaction).count() == 0


def test_checks_listed_by_due_date(db, customer, received_check):
    soon = check_service.create_check(db, contact_id=customer.id, direction=CheckDirection.received,
                                      amount=Decimal("10"), issue_date=TODAY, due_date=TODAY + timedelta(days=5))
    checks, total = check_service.get_all_checks(db)
    assert total == 2
    assert [c.id for c in checks] == [soon.id, received_check.id]

    pending, _ = check_service.get_all_checks(db, status=CheckStatus.cleared)
    assert pending == []
