from datetime import timedelta
from decimal import Decimal

from feedtrade.models.delivery import FreightPayer
from feedtrade.models.ledger import ReferenceType, TransactionType
from feedtrade.models.order import OrderStatus
from feedtrade.models.payment import PaymentDirection, PaymentMethod
from feedtrade.services import delivery_service, ledger_service, payment_service, sale_service
from tests.conftest import TODAY, balance_of


def test_to_money_rounds_half_up():
    assert ledger_service.to_money("2.345") == Decimal("2.35")
    assert ledger_service.to_money(Decimal("2.344")) == Decimal("2.34")
    assert ledger_service.to_money(0) == Decimal("0.00")


def test_add_transaction_rejects_non_positive_amounts(db, customer):
    account = ledger_service.require_account(db, customer.id)
    for amount in (Decimal("0"), Decimal("-5"), Decimal("0.001")):
        try:
            ledger_service.add_transaction(db, account.id, TransactionType.debit, amount,
                                           ReferenceType.sale, "X", TODAY)
        except ValueError:
            continue
        raise AssertionError(f"{amount} was accepted")


def test_require_account_for_unknown_contact(db):
    try:
        ledger_service.require_account(db, "CNT-MISSING")
    except ValueError as e:
        assert "not found" in str(e)
    else:
        raise AssertionError("expected ValueError")


def test_recalc_repairs_drifted_balance(db, customer, make_delivery):
    make_delivery()
    account = customer.account
    account.balance = Decimal("123.45")
    db.commit()

    checked, drifted = ledger_service.find_drifted_accounts(db)
    assert checked == 2
    assert [d["contact_id"] for d in drifted] == [customer.id]
    assert drifted[0]["computed_balance"] == Decimal("10000.00")

    assert ledger_service.recalc_all_accounts(db) == 2
    assert balance_of(db, customer) == Decimal("10000.00")
    assert ledger_service.find_drifted_accounts(db)[1] == []


def test_soft_deleted_lines_do_not_count(db, customer, make_delivery):
    make_delivery()
    payment = payment_service.create_payment(db, contact_id=customer.id, direction=PaymentDirection.inbound,
                                             method=PaymentMethod.cash, amount=Decimal("4000"),
                                             payment_date=TODAY)
    assert balance_of(db, customer) == Decimal("6000.00")

    payment_service.soft_delete_payment(db, payment.id)
    account = ledger_service.recalc_account_balance(db, customer.account.id)
    assert account.total_debit == Decimal("10000.00")
    assert account.total_credit == Decimal("0.00")

    transactions, total = ledger_service.get_account_transactions(db, customer.account.id)
    assert total == 1
    _, total_with_deleted = ledger_service.get_account_transactions(db, customer.account.id, include_deleted=True)
    assert total_with_deleted == 2


def test_statement_running_balance_and_opening(db, customer, make_delivery):
    make_delivery(delivery_date=TODAY - timedelta(days=10))
    payment_service.create_payment(db, contact_id=customer.id, direction=PaymentDirection.inbound,
                                   method=PaymentMethod.bank_transfer, amount=Decimal("2500"),
                                   payment_date=TODAY - timedelta(days=5))
    make_delivery(delivery_date=TODAY, net_weight=Decimal("500"))

    statement = ledger_service.get_account_statement(db, customer.account.id)
    assert [line["balance"] for line in statement["lines"]] == [
        Decimal("10000.00"), Decimal("7500.00"), Decimal("12500.00")
    ]
    assert statement["closing_balance"] == Decimal("12500.00")

    window = ledger_service.get_account_statement(db, customer.account.id,
                                                  date_from=TODAY - timedelta(days=7),
                                                  date_to=TODAY - timedelta(days=1))
    assert window["opening_balance"] == Decimal("10000.00")
    assert len(window["lines"]) == 1
    assert window["lines"][0]["credit"] == Decimal("2500.00")
    assert window["closing_balance"] == Decimal("7500.00")


def test_statement_for_missing_account(db):
    assert ledger_service.get_account_statement(db, 999) is None


def test_balances_match_live_lines_after_mixed_workflow(db, customer, customer2, supplier, make_delivery):
    first = make_delivery()
    second = make_delivery(net_weight=Decimal("500"), freight_cost=Decimal("300"),
                           freight_payer=FreightPayer.customer)
    payment = payment_service.create_payment(db, contact_id=customer.id, direction=PaymentDirection.inbound,
                                             method=PaymentMethod.cash, amount=Decimal("4000"),
                                             payment_date=TODAY)
    delivery_service.create_return_delivery(db, first.id, Decimal("200"), return_date=TODAY)

    other_sale = sale_service.create_sale(db, contact_id=customer2.id, quantity=Decimal("1000"),
                                          unit_price=Decimal("9"), sale_date=TODAY,
                                          status=OrderStatus.confirmed)
    make_delivery(sale_id=other_sale.id)
    sale_service.cancel_sale(db, other_sale.id, reason="Vazgeçti")

    delivery_service.soft_delete_delivery(db, second.id)
    payment_service.soft_delete_payment(db, payment.id)
    payment_service.restore_payment(db, payment.id)
    delivery_service.restore_delivery(db, second.id)

    total, drifted = ledger_service.find_drifted_accounts(db)
    assert total == 3
    assert drifted == []
    # 10000 + (5000 - 300) - 2000 returned - 4000 paid
    assert balance_of(db, customer) == Decimal("8700.00")
    assert balance_of(db, customer2) == Decimal("0.00")
    # -(8000 + 4000) + 1600 returned
    assert balance_of(db, supplier) == Decimal("-10400.00")
