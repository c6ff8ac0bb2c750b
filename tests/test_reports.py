from datetime import timedelta
from decimal import Decimal

import pytest

from feedtrade.models.check import CheckDirection, CheckStatus, CheckType
from feedtrade.models.delivery import FreightPayer
from feedtrade.models.payment import PaymentDirection, PaymentMethod
from feedtrade.services import (
    check_service, contact_service, delivery_service, payment_service, report_service,
)
from tests.conftest import TODAY

API = "/api/v1"


@pytest.fixture
def trading_day(db, customer, make_delivery):
    """Two deliveries, one partial return, one trashed delivery and a cash collection."""
    first = make_delivery(freight_cost=Decimal("500"), freight_payer=FreightPayer.me,
                          carrier_name="Konya Nakliyat")
    make_delivery(net_weight=Decimal("500"), freight_cost=Decimal("200"),
                  freight_payer=FreightPayer.customer)
    delivery_service.create_return_delivery(db, first.id, Decimal("100"), return_date=TODAY)
    trashed = make_delivery(net_weight=Decimal("2000"))
    delivery_service.soft_delete_delivery(db, trashed.id)
    payment_service.create_payment(db, contact_id=customer.id, direction=PaymentDirection.inbound,
                                   method=PaymentMethod.cash, amount=Decimal("3000"), payment_date=TODAY)
    return first


def test_profit_summary_nets_returns_and_our_freight(db, trading_day):
    summary = report_service.profit_summary(db, TODAY, TODAY)

    # 10000 + 4800 - 1000 returned
    assert summary["revenue"] == Decimal("13800.00")
    # 8000 + 4000 - 800 returned
    assert summary["cost"] == Decimal("11200.00")
    # Customer-paid freight is already netted off the revenue
    assert summary["freight"] == Decimal("500.00")
    assert summary["net_profit"] == Decimal("2100.00")
    assert summary["margin"] == Decimal("15.22")
    assert summary["delivery_count"] == 2
    assert summary["tonnage"] == Decimal("1400")


def test_profit_summary_respects_date_range(db, make_delivery):
    make_delivery(delivery_date=TODAY - timedelta(days=40))
    make_delivery(net_weight=Decimal("500"))

    assert report_service.profit_summary(db, TODAY, TODAY)["revenue"] == Decimal("5000.00")
    assert report_service.profit_summary(db)["revenue"] == Decimal("15000.00")
    empty = report_service.profit_summary(db, TODAY + timedelta(days=1), TODAY + timedelta(days=2))
    assert empty["net_profit"] == Decimal("0.00")
    assert empty["margin"] == Decimal("0.00")


def test_period_report_rankings(db, customer, supplier, trading_day):
    report = report_service.period_report(db, TODAY, TODAY)

    assert [(r["id"], r["total"]) for r in report["top_customers"]] == [(customer.id, Decimal("1500"))]
    assert [(r["id"], r["total"]) for r in report["top_suppliers"]] == [(supplier.id, Decimal("1500"))]
    assert [(r["name"], r["total"]) for r in report["top_carriers"]] == [("Konya Nakliyat", Decimal("500.00"))]
    assert report["feed_distribution"] == [{"name": "Diğer", "tonnage": Decimal("1500")}]


def test_period_report_rejects_inverted_range(db):
    with pytest.raises(ValueError):
        report_service.period_report(db, TODAY, TODAY - timedelta(days=1))


def test_balance_lists_flag_credit_limit(db, customer, supplier, trading_day):
    contact_service.update_contact(db, customer.id, credit_limit=Decimal("5000"))

    balances = report_service.balance_lists(db)

    assert balances["total_receivables"] == Decimal("10800.00")
    assert balances["total_payables"] == Decimal("11200.00")
    receivable = balances["receivables"][0]
    assert receivable["contact_id"] == customer.id
    assert receivable["over_limit"] is True
    assert balances["payables"][0]["contact_id"] == supplier.id


def test_due_checks_window_and_overdue(db, customer, supplier):
    overdue = check_service.create_check(db, contact_id=customer.id, direction=CheckDirection.received,
                                         amount=Decimal("2000"), issue_date=TODAY - timedelta(days=30),
                                         due_date=TODAY - timedelta(days=2), check_no="C-1")
    upcoming = check_service.create_check(db, contact_id=supplier.id, direction=CheckDirection.given,
                                          amount=Decimal("1500"), issue_date=TODAY,
                                          due_date=TODAY + timedelta(days=10),
                                          check_type=CheckType.promissory_note)
    check_service.create_check(db, contact_id=customer.id, direction=CheckDirection.received,
                               amount=Decimal("900"), issue_date=TODAY, due_date=TODAY + timedelta(days=60))
    cleared = check_service.create_check(db, contact_id=customer.id, direction=CheckDirection.received,
                                         amount=Decimal("700"), issue_date=TODAY, due_date=TODAY)
    check_service.update_check_status(db, cleared.id, CheckStatus.deposited)
    check_service.update_check_status(db, cleared.id, CheckStatus.cleared)

    items = report_service.get_due_checks(db, today=TODAY)

    assert [i["id"] for i in items] == [overdue.id, upcoming.id]
    assert items[0]["overdue"] is True
    assert items[0]["days_diff"] == -2
    assert items[1]["label"] == "Senet"
    assert items[1]["days_diff"] == 10


def test_dashboard_figures(db, customer, trading_day):
    check_service.create_check(db, contact_id=customer.id, direction=CheckDirection.received,
                               amount=Decimal("2000"), issue_date=TODAY, due_date=TODAY - timedelta(days=1))

    kpis = report_service.dashboard(db, today=TODAY)

    assert kpis["today_truck_count"] == 2
    assert kpis["today_profit"] == Decimal("2100.00")
    assert kpis["month_profit"] == Decimal("2100.00")
    assert kpis["month_freight"] == Decimal("500.00")
    assert kpis["due_check_count"] == 1
    assert kpis["overdue_check_count"] == 1
    assert kpis["due_check_total"] == Decimal("2000.00")
    # 13800 sold, 3000 collected, 2000 by check
    assert kpis["pending_receivables"] == Decimal("8800.00")


def test_report_endpoints(client, trading_day):
    resp = client.get(f"{API}/reports/profit", params={"date_from": str(TODAY), "date_to": str(TODAY)})
    assert resp.status_code == 200
    assert Decimal(resp.json()["net_profit"]) == Decimal("2100.00")
    assert resp.json()["top_carriers"][0]["name"] == "Konya Nakliyat"

    inverted = client.get(f"{API}/reports/profit",
                          params={"date_from": str(TODAY), "date_to": str(TODAY - timedelta(days=1))})
    assert inverted.status_code == 400

    dashboard = client.get(f"{API}/reports/dashboard", params={"today": str(TODAY)})
    assert dashboard.status_code == 200
    assert dashboard.json()["today_truck_count"] == 2

    assert client.get(f"{API}/reports/balances").status_code == 200
    due = client.get(f"{API}/reports/due-checks", params={"today": str(TODAY)})
    assert due.status_code == 200
    assert due.json()["total"] == 0
