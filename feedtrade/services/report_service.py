"""
Report Service
Dashboard figures and period profit reports, computed from live ledger
lines and deliveries.

Profit for a period:
- revenue = sale debits - sale credits (returns)
- cost    = purchase credits - purchase debits (returns)
- freight = freight_cost of deliveries whose freight we paid (payer "me")
- net profit = revenue - cost - freight
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from feedtrade.models.contact import ContactType, Account
from feedtrade.models.ledger import AccountTransaction, TransactionType, ReferenceType
from feedtrade.models.delivery import Delivery, FreightPayer
from feedtrade.models.order import Sale, Purchase
from feedtrade.models.check import Check, CheckStatus, CheckType
from feedtrade.models.carrier import Carrier, CarrierTransaction, CarrierTransactionType
from feedtrade.services.ledger_service import ZERO, to_money
from feedtrade.logger_config import logger

DUE_STATUSES = (CheckStatus.pending, CheckStatus.deposited)
OTHER_FEED = "Diğer"


def _ledger_sum(
    db: Session,
    reference_type: ReferenceType,
    type: TransactionType,
    date_from: Optional[date],
    date_to: Optional[date]
) -> Decimal:
    query = db.query(func.coalesce(func.sum(AccountTransaction.amount), 0)).filter(
        AccountTransaction.reference_type == reference_type,
        AccountTransaction.type == type,
        AccountTransaction.deleted_at.is_(None)
    )
    if date_from:
        query = query.filter(AccountTransaction.transaction_date >= date_from)
    if date_to:
        query = query.filter(AccountTransaction.transaction_date <= date_to)
    return to_money(query.scalar())


def _live_deliveries(db: Session, date_from: Optional[date], date_to: Optional[date]) -> List[Delivery]:
    query = db.query(Delivery).filter(Delivery.deleted_at.is_(None))
    if date_from:
        query = query.filter(Delivery.delivery_date >= date_from)
    if date_to:
        query = query.filter(Delivery.delivery_date <= date_to)
    return query.all()


def profit_summary(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None) -> Dict[str, Any]:
    """Revenue, cost, our freight and net profit between two dates (inclusive)."""
    revenue = (_ledger_sum(db, ReferenceType.sale, TransactionType.debit, date_from, date_to)
               - _ledger_sum(db, ReferenceType.sale, TransactionType.credit, date_from, date_to))
    cost = (_ledger_sum(db, ReferenceType.purchase, TransactionType.credit, date_from, date_to)
            - _ledger_sum(db, ReferenceType.purchase, TransactionType.debit, date_from, date_to))

    deliveries = _live_deliveries(db, date_from, date_to)
    regular = [d for d in deliveries if not d.is_return]
    returned_kg = sum((Decimal(d.net_weight) for d in deliveries if d.is_return), ZERO)
    freight = sum(
        (Decimal(d.freight_cost or 0) for d in regular if d.freight_payer == FreightPayer.me),
        ZERO
    )

    net_profit = revenue - cost - to_money(freight)
    margin = to_money(net_profit / revenue * 100) if revenue > 0 else ZERO

    return {
        "date_from": date_from,
        "date_to": date_to,
        "delivery_count": len(regular),
        "tonnage": sum((Decimal(d.net_weight) for d in regular), ZERO) - returned_kg,
        "revenue": to_money(revenue),
        "cost": to_money(cost),
        "freight": to_money(freight),
        "net_profit": to_money(net_profit),
        "margin": margin,
    }


def _top(totals: Dict[str, Decimal], names: Dict[str, str], size: int) -> List[Dict[str, Any]]:
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:size]
    return [{"id": key, "name": names.get(key, "-"), "total": value} for key, value in ranked]


def period_report(
    db: Session,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    top: int = 5
) -> Dict[str, Any]:
    """
    Profit/loss report for a period.

    Adds the top customers and suppliers by delivered kg, the top carriers
    by freight charged and the delivered kg per feed type.
    """
    if date_from and date_to and date_from > date_to:
        raise ValueError("date_from must not be after date_to")
    report = profit_summary(db, date_from, date_to)
    deliveries = [d for d in _live_deliveries(db, date_from, date_to) if not d.is_return]

    sale_ids = {d.sale_id for d in deliveries if d.sale_id}
    purchase_ids = {d.purchase_id for d in deliveries if d.purchase_id}
    sales = {s.id: s for s in db.query(Sale).options(joinedload(Sale.contact))
             .filter(Sale.id.in_(sale_ids)).all()} if sale_ids else {}
    purchases = {p.id: p for p in db.query(Purchase).options(joinedload(Purchase.contact))
                 .filter(Purchase.id.in_(purchase_ids)).all()} if purchase_ids else {}

    customer_kg: Dict[str, Decimal] = {}
    supplier_kg: Dict[str, Decimal] = {}
    feed_kg: Dict[str, Decimal] = {}
    names: Dict[str, str] = {}
    for d in deliveries:
        kg = Decimal(d.net_weight)
        sale = sales.get(d.sale_id)
        purchase = purchases.get(d.purchase_id)
        if sale:
            customer_kg[sale.contact_id] = customer_kg.get(sale.contact_id, ZERO) + kg
            names[sale.contact_id] = sale.contact.name
        if purchase:
            supplier_kg[purchase.contact_id] = supplier_kg.get(purchase.contact_id, ZERO) + kg
            names[purchase.contact_id] = purchase.contact.name
        feed = (sale.feed_type if sale else None) or (purchase.feed_type if purchase else None) or OTHER_FEED
        feed_kg[feed] = feed_kg.get(feed, ZERO) + kg

    charges = db.query(CarrierTransaction.carrier_id, Carrier.name,
                       func.coalesce(func.sum(CarrierTransaction.amount), 0)).join(
        Carrier, Carrier.id == CarrierTransaction.carrier_id
    ).filter(
        CarrierTransaction.type == CarrierTransactionType.freight_charge,
        CarrierTransaction.deleted_at.is_(None)
    )
    if date_from:
        charges = charges.filter(CarrierTransaction.transaction_date >= date_from)
    if date_to:
        charges = charges.filter(CarrierTransaction.transaction_date <= date_to)
    carrier_totals = {}
    for carrier_id, name, total in charges.group_by(CarrierTransaction.carrier_id, Carrier.name).all():
        carrier_totals[carrier_id] = to_money(total)
        names[carrier_id] = name

    report.update({
        "top_customers": _top(customer_kg, names, top),
        "top_suppliers": _top(supplier_kg, names, top),
        "top_carriers": _top(carrier_totals, names, top),
        "feed_distribution": [
            {"name": name, "tonnage": kg}
            for name, kg in sorted(feed_kg.items(), key=lambda item: item[1], reverse=True)
        ],
    })
    logger.info(f"Period report {date_from}..{date_to}: net profit {report['net_profit']}")
    return report


def balance_lists(db: Session) -> Dict[str, Any]:
    """
    Open balances split by side, largest first.

    Receivables are positive balances of customers, payables negative
    balances of suppliers ("both" contacts land on whichever side their
    balance is).
    """
    accounts = db.query(Account).options(joinedload(Account.contact)).filter(Account.balance != 0).all()

    receivables, payables = [], []
    for account in accounts:
        contact = account.contact
        balance = to_money(account.balance)
        if balance > 0 and contact.type in (ContactType.customer, ContactType.both):
            limit = Decimal(contact.credit_limit) if contact.credit_limit is not None else None
            receivables.append({
                "contact_id": contact.id,
                "name": contact.name,
                "phone": contact.phone,
                "type": contact.type,
                "amount": balance,
                "credit_limit": limit,
                "over_limit": limit is not None and balance > limit,
            })
        elif balance < 0 and contact.type in (ContactType.supplier, ContactType.both):
            payables.append({
                "contact_id": contact.id,
                "name": contact.name,
                "phone": contact.phone,
                "type": contact.type,
                "amount": -balance,
                "credit_limit": None,
                "over_limit": False,
            })

    receivables.sort(key=lambda item: item["amount"], reverse=True)
    payables.sort(key=lambda item: item["amount"], reverse=True)
    return {
        "total_receivables": sum((r["amount"] for r in receivables), ZERO),
        "total_payables": sum((p["amount"] for p in payables), ZERO),
        "receivables": receivables,
        "payables": payables,
    }


def get_due_checks(
    db: Session,
    today: Optional[date] = None,
    days: int = 30,
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Pending or deposited checks due within `days`, overdue ones included, earliest first."""
    today = today or date.today()
    query = db.query(Check).options(joinedload(Check.contact)).filter(
        Check.deleted_at.is_(None),
        Check.status.in_(DUE_STATUSES),
        Check.due_date <= today + timedelta(days=days)
    ).order_by(Check.due_date.asc(), Check.created_at.asc())
    if limit:
        query = query.limit(limit)

    items = []
    for check in query.all():
        items.append({
            "id": check.id,
            "check_type": check.check_type,
            "label": "Çek" if check.check_type == CheckType.check else "Senet",
            "direction": check.direction,
            "status": check.status,
            "contact_id": check.contact_id,
            "contact_name": check.contact.name if check.contact else "-",
            "contact_phone": check.contact.phone if check.contact else None,
            "check_no": check.check_no,
            "amount": to_money(check.amount),
            "due_date": check.due_date,
            "overdue": check.due_date < today,
            "days_diff": (check.due_date - today).days,
        })
    return items


def dashboard(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
    """Today's and this month's figures, open balances and checks due in the next 7 days."""
    today = today or date.today()
    month_start = today.replace(day=1)

    today_summary = profit_summary(db, today, today)
    month_summary = profit_summary(db, month_start, today)
    balances = balance_lists(db)
    due = get_due_checks(db, today=today, days=7)

    return {
        "today": today,
        "today_truck_count": today_summary["delivery_count"],
        "today_tonnage": today_summary["tonnage"],
        "today_profit": today_summary["net_profit"],
        "month_revenue": month_summary["revenue"],
        "month_tonnage": month_summary["tonnage"],
        "month_freight": month_summary["freight"],
        "month_profit": month_summary["net_profit"],
        "pending_receivables": balances["total_receivables"],
        "pending_payables": balances["total_payables"],
        "due_check_count": len(due),
        "due_check_total": sum((item["amount"] for item in due), ZERO),
        "overdue_check_count": sum(1 for item in due if item["overdue"]),
        "customer_balances": balances["receivables"],
        "supplier_balances": balances["payables"],
    }
