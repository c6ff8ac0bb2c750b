"""
Delivery Service
Turns a weighbridge ticket into ledger lines on both sides of the trade.

Example:
- 28,500 kg delivered, customer price 10.00 ₺/kg, supplier price 8.00 ₺/kg
- Freight 9,000 ₺ paid by us (freight_payer="me"), purchase priced "tir_ustu"
- Customer account: debit 285,000 (reference_type="sale")
- Supplier account: credit 228,000 (reference_type="purchase")
- Carrier: freight_charge 9,000

Both ledger lines carry delivery_id, so delete / restore / permanent delete
always act on the customer and supplier side together.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from feedtrade.models.delivery import Delivery, FreightPayer
from feedtrade.models.order import Sale, Purchase, OrderStatus, PricingModel, OPEN_STATUSES
from feedtrade.models.ledger import AccountTransaction, TransactionType, ReferenceType
from feedtrade.models.carrier import CarrierTransaction, CarrierTransactionType
from feedtrade.models.audit import AuditAction
from feedtrade.services.audit_service import log_action, snapshot
from feedtrade.services.ledger_service import (
    ZERO, to_money, utcnow, require_account, add_transaction, recalc_accounts,
    soft_delete_transactions, restore_transactions, hard_delete_transactions,
)
from feedtrade.services.carrier_service import (
    upsert_carrier, upsert_vehicle, find_carrier_id, add_freight_charge,
)
from feedtrade.logger_config import logger


def compute_delivery_amounts(
    net_weight: Decimal,
    customer_price: Decimal,
    supplier_price: Decimal,
    freight_cost: Optional[Decimal] = None,
    freight_payer: FreightPayer = FreightPayer.me,
    pricing_model: PricingModel = PricingModel.tir_ustu,
) -> tuple[Decimal, Decimal]:
    """
    Return (customer_amount, supplier_amount) for a delivery.

    - Customer pays the freight -> it is deducted from what the customer owes.
    - Supplier price includes freight (nakliye_dahil) and the supplier did not
      pay the truck -> freight is deducted from what we owe the supplier.
    """
    net = Decimal(str(net_weight))
    freight = Decimal(str(freight_cost or 0))

    customer_amount = net * Decimal(str(customer_price))
    if freight_payer == FreightPayer.customer:
        customer_amount -= freight

    supplier_amount = net * Decimal(str(supplier_price))
    if pricing_model == PricingModel.nakliye_dahil and freight_payer != FreightPayer.supplier:
        supplier_amount -= freight

    return to_money(customer_amount), to_money(supplier_amount)


def format_kg(value: Decimal) -> str:
    # Turkish thousands separator
    return f"{Decimal(value):,.0f}".replace(",", ".")


def _fmt_price(value: Decimal) -> str:
    return f"{Decimal(value).normalize():f}"


def customer_line_description(delivery: Delivery, price: Decimal) -> str:
    text = f"Satış - {format_kg(delivery.net_weight)} kg × {_fmt_price(price)} ₺/kg"
    if delivery.freight_payer == FreightPayer.customer and delivery.freight_cost:
        text += f" (nakliye -{delivery.freight_cost} ₺)"
    return text


def _supplier_description(delivery: Delivery, price: Decimal, pricing_model: PricingModel) -> str:
    text = f"Alım - {format_kg(delivery.net_weight)} kg × {_fmt_price(price)} ₺/kg"
    if (pricing_model == PricingModel.nakliye_dahil
            and delivery.freight_payer != FreightPayer.supplier and delivery.freight_cost):
        text += f" (nakliye -{delivery.freight_cost} ₺)"
    return text


def _freight_description(delivery: Delivery) -> str:
    return f"Nakliye - {format_kg(delivery.net_weight)} kg, {delivery.vehicle_plate or '-'}"


def _needs_carrier_charge(freight_payer: FreightPayer, freight_cost: Optional[Decimal]) -> bool:
    return freight_payer != FreightPayer.customer and (freight_cost or 0) > 0


def get_delivery_by_id(db: Session, delivery_id: str, include_deleted: bool = False) -> Optional[Delivery]:
    query = db.query(Delivery).filter(Delivery.id == delivery_id)
    if not include_deleted:
        query = query.filter(Delivery.deleted_at.is_(None))
    return query.first()


def get_all_deliveries(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    sale_id: Optional[str] = None,
    purchase_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    include_returns: bool = True
) -> tuple[List[Delivery], int]:
    query = db.query(Delivery).filter(Delivery.deleted_at.is_(None))

    if sale_id:
        query = query.filter(Delivery.sale_id == sale_id)
    if purchase_id:
        query = query.filter(Delivery.purchase_id == purchase_id)
    if date_from:
        query = query.filter(Delivery.delivery_date >= date_from)
    if date_to:
        query = query.filter(Delivery.delivery_date <= date_to)
    if not include_returns:
        query = query.filter(Delivery.is_return.is_(False))

    total = query.count()
    deliveries = query.order_by(
        Delivery.delivery_date.desc(), Delivery.created_at.desc()
    ).offset(skip).limit(limit).all()
    return deliveries, total


def get_delivery_transactions(db: Session, delivery_id: str) -> List[AccountTransaction]:
    """Live ledger lines posted for a delivery."""
    return db.query(AccountTransaction).filter(
        AccountTransaction.delivery_id == delivery_id,
        AccountTransaction.deleted_at.is_(None)
    ).order_by(AccountTransaction.id.asc()).all()


def _returned_kg(db: Session, delivery_id: str, exclude_id: Optional[str] = None) -> Decimal:
    query = db.query(Delivery).filter(
        Delivery.returned_delivery_id == delivery_id,
        Delivery.deleted_at.is_(None)
    )
    if exclude_id:
        query = query.filter(Delivery.id != exclude_id)
    return sum((Decimal(d.net_weight) for d in query.all()), ZERO)


def refresh_sale_delivered_quantity(db: Session, sale: Optional[Sale]) -> None:
    """Recompute delivered_quantity from live deliveries; returns subtract."""
    if sale is None:
        return
    deliveries = db.query(Delivery).filter(
        Delivery.sale_id == sale.id,
        Delivery.deleted_at.is_(None)
    ).all()

    delivered = ZERO
    for d in deliveries:
        delivered += -Decimal(d.net_weight) if d.is_return else Decimal(d.net_weight)
    sale.delivered_quantity = max(delivered, ZERO)

    if sale.status in OPEN_STATUSES and delivered >= Decimal(sale.quantity):
        sale.status = OrderStatus.delivered
    elif sale.status == OrderStatus.delivered and delivered < Decimal(sale.quantity):
        sale.status = OrderStatus.confirmed


def _post_delivery_lines(
    db: Session,
    delivery: Delivery,
    customer_account_id: int,
    supplier_account_id: int,
) -> tuple[AccountTransaction, AccountTransaction]:
    """Stage the customer debit and supplier credit for a regular delivery."""
    pricing_model = delivery.pricing_model or PricingModel.tir_ustu
    customer_amount, supplier_amount = compute_delivery_amounts(
        delivery.net_weight,
        delivery.customer_price,
        delivery.supplier_price,
        freight_cost=delivery.freight_cost,
        freight_payer=delivery.freight_payer,
        pricing_model=pricing_model,
    )
    if customer_amount <= 0:
        raise ValueError(f"Customer amount must be positive (got {customer_amount})")
    if supplier_amount <= 0:
        raise ValueError(f"Supplier amount must be positive (got {supplier_amount})")

    customer_tx = add_transaction(
        db,
        account_id=customer_account_id,
        type=TransactionType.debit,
        amount=customer_amount,
        reference_type=ReferenceType.sale,
        reference_id=delivery.sale_id or delivery.id,
        transaction_date=delivery.delivery_date,
        description=customer_line_description(delivery, delivery.customer_price),
        delivery_id=delivery.id,
    )
    supplier_tx = add_transaction(
        db,
        account_id=supplier_account_id,
        type=TransactionType.credit,
        amount=supplier_amount,
        reference_type=ReferenceType.purchase,
        reference_id=delivery.id,
        transaction_date=delivery.delivery_date,
        description=_supplier_description(delivery, delivery.supplier_price, pricing_model),
        delivery_id=delivery.id,
    )
    return customer_tx, supplier_tx


def create_delivery(
    db: Session,
    delivery_date: date,
    net_weight: Decimal,
    sale_id: Optional[str] = None,
    purchase_id: Optional[str] = None,
    customer_contact_id: Optional[str] = None,
    supplier_contact_id: Optional[str] = None,
    customer_price: Optional[Decimal] = None,
    supplier_price: Optional[Decimal] = None,
    pricing_model: Optional[PricingModel] = None,
    freight_cost: Optional[Decimal] = None,
    freight_payer: FreightPayer = FreightPayer.me,
    ticket_no: Optional[str] = None,
    gross_weight: Optional[Decimal] = None,
    tare_weight: Optional[Decimal] = None,
    vehicle_plate: Optional[str] = None,
    driver_name: Optional[str] = None,
    carrier_name: Optional[str] = None,
    carrier_phone: Optional[str] = None,
    notes: Optional[str] = None,
    user_email: Optional[str] = None
) -> Delivery:
    """
    Record a delivery and post it to the customer and supplier accounts.

    Both accounts are resolved and both amounts validated before anything is
    staged; the delivery, its ledger lines, the carrier side effects and the
    audit row are committed together.
    """
    logger.info(f"Creating delivery - sale: {sale_id}, purchase: {purchase_id}, net: {net_weight}")

    sale = None
    if sale_id:
        sale = db.query(Sale).filter(Sale.id == sale_id, Sale.deleted_at.is_(None)).first()
        if not sale:
            raise ValueError(f"Sale {sale_id} not found")
        if sale.status == OrderStatus.cancelled:
            raise ValueError(f"Sale {sale.sale_no} is cancelled")
        if customer_contact_id and customer_contact_id != sale.contact_id:
            raise ValueError("Customer does not match the sale's customer")
        customer_contact_id = sale.contact_id
        if customer_price is None:
            customer_price = sale.unit_price

    purchase = None
    if purchase_id:
        purchase = db.query(Purchase).filter(Purchase.id == purchase_id, Purchase.deleted_at.is_(None)).first()
        if not purchase:
            raise ValueError(f"Purchase {purchase_id} not found")
        if purchase.status == OrderStatus.cancelled:
            raise ValueError(f"Purchase {purchase.purchase_no} is cancelled")
        if supplier_contact_id and supplier_contact_id != purchase.contact_id:
            raise ValueError("Supplier does not match the purchase's supplier")
        supplier_contact_id = purchase.contact_id
        if supplier_price is None:
            supplier_price = purchase.unit_price
        if pricing_model is None:
            pricing_model = purchase.pricing_model

    if customer_price is None or supplier_price is None:
        raise ValueError("Customer and supplier prices are required")
    pricing_model = PricingModel(pricing_model or PricingModel.tir_ustu)
    freight_payer = FreightPayer(freight_payer)

    customer_account = require_account(db, customer_contact_id)
    supplier_account = require_account(db, supplier_contact_id)

    try:
        carrier = upsert_carrier(db, carrier_name, carrier_phone)
        upsert_vehicle(db, vehicle_plate, carrier.id if carrier else None, driver_name)

        delivery = Delivery(
            sale_id=sale.id if sale else None,
            purchase_id=purchase.id if purchase else None,
            delivery_date=delivery_date,
            ticket_no=ticket_no,
            gross_weight=gross_weight,
            tare_weight=tare_weight,
            net_weight=net_weight,
            vehicle_plate=vehicle_plate.strip().upper() if vehicle_plate else None,
            driver_name=driver_name,
            carrier_name=carrier.name if carrier else None,
            carrier_phone=carrier_phone,
            freight_cost=freight_cost,
            freight_payer=freight_payer,
            customer_price=customer_price,
            supplier_price=supplier_price,
            pricing_model=pricing_model,
            notes=notes,
            is_return=False,
        )
        db.add(delivery)
        db.flush()  # Flush to get delivery.id

        _post_delivery_lines(db, delivery, customer_account.id, supplier_account.id)

        # Freight we owe the carrier unless the customer paid the truck
        if _needs_carrier_charge(freight_payer, freight_cost):
            carrier_id = carrier.id if carrier else find_carrier_id(db, None, vehicle_plate)
            if carrier_id:
                add_freight_charge(db, carrier_id, freight_cost, delivery.id,
                                   delivery_date, _freight_description(delivery))
            else:
                logger.warning(f"Delivery {delivery.id} has freight {freight_cost} but no carrier")

        refresh_sale_delivered_quantity(db, sale)
        recalc_accounts(db, [customer_account.id, supplier_account.id])
        log_action(db, "deliveries", delivery.id, AuditAction.create,
                   new_values=snapshot(delivery), user_email=user_email)

        db.commit()
        db.refresh(delivery)
        logger.info(f"Delivery {delivery.id} created and posted")
        return delivery

    except Exception:
        db.rollback()
        logger.exception("Error creating delivery")
        raise


def _repost_delivery(db: Session, delivery: Delivery) -> None:
    """Swap the live ledger pair for one computed from the delivery's current values."""
    live = get_delivery_transactions(db, delivery.id)
    if not live:
        return  # e.g. the sale was cancelled
    customer_tx = next((t for t in live if t.reference_type == ReferenceType.sale), None)
    supplier_tx = next((t for t in live if t.reference_type == ReferenceType.purchase), None)
    if not customer_tx or not supplier_tx:
        raise ValueError(f"Delivery {delivery.id} ledger lines are incomplete")
    if delivery.customer_price is None or delivery.supplier_price is None:
        raise ValueError(f"Delivery {delivery.id} has no posted prices to recompute from")

    affected = soft_delete_transactions(
        db, db.query(AccountTransaction).filter(AccountTransaction.delivery_id == delivery.id), utcnow()
    )
    _post_delivery_lines(db, delivery, customer_tx.account_id, supplier_tx.account_id)
    recalc_accounts(db, affected)


def _sync_carrier_charge(
    db: Session,
    delivery: Delivery,
    old_payer: FreightPayer,
    old_freight: Decimal,
    old_carrier_id: Optional[str]
) -> None:
    """Create, drop, move or re-amount the delivery's freight charge after an edit."""
    new_freight = delivery.freight_cost or ZERO
    old_had = _needs_carrier_charge(old_payer, old_freight)
    new_needs = _needs_carrier_charge(delivery.freight_payer, new_freight)

    charges = db.query(CarrierTransaction).filter(
        CarrierTransaction.delivery_id == delivery.id,
        CarrierTransaction.type == CarrierTransactionType.freight_charge,
        CarrierTransaction.deleted_at.is_(None)
    )

    if old_had and not new_needs:
        for charge in charges.all():
            db.delete(charge)
    elif not old_had and new_needs:
        carrier_id = find_carrier_id(db, delivery.carrier_name, delivery.vehicle_plate)
        if carrier_id:
            add_freight_charge(db, carrier_id, new_freight, delivery.id,
                               delivery.delivery_date, _freight_description(delivery))
    elif old_had and new_needs:
        new_carrier_id = find_carrier_id(db, delivery.carrier_name, delivery.vehicle_plate)
        if old_carrier_id != new_carrier_id:
            for charge in charges.all():
                db.delete(charge)
            if new_carrier_id:
                add_freight_charge(db, new_carrier_id, new_freight, delivery.id,
                                   delivery.delivery_date, _freight_description(delivery))
        elif Decimal(old_freight) != Decimal(new_freight) and new_carrier_id:
            for charge in charges.all():
                charge.amount = to_money(new_freight)


def update_delivery(
    db: Session,
    delivery_id: str,
    user_email: Optional[str] = None,
    **fields: Any
) -> Optional[Delivery]:
    """
    Edit ticket, vehicle, carrier, freight and date fields.

    Freight or date changes re-post the ledger pair; carrier or freight
    changes re-sync the carrier charge.
    """
    delivery = get_delivery_by_id(db, delivery_id)
    if not delivery:
        return None

    changes = {key: value for key, value in fields.items() if value is not None}
    freight_keys = {"freight_cost", "freight_payer"}
    if delivery.is_return and freight_keys & changes.keys():
        raise ValueError("Return deliveries carry no freight")

    old_values = snapshot(delivery)
    old_payer = delivery.freight_payer
    old_freight = delivery.freight_cost or ZERO
    old_date = delivery.delivery_date
    old_carrier_id = find_carrier_id(db, delivery.carrier_name, delivery.vehicle_plate)

    try:
        if "freight_payer" in changes:
            changes["freight_payer"] = FreightPayer(changes["freight_payer"])
        if "vehicle_plate" in changes:
            changes["vehicle_plate"] = changes["vehicle_plate"].strip().upper()
        for key, value in changes.items():
            setattr(delivery, key, value)

        if "carrier_name" in changes or "vehicle_plate" in changes:
            carrier = upsert_carrier(db, delivery.carrier_name, delivery.carrier_phone)
            upsert_vehicle(db, delivery.vehicle_plate, carrier.id if carrier else None, delivery.driver_name)

        ledger_changed = (
            delivery.freight_payer != old_payer
            or Decimal(delivery.freight_cost or 0) != Decimal(old_freight)
            or delivery.delivery_date != old_date
        )
        if ledger_changed and not delivery.is_return:
            _repost_delivery(db, delivery)
        elif delivery.is_return and delivery.delivery_date != old_date:
            for tx in get_delivery_transactions(db, delivery.id):
                tx.transaction_date = delivery.delivery_date

        if not delivery.is_return:
            _sync_carrier_charge(db, delivery, old_payer, old_freight, old_carrier_id)
            if delivery.delivery_date != old_date:
                for charge in db.query(CarrierTransaction).filter(
                    CarrierTransaction.delivery_id == delivery.id,
                    CarrierTransaction.deleted_at.is_(None)
                ).all():
                    charge.transaction_date = delivery.delivery_date

        log_action(db, "deliveries", delivery.id, AuditAction.update,
                   old_values=old_values, new_values=snapshot(delivery), user_email=user_email)
        db.commit()
        db.refresh(delivery)
        logger.info(f"Delivery {delivery_id} updated: {sorted(changes)}")
        return delivery

    except Exception:
        db.rollback()
        logger.exception(f"Error updating delivery {delivery_id}")
        raise


def soft_delete_delivery(db: Session, delivery_id: str, user_email: Optional[str] = None) -> Optional[Delivery]:
    """
    Move a delivery to the trash.

    The delivery, its live returns, their ledger lines and carrier charges
    all get the same deleted_at so restore can bring back exactly this set.
    """
    delivery = get_delivery_by_id(db, delivery_id)
    if not delivery:
        return None

    try:
        deleted_at = utcnow()
        old_values = snapshot(delivery)

        targets = [delivery] + db.query(Delivery).filter(
            Delivery.returned_delivery_id == delivery.id,
            Delivery.deleted_at.is_(None)
        ).all()
        ids = [d.id for d in targets]
        for d in targets:
            d.deleted_at = deleted_at

        affected = soft_delete_transactions(
            db, db.query(AccountTransaction).filter(AccountTransaction.delivery_id.in_(ids)), deleted_at
        )
        for charge in db.query(CarrierTransaction).filter(
            CarrierTransaction.delivery_id.in_(ids),
            CarrierTransaction.deleted_at.is_(None)
        ).all():
            charge.deleted_at = deleted_at

        refresh_sale_delivered_quantity(db, delivery.sale)
        recalc_accounts(db, affected)
        log_action(db, "deliveries", delivery.id, AuditAction.delete,
                   old_values=old_values, new_values=snapshot(delivery), user_email=user_email)

        db.commit()
        db.refresh(delivery)
        logger.info(f"Delivery {delivery_id} moved to trash ({len(ids)} rows, accounts {sorted(affected)})")
        return delivery

    except Exception:
        db.rollback()
        logger.exception(f"Error deleting delivery {delivery_id}")
        raise


def restore_delivery(db: Session, delivery_id: str, user_email: Optional[str] = None) -> Optional[Delivery]:
    """Bring a trashed delivery back with everything deleted together with it."""
    delivery = db.query(Delivery).filter(
        Delivery.id == delivery_id,
        Delivery.deleted_at.isnot(None)
    ).first()
    if not delivery:
        return None

    sale = delivery.sale
    if sale is not None and (sale.deleted_at is not None or sale.status == OrderStatus.cancelled):
        raise ValueError(f"Sale {sale.sale_no} is cancelled or deleted; restore it first")
    if delivery.is_return:
        original = delivery.returned_delivery
        if original is None or original.deleted_at is not None:
            raise ValueError("The original delivery of this return is deleted")
        remaining = Decimal(original.net_weight) - _returned_kg(db, original.id)
        if Decimal(delivery.net_weight) > remaining:
            raise ValueError(f"Restoring would return more than delivered ({remaining} kg left)")

    try:
        deleted_at = delivery.deleted_at
        old_values = snapshot(delivery)

        targets = [delivery] + db.query(Delivery).filter(
            Delivery.returned_delivery_id == delivery.id,
            Delivery.deleted_at == deleted_at
        ).all()
        ids = [d.id for d in targets]

        affected = restore_transactions(
            db, db.query(AccountTransaction).filter(AccountTransaction.delivery_id.in_(ids)), deleted_at
        )
        for charge in db.query(CarrierTransaction).filter(
            CarrierTransaction.delivery_id.in_(ids),
            CarrierTransaction.deleted_at == deleted_at
        ).all():
            charge.deleted_at = None
        for d in targets:
            d.deleted_at = None

        refresh_sale_delivered_quantity(db, sale)
        recalc_accounts(db, affected)
        log_action(db, "deliveries", delivery.id, AuditAction.restore,
                   old_values=old_values, new_values=snapshot(delivery), user_email=user_email)

        db.commit()
        db.refresh(delivery)
        logger.info(f"Delivery {delivery_id} restored")
        return delivery

    except Exception:
        db.rollback()
        logger.exception(f"Error restoring delivery {delivery_id}")
        raise


def purge_deliveries(db: Session, deliveries: List[Delivery]) -> set:
    """Hard-delete deliveries with their ledger lines and carrier charges. No commit."""
    ids = [d.id for d in deliveries]
    if not ids:
        return set()
    affected = hard_delete_transactions(
        db, db.query(AccountTransaction).filter(AccountTransaction.delivery_id.in_(ids))
    )
    for charge in db.query(CarrierTransaction).filter(CarrierTransaction.delivery_id.in_(ids)).all():
        db.delete(charge)
    db.flush()

    # Returns reference their original, so they go first
    for d in sorted(deliveries, key=lambda d: not d.is_return):
        db.delete(d)
        db.flush()
    return affected


def permanently_delete_delivery(db: Session, delivery_id: str, user_email: Optional[str] = None) -> bool:
    """Hard-delete a delivery, its returns, their ledger lines and carrier charges."""
    delivery = get_delivery_by_id(db, delivery_id, include_deleted=True)
    if not delivery:
        return False

    try:
        old_values = snapshot(delivery)
        sale = delivery.sale
        targets = [delivery] + db.query(Delivery).filter(Delivery.returned_delivery_id == delivery.id).all()

        affected = purge_deliveries(db, targets)

        refresh_sale_delivered_quantity(db, sale)
        recalc_accounts(db, affected)
        log_action(db, "deliveries", delivery_id, AuditAction.delete,
                   old_values=old_values, new_values={"permanent": True}, user_email=user_email)

        db.commit()
        logger.info(f"Delivery {delivery_id} permanently deleted ({len(targets)} rows)")
        return True

    except Exception:
        db.rollback()
        logger.exception(f"Error permanently deleting delivery {delivery_id}")
        raise


def create_return_delivery(
    db: Session,
    delivery_id: str,
    returned_kg: Decimal,
    return_date: Optional[date] = None,
    notes: Optional[str] = None,
    user_email: Optional[str] = None
) -> Delivery:
    """
    Record goods coming back from the customer.

    Credits the customer and debits the supplier by the original posted
    amounts scaled by returned_kg / original net weight.
    """
    original = get_delivery_by_id(db, delivery_id)
    if not original:
        raise ValueError(f"Delivery {delivery_id} not found")
    if original.is_return:
        raise ValueError("A return delivery cannot be returned")
    if original.sale is not None and original.sale.status == OrderStatus.cancelled:
        raise ValueError(f"Sale {original.sale.sale_no} is cancelled")

    returned_kg = Decimal(str(returned_kg))
    if returned_kg <= 0:
        raise ValueError("Returned quantity must be positive")
    remaining = Decimal(original.net_weight) - _returned_kg(db, original.id)
    if returned_kg > remaining:
        raise ValueError(f"Returned quantity exceeds the unreturned {remaining} kg")

    live = get_delivery_transactions(db, original.id)
    customer_tx = next((t for t in live if t.reference_type == ReferenceType.sale), None)
    supplier_tx = next((t for t in live if t.reference_type == ReferenceType.purchase), None)
    if not customer_tx or not supplier_tx:
        raise ValueError(f"Delivery {delivery_id} has no active ledger lines to reverse")

    ratio = returned_kg / Decimal(original.net_weight)
    customer_credit = to_money(Decimal(customer_tx.amount) * ratio)
    supplier_debit = to_money(Decimal(supplier_tx.amount) * ratio)

    try:
        ret = Delivery(
            sale_id=original.sale_id,
            purchase_id=original.purchase_id,
            delivery_date=return_date or date.today(),
            net_weight=returned_kg,
            vehicle_plate=original.vehicle_plate,
            freight_payer=original.freight_payer,
            customer_price=original.customer_price,
            supplier_price=original.supplier_price,
            pricing_model=original.pricing_model,
            notes=notes,
            is_return=True,
            returned_delivery_id=original.id,
        )
        db.add(ret)
        db.flush()

        add_transaction(
            db,
            account_id=customer_tx.account_id,
            type=TransactionType.credit,
            amount=customer_credit,
            reference_type=ReferenceType.sale,
            reference_id=original.sale_id or ret.id,
            transaction_date=ret.delivery_date,
            description=f"İade - {format_kg(returned_kg)} kg",
            delivery_id=ret.id,
        )
        add_transaction(
            db,
            account_id=supplier_tx.account_id,
            type=TransactionType.debit,
            amount=supplier_debit,
            reference_type=ReferenceType.purchase,
            reference_id=ret.id,
            transaction_date=ret.delivery_date,
            description=f"İade - {format_kg(returned_kg)} kg",
            delivery_id=ret.id,
        )

        refresh_sale_delivered_quantity(db, original.sale)
        recalc_accounts(db, [customer_tx.account_id, supplier_tx.account_id])
        log_action(db, "deliveries", ret.id, AuditAction.create,
                   new_values=snapshot(ret), user_email=user_email)

        db.commit()
        db.refresh(ret)
        logger.info(f"Return {ret.id} of {returned_kg} kg recorded against {original.id}")
        return ret

    except Exception:
        db.rollback()
        logger.exception(f"Error recording return for delivery {delivery_id}")
        raise


def delivery_summary(delivery: Delivery) -> Dict[str, Any]:
    """Short human description for trash listings."""
    kind = "İade" if delivery.is_return else "Sevkiyat"
    parts = [f"{kind} {format_kg(delivery.net_weight)} kg", str(delivery.delivery_date)]
    if delivery.vehicle_plate:
        parts.append(delivery.vehicle_plate)
    if delivery.ticket_no:
        parts.append(f"fiş {delivery.ticket_no}")
    return {"summary": " - ".join(parts), "amount": None}
