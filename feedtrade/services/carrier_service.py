"""
Carrier (nakliyeci) mini-ledger.

freight_charge rows are what we owe a carrier for a delivery, payment rows
are what we paid. Balance = charges - payments over live rows.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from feedtrade.models.carrier import Carrier, Vehicle, CarrierTransaction, CarrierTransactionType
from feedtrade.models.audit import AuditAction
from feedtrade.services.audit_service import log_action, snapshot
from feedtrade.services.ledger_service import ZERO, to_money, utcnow
from feedtrade.logger_config import logger


def get_carrier_by_id(db: Session, carrier_id: str) -> Optional[Carrier]:
    return db.query(Carrier).filter(Carrier.id == carrier_id).first()


def get_carrier_by_name(db: Session, name: str) -> Optional[Carrier]:
    return db.query(Carrier).filter(Carrier.name == name.strip()).first()


def get_all_carriers(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    include_inactive: bool = False
) -> tuple[List[Carrier], int]:
    query = db.query(Carrier)
    if not include_inactive:
        query = query.filter(Carrier.is_active.is_(True))
    if search:
        query = query.filter(Carrier.name.ilike(f"%{search}%"))

    total = query.count()
    carriers = query.order_by(Carrier.name.asc()).offset(skip).limit(limit).all()
    return carriers, total


def create_carrier(db: Session, name: str, phone: Optional[str] = None) -> Carrier:
    if get_carrier_by_name(db, name):
        raise ValueError(f"Carrier '{name}' already exists")

    carrier = Carrier(name=name.strip(), phone=phone)
    db.add(carrier)
    try:
        db.commit()
        db.refresh(carrier)
        logger.info(f"Carrier {carrier.id} created: {carrier.name}")
        return carrier
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating carrier: {str(e)}")
        raise ValueError("Failed to create carrier. Name may already exist.")


def update_carrier(
    db: Session,
    carrier_id: str,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    is_active: Optional[bool] = None
) -> Optional[Carrier]:
    carrier = get_carrier_by_id(db, carrier_id)
    if not carrier:
        return None

    if name is not None:
        existing = get_carrier_by_name(db, name)
        if existing and existing.id != carrier_id:
            raise ValueError(f"Carrier '{name}' already exists")
        carrier.name = name.strip()
    if phone is not None:
        carrier.phone = phone
    if is_active is not None:
        carrier.is_active = is_active

    try:
        db.commit()
        db.refresh(carrier)
        return carrier
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating carrier: {str(e)}")
        raise ValueError("Failed to update carrier.")


def deactivate_carrier(db: Session, carrier_id: str) -> Optional[Carrier]:
    """Carriers keep their history; delete only hides them."""
    return update_carrier(db, carrier_id, is_active=False)


def upsert_carrier(db: Session, name: Optional[str], phone: Optional[str] = None) -> Optional[Carrier]:
    """Find a carrier by name or stage a new one. No commit."""
    if not name or not name.strip():
        return None
    carrier = get_carrier_by_name(db, name)
    if carrier:
        if phone and not carrier.phone:
            carrier.phone = phone
        return carrier

    carrier = Carrier(name=name.strip(), phone=phone)
    db.add(carrier)
    db.flush()
    logger.info(f"Carrier {carrier.id} auto-created from delivery: {carrier.name}")
    return carrier


def upsert_vehicle(
    db: Session,
    plate: Optional[str],
    carrier_id: Optional[str] = None,
    driver_name: Optional[str] = None
) -> Optional[Vehicle]:
    """Find a vehicle by plate or stage a new one, filling blanks. No commit."""
    if not plate or not plate.strip():
        return None
    plate = plate.strip().upper()
    vehicle = db.query(Vehicle).filter(Vehicle.plate == plate).first()
    if not vehicle:
        vehicle = Vehicle(plate=plate, carrier_id=carrier_id, driver_name=driver_name)
        db.add(vehicle)
        db.flush()
        return vehicle

    if carrier_id and not vehicle.carrier_id:
        vehicle.carrier_id = carrier_id
    if driver_name:
        vehicle.driver_name = driver_name
    return vehicle


def save_vehicle(
    db: Session,
    plate: str,
    carrier_id: Optional[str] = None,
    driver_name: Optional[str] = None
) -> Vehicle:
    """Committed upsert for the vehicles endpoint."""
    if carrier_id and not get_carrier_by_id(db, carrier_id):
        raise ValueError(f"Carrier {carrier_id} not found")
    try:
        vehicle = upsert_vehicle(db, plate, carrier_id=carrier_id, driver_name=driver_name)
        if carrier_id:
            vehicle.carrier_id = carrier_id
        db.commit()
        db.refresh(vehicle)
        return vehicle
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error saving vehicle: {str(e)}")
        raise ValueError("Failed to save vehicle.")


def get_all_vehicles(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    carrier_id: Optional[str] = None
) -> tuple[List[Vehicle], int]:
    query = db.query(Vehicle).filter(Vehicle.is_active.is_(True))
    if carrier_id:
        query = query.filter(Vehicle.carrier_id == carrier_id)
    total = query.count()
    vehicles = query.order_by(Vehicle.plate.asc()).offset(skip).limit(limit).all()
    return vehicles, total


def find_carrier_id(db: Session, carrier_name: Optional[str], vehicle_plate: Optional[str]) -> Optional[str]:
    """Carrier by name first, then through the vehicle's plate."""
    if carrier_name:
        carrier = get_carrier_by_name(db, carrier_name)
        if carrier:
            return carrier.id
    if vehicle_plate:
        vehicle = db.query(Vehicle).filter(Vehicle.plate == vehicle_plate.strip().upper()).first()
        if vehicle and vehicle.carrier_id:
            return vehicle.carrier_id
    return None


def add_freight_charge(
    db: Session,
    carrier_id: str,
    amount: Decimal,
    delivery_id: str,
    transaction_date: date,
    description: Optional[str] = None
) -> CarrierTransaction:
    tx = CarrierTransaction(
        carrier_id=carrier_id,
        type=CarrierTransactionType.freight_charge,
        amount=to_money(amount),
        delivery_id=delivery_id,
        description=description,
        transaction_date=transaction_date,
    )
    db.add(tx)
    return tx


def get_carrier_transactions(
    db: Session,
    carrier_id: str,
    skip: int = 0,
    limit: int = 100
) -> tuple[List[CarrierTransaction], int]:
    query = db.query(CarrierTransaction).filter(
        CarrierTransaction.carrier_id == carrier_id,
        CarrierTransaction.deleted_at.is_(None)
    )
    total = query.count()
    rows = query.order_by(
        CarrierTransaction.transaction_date.desc(), CarrierTransaction.id.desc()
    ).offset(skip).limit(limit).all()
    return rows, total


def get_carrier_balance(db: Session, carrier_id: str) -> Optional[dict]:
    carrier = get_carrier_by_id(db, carrier_id)
    if not carrier:
        return None

    rows = db.query(CarrierTransaction.type, CarrierTransaction.amount).filter(
        CarrierTransaction.carrier_id == carrier_id,
        CarrierTransaction.deleted_at.is_(None)
    ).all()

    total_freight = ZERO
    total_paid = ZERO
    for tx_type, amount in rows:
        if tx_type == CarrierTransactionType.freight_charge:
            total_freight += Decimal(amount)
        else:
            total_paid += Decimal(amount)

    return {
        "carrier_id": carrier.id,
        "carrier_name": carrier.name,
        "total_freight": to_money(total_freight),
        "total_paid": to_money(total_paid),
        "balance": to_money(total_freight - total_paid),
    }


def create_carrier_payment(
    db: Session,
    carrier_id: str,
    amount: Decimal,
    transaction_date: date,
    payment_method: Optional[str] = None,
    description: Optional[str] = None,
    user_email: Optional[str] = None
) -> CarrierTransaction:
    carrier = get_carrier_by_id(db, carrier_id)
    if not carrier:
        raise ValueError(f"Carrier {carrier_id} not found")
    amount = to_money(amount)
    if amount <= 0:
        raise ValueError("Amount must be positive")

    try:
        tx = CarrierTransaction(
            carrier_id=carrier_id,
            type=CarrierTransactionType.payment,
            amount=amount,
            payment_method=payment_method,
            description=description or f"Nakliye ödemesi - {carrier.name}",
            transaction_date=transaction_date,
        )
        db.add(tx)
        db.flush()
        log_action(db, "carrier_transactions", tx.id, AuditAction.create,
                   new_values=snapshot(tx), user_email=user_email)
        db.commit()
        db.refresh(tx)
        logger.info(f"Carrier payment {tx.id} of {amount} recorded for {carrier_id}")
        return tx
    except Exception:
        db.rollback()
        logger.exception(f"Error recording carrier payment for {carrier_id}")
        raise


def delete_carrier_payment(
    db: Session,
    carrier_id: str,
    transaction_id: int,
    user_email: Optional[str] = None
) -> Optional[CarrierTransaction]:
    """Soft-delete a manual carrier payment. Freight charges follow their delivery."""
    tx = db.query(CarrierTransaction).filter(
        CarrierTransaction.id == transaction_id,
        CarrierTransaction.carrier_id == carrier_id,
        CarrierTransaction.deleted_at.is_(None)
    ).first()
    if not tx:
        return None
    if tx.type != CarrierTransactionType.payment:
        raise ValueError("Freight charges are removed by deleting their delivery")

    try:
        old_values = snapshot(tx)
        tx.deleted_at = utcnow()
        log_action(db, "carrier_transactions", tx.id, AuditAction.delete,
                   old_values=old_values, user_email=user_email)
        db.commit()
        db.refresh(tx)
        return tx
    except Exception:
        db.rollback()
        logger.exception(f"Error deleting carrier payment {transaction_id}")
        raise
