from feedtrade.core.database import SessionLocal, Base, engine
from feedtrade import models  # noqa: F401  registers all tables
from feedtrade.models.contact import ContactType
from feedtrade.models.delivery import FreightPayer
from feedtrade.models.order import OrderStatus, PricingModel
from feedtrade.models.payment import PaymentDirection, PaymentMethod
from feedtrade.models.user import UserRole
from feedtrade.services import (
    contact_service, sale_service, purchase_service, delivery_service, payment_service, user_service,
)

from faker import Faker
import random
from datetime import timedelta, date
from decimal import Decimal

fake = Faker("tr_TR")
FEED_TYPES = ["Mısır silajı", "Yonca", "Saman", "Arpa", "Süt yemi"]
SEED_EMAIL = "seed@feedtrade.com"


def money(low, high):
    return Decimal(str(round(random.uniform(low, high), 2)))


if __name__ == "__main__":
    print("🔄 Recreating tables...")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        user_service.create_user(db, email="owner@feedtrade.com", password="owner1234",
                                 name="İşletme Sahibi", role=UserRole.owner)
        print("✅ Owner user: owner@feedtrade.com / owner1234")

        print("🔄 Creating contacts...")
        suppliers = [
            contact_service.create_contact(db, name=fake.company(), type=ContactType.supplier,
                                           phone=fake.msisdn()[:11], city=fake.city(), user_email=SEED_EMAIL)
            for _ in range(random.randint(5, 8))
        ]
        customers = [
            contact_service.create_contact(db, name=fake.name(), type=ContactType.customer,
                                           phone=fake.msisdn()[:11], city=fake.city(), user_email=SEED_EMAIL)
            for _ in range(random.randint(10, 15))
        ]
        print(f"✅ Seeded {len(suppliers)} suppliers")
        print(f"✅ Seeded {len(customers)} customers")

        print("🔄 Creating sales, purchases and deliveries...")
        delivery_count = 0
        for _ in range(random.randint(10, 20)):
            customer = random.choice(customers)
            supplier = random.choice(suppliers)
            feed_type = random.choice(FEED_TYPES)
            start = fake.date_between(start_date="-90d", end_date="-10d")
            quantity = Decimal(random.randint(20, 80) * 1000)
            supplier_price = money(3, 6)
            customer_price = supplier_price + money(0.5, 1.5)
            pricing_model = random.choice(list(PricingModel))

            sale = sale_service.create_sale(
                db, contact_id=customer.id, quantity=quantity, unit_price=customer_price,
                sale_date=start, feed_type=feed_type, status=OrderStatus.confirmed, user_email=SEED_EMAIL
            )
            purchase = purchase_service.create_purchase(
                db, contact_id=supplier.id, quantity=quantity, unit_price=supplier_price,
                purchase_date=start, pricing_model=pricing_model, feed_type=feed_type,
                status=OrderStatus.confirmed, user_email=SEED_EMAIL
            )

            for i in range(random.randint(1, 3)):
                tare = Decimal(random.randint(14000, 16000))
                net = Decimal(random.randint(18000, 26000))
                freight = money(3000, 8000) if random.random() < 0.7 else None
                delivery_service.create_delivery(
                    db,
                    delivery_date=start + timedelta(days=i * 2),
                    net_weight=net,
                    gross_weight=tare + net,
                    tare_weight=tare,
                    sale_id=sale.id,
                    purchase_id=purchase.id,
                    pricing_model=pricing_model,
                    freight_cost=freight,
                    freight_payer=random.choice(list(FreightPayer)) if freight else FreightPayer.me,
                    ticket_no=str(fake.random_number(digits=6)),
                    vehicle_plate=fake.license_plate(),
                    driver_name=fake.name(),
                    carrier_name=random.choice(["Özkan Nakliyat", "Yıldız Lojistik", None]),
                    user_email=SEED_EMAIL
                )
                delivery_count += 1
        print(f"✅ Seeded {delivery_count} deliveries")

        print("🔄 Creating payments...")
        payments = 0
        for contact, direction in [(c, PaymentDirection.inbound) for c in customers] + \
                                  [(s, PaymentDirection.outbound) for s in suppliers]:
            for _ in range(random.randint(0, 2)):
                method = random.choice([PaymentMethod.cash, PaymentMethod.bank_transfer, PaymentMethod.check])
                payment_date = fake.date_between(start_date="-60d", end_date="today")
                payment_service.create_payment(
                    db, contact_id=contact.id, direction=direction, method=method,
                    amount=money(10000, 60000), payment_date=payment_date,
                    due_date=payment_date + timedelta(days=60) if method == PaymentMethod.check else None,
                    check_no=str(fake.random_number(digits=7)) if method == PaymentMethod.check else None,
                    user_email=SEED_EMAIL
                )
                payments += 1
        print(f"✅ Seeded {payments} payments")
        print(f"🎉 Seeding complete ({date.today().isoformat()})")

    except Exception as e:
        db.rollback()
        print(f"❌ Error during seeding: {e}")
        raise
    finally:
        db.close()
