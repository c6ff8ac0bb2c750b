"""initial ledger schema

Revision ID: a1f3c9d2e7b4
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "a1f3c9d2e7b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


userrole = sa.Enum("owner", "staff", name="userrole")
contacttype = sa.Enum("supplier", "customer", "both", name="contacttype")
orderstatus = sa.Enum("pending", "draft", "confirmed", "delivered", "cancelled", name="orderstatus")
pricingmodel = sa.Enum("nakliye_dahil", "tir_ustu", name="pricingmodel")
freightpayer = sa.Enum("customer", "me", "supplier", name="freightpayer")
transactiontype = sa.Enum("debit", "credit", name="transactiontype")
referencetype = sa.Enum("sale", "purchase", "payment", name="referencetype")
paymentdirection = sa.Enum("inbound", "outbound", name="paymentdirection")
paymentmethod = sa.Enum("cash", "bank_transfer", "check", "promissory_note", name="paymentmethod")
checktype = sa.Enum("check", "promissory_note", name="checktype")
checkdirection = sa.Enum("received", "given", name="checkdirection")
checkstatus = sa.Enum("pending", "deposited", "cleared", "bounced", "endorsed", "cancelled", name="checkstatus")
carriertransactiontype = sa.Enum("freight_charge", "payment", name="carriertransactiontype")
auditaction = sa.Enum("create", "update", "delete", "restore", name="auditaction")


def _timestamps(updated: bool = False, deleted: bool = False) -> list:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True))
    if deleted:
        columns.append(sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", userrole, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(updated=True),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_user_id", "users", ["user_id"], unique=True)

    op.create_table(
        "contacts",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", contacttype, nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("credit_limit", sa.Numeric(precision=15, scale=2), nullable=True),
        *_timestamps(updated=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contacts_name", "contacts", ["name"])

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contact_id", sa.String(length=20), nullable=False),
        sa.Column("total_debit", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("total_credit", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("balance", sa.Numeric(precision=15, scale=2), nullable=False),
        *_timestamps(updated=True),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("contact_id"),
    )

    op.create_table(
        "sales",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("sale_no", sa.String(length=30), nullable=False),
        sa.Column("contact_id", sa.String(length=20), nullable=False),
        sa.Column("feed_type", sa.String(length=100), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("unit", sa.String(length=10), nullable=False),
        sa.Column("unit_price", sa.Numeric(precision=15, scale=4), nullable=False),
        sa.Column("total_amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("delivered_quantity", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("status", orderstatus, nullable=False),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=True, deleted=True),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sale_no"),
    )
    op.create_index("ix_sales_contact_id", "sales", ["contact_id"])
    op.create_index("ix_sales_deleted_at", "sales", ["deleted_at"])

    op.create_table(
        "purchases",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("purchase_no", sa.String(length=30), nullable=False),
        sa.Column("contact_id", sa.String(length=20), nullable=False),
        sa.Column("feed_type", sa.String(length=100), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("unit", sa.String(length=10), nullable=False),
        sa.Column("unit_price", sa.Numeric(precision=15, scale=4), nullable=False),
        sa.Column("total_amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("pricing_model", pricingmodel, nullable=False),
        sa.Column("status", orderstatus, nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=True, deleted=True),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("purchase_no"),
    )
    op.create_index("ix_purchases_contact_id", "purchases", ["contact_id"])
    op.create_index("ix_purchases_deleted_at", "purchases", ["deleted_at"])

    op.create_table(
        "deliveries",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("sale_id", sa.String(length=20), nullable=True),
        sa.Column("purchase_id", sa.String(length=20), nullable=True),
        sa.Column("delivery_date", sa.Date(), nullable=False),
        sa.Column("ticket_no", sa.String(length=50), nullable=True),
        sa.Column("gross_weight", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("tare_weight", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("net_weight", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("vehicle_plate", sa.String(length=20), nullable=True),
        sa.Column("driver_name", sa.String(length=100), nullable=True),
        sa.Column("carrier_name", sa.String(length=255), nullable=True),
        sa.Column("carrier_phone", sa.String(length=20), nullable=True),
        sa.Column("freight_cost", sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column("freight_payer", freightpayer, nullable=False),
        sa.Column("customer_price", sa.Numeric(precision=15, scale=4), nullable=True),
        sa.Column("supplier_price", sa.Numeric(precision=15, scale=4), nullable=True),
        sa.Column("pricing_model", pricingmodel, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_return", sa.Boolean(), nullable=False),
        sa.Column("returned_delivery_id", sa.String(length=20), nullable=True),
        *_timestamps(deleted=True),
        sa.CheckConstraint("net_weight > 0", name="ck_deliveries_net_weight_positive"),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["purchase_id"], ["purchases.id"]),
        sa.ForeignKeyConstraint(["returned_delivery_id"], ["deliveries.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_deliveries_sale_id", "deliveries", ["sale_id"])
    op.create_index("ix_deliveries_purchase_id", "deliveries", ["purchase_id"])
    op.create_index("ix_deliveries_deleted_at", "deliveries", ["deleted_at"])

    op.create_table(
        "account_transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("type", transactiontype, nullable=False),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("reference_type", referencetype, nullable=False),
        sa.Column("reference_id", sa.String(length=30), nullable=False),
        sa.Column("delivery_id", sa.String(length=20), nullable=True),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        *_timestamps(deleted=True),
        sa.CheckConstraint("amount > 0", name="ck_account_transactions_amount_positive"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["delivery_id"], ["deliveries.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_account_transactions_account_id", "account_transactions", ["account_id"])
    op.create_index("ix_account_transactions_reference_id", "account_transactions", ["reference_id"])
    op.create_index("ix_account_transactions_delivery_id", "account_transactions", ["delivery_id"])
    op.create_index("ix_account_transactions_deleted_at", "account_transactions", ["deleted_at"])

    op.create_table(
        "payments",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("contact_id", sa.String(length=20), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("direction", paymentdirection, nullable=False),
        sa.Column("method", paymentmethod, nullable=False),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        *_timestamps(deleted=True),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"]),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payments_contact_id", "payments", ["contact_id"])
    op.create_index("ix_payments_deleted_at", "payments", ["deleted_at"])

    op.create_table(
        "checks",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("contact_id", sa.String(length=20), nullable=False),
        sa.Column("check_type", checktype, nullable=False),
        sa.Column("direction", checkdirection, nullable=False),
        sa.Column("check_no", sa.String(length=50), nullable=True),
        sa.Column("bank_name", sa.String(length=100), nullable=True),
        sa.Column("branch_name", sa.String(length=100), nullable=True),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", checkstatus, nullable=False),
        sa.Column("endorsed_to", sa.String(length=255), nullable=True),
        sa.Column("endorsed_from_id", sa.String(length=20), nullable=True),
        sa.Column("payment_id", sa.String(length=20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=True, deleted=True),
        sa.CheckConstraint("amount > 0", name="ck_checks_amount_positive"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"]),
        sa.ForeignKeyConstraint(["endorsed_from_id"], ["checks.id"]),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_checks_contact_id", "checks", ["contact_id"])
    op.create_index("ix_checks_payment_id", "checks", ["payment_id"])
    op.create_index("ix_checks_deleted_at", "checks", ["deleted_at"])

    op.create_table(
        "carriers",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("plate", sa.String(length=20), nullable=False),
        sa.Column("carrier_id", sa.String(length=20), nullable=True),
        sa.Column("driver_name", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["carrier_id"], ["carriers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("plate"),
    )

    op.create_table(
        "carrier_transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("carrier_id", sa.String(length=20), nullable=False),
        sa.Column("type", carriertransactiontype, nullable=False),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("delivery_id", sa.String(length=20), nullable=True),
        sa.Column("payment_method", sa.String(length=30), nullable=True),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        *_timestamps(deleted=True),
        sa.CheckConstraint("amount > 0", name="ck_carrier_transactions_amount_positive"),
        sa.ForeignKeyConstraint(["carrier_id"], ["carriers.id"]),
        sa.ForeignKeyConstraint(["delivery_id"], ["deliveries.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_carrier_transactions_carrier_id", "carrier_transactions", ["carrier_id"])
    op.create_index("ix_carrier_transactions_delivery_id", "carrier_transactions", ["delivery_id"])
    op.create_index("ix_carrier_transactions_deleted_at", "carrier_transactions", ["deleted_at"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("table_name", sa.String(length=50), nullable=False),
        sa.Column("record_id", sa.String(length=30), nullable=False),
        sa.Column("action", auditaction, nullable=False),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("user_email", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_table_name", "audit_log", ["table_name"])
    op.create_index("ix_audit_log_record_id", "audit_log", ["record_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])

    op.create_table(
        "annotations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("table_name", sa.String(length=50), nullable=False),
        sa.Column("record_id", sa.String(length=30), nullable=False),
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.String(length=500), nullable=True),
        *_timestamps(updated=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("table_name", "record_id", "key", name="uq_annotations_record_key"),
    )
    op.create_index("ix_annotations_record_id", "annotations", ["record_id"])


def downgrade() -> None:
    for table in (
        "annotations", "audit_log", "carrier_transactions", "vehicles", "carriers",
        "checks", "payments", "account_transactions", "deliveries",
        "purchases", "sales", "accounts", "contacts", "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (
        auditaction, carriertransactiontype, checkstatus, checkdirection, checktype,
        paymentmethod, paymentdirection, referencetype, transactiontype,
        freightpayer, pricingmodel, orderstatus, contacttype, userrole,
    ):
        enum.drop(bind, checkfirst=True)
