"""
CSV and Excel exports.

CSV files are UTF-8 with a BOM so Excel opens Turkish characters
correctly. The workbook backup has one sheet per table.
"""

import csv
import enum
import io
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from feedtrade.models.contact import Contact
from feedtrade.models.delivery import Delivery
from feedtrade.models.payment import Payment
from feedtrade.models.check import Check
from feedtrade.models.order import Sale, Purchase
from feedtrade.models.ledger import AccountTransaction
from feedtrade.models.carrier import Carrier, CarrierTransaction, Vehicle
from feedtrade.logger_config import logger

# table name -> (model, sheet title)
EXPORT_TABLES: Dict[str, tuple] = {
    "contacts": (Contact, "Kişiler"),
    "sales": (Sale, "Satışlar"),
    "purchases": (Purchase, "Alımlar"),
    "deliveries": (Delivery, "Sevkiyatlar"),
    "account_transactions": (AccountTransaction, "Hesap İşlemleri"),
    "payments": (Payment, "Ödemeler"),
    "checks": (Check, "Çek-Senet"),
    "carriers": (Carrier, "Nakliyeciler"),
    "carrier_transactions": (CarrierTransaction, "Nakliyeci İşlemleri"),
    "vehicles": (Vehicle, "Araçlar"),
}

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")


def _model(table: str):
    if table not in EXPORT_TABLES:
        raise ValueError(f"Unknown export table '{table}'")
    return EXPORT_TABLES[table][0]


def _columns(model) -> List[str]:
    return [column.key for column in model.__table__.columns]


def _rows(db: Session, model) -> list:
    query = db.query(model)
    if hasattr(model, "deleted_at"):
        query = query.filter(model.deleted_at.is_(None))
    return query.order_by(*model.__table__.primary_key.columns).all()


def _cell(value: Any) -> Any:
    """Plain value for a spreadsheet cell."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        # Excel has no timezone support
        return value.replace(tzinfo=None)
    return value


def _csv_value(value: Any) -> Any:
    value = _cell(value)
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="seconds")
    return value


def export_table_csv(db: Session, table: str) -> str:
    model = _model(table)
    columns = _columns(model)

    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(columns)
    rows = _rows(db, model)
    for row in rows:
        writer.writerow([_csv_value(getattr(row, key)) for key in columns])

    logger.info(f"CSV export of {table}: {len(rows)} rows")
    return "\ufeff" + output.getvalue()


def export_workbook(db: Session) -> bytes:
    """Full backup as an .xlsx workbook, one sheet per table."""
    wb = Workbook()
    wb.remove(wb.active)

    for table, (model, title) in EXPORT_TABLES.items():
        ws = wb.create_sheet(title=title)
        columns = _columns(model)

        for col, header in enumerate(columns, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL

        for row_idx, row in enumerate(_rows(db, model), start=2):
            for col, key in enumerate(columns, start=1):
                ws.cell(row=row_idx, column=col, value=_cell(getattr(row, key)))

        for col, header in enumerate(columns, start=1):
            ws.column_dimensions[get_column_letter(col)].width = max(12, len(header) + 4)
        ws.freeze_panes = "A2"

    output = io.BytesIO()
    wb.save(output)
    logger.info(f"Excel backup exported with {len(EXPORT_TABLES)} sheets")
    return output.getvalue()
