import io
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from feedtrade.services import delivery_service
from feedtrade.services.export_service import EXPORT_TABLES, export_table_csv, export_workbook


def test_csv_has_bom_and_live_rows_only(db, customer, supplier, make_delivery):
    kept = make_delivery()
    dropped = make_delivery(net_weight=Decimal("500"))
    delivery_service.soft_delete_delivery(db, dropped.id)

    content = export_table_csv(db, "deliveries")
    assert content.startswith("\ufeff")
    lines = content.lstrip("\ufeff").strip().split("\n")
    assert lines[0].split(",")[0] == "id"
    assert len(lines) == 2
    assert kept.id in lines[1]


def test_csv_unknown_table(db):
    with pytest.raises(ValueError, match="Unknown export table"):
        export_table_csv(db, "users")


def test_workbook_has_sheet_per_table(db, customer):
    wb = load_workbook(io.BytesIO(export_workbook(db)))
    assert wb.sheetnames == [title for _, title in EXPORT_TABLES.values()]

    contacts = wb["Kişiler"]
    assert contacts.cell(row=1, column=1).value == "id"
    assert contacts.cell(row=2, column=1).value == customer.id


def test_export_endpoints(client, customer):
    resp = client.get("/api/v1/exports/csv/contacts")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]
    assert customer.name in resp.content.decode("utf-8-sig")

    assert client.get("/api/v1/exports/csv/nope").status_code == 404

    excel = client.get("/api/v1/exports/excel")
    assert excel.status_code == 200
    assert excel.content[:2] == b"PK"
