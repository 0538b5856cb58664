from datetime import date
from decimal import Decimal

import pytest

from app.schemas.invoice import BulkUpdate, Estatus, InvoiceIn, InvoicePatch, Moneda
from app.schemas.supplier import SupplierIn
from app.services.catalog_service import CatalogService
from app.services.invoice_repository import InvoiceRepository
from app.services.invoice_service import InvoiceService, InvoiceServiceError, build_invoice, compute_iva


@pytest.fixture
def service(db_session):
    return InvoiceService(db_session)


def test_build_invoice_derives_iva_total_and_due_date():
    invoice = build_invoice(
        InvoiceIn(proveedor="Acme", fecha=date(2026, 1, 10), subtotal="1000", ret_isr="100", dias_credito=15)
    )
    assert invoice.iva == Decimal("160.00")
    assert invoice.total == Decimal("1060.00")
    assert invoice.vencimiento == date(2026, 1, 25)
    assert invoice.id


def test_explicit_iva_and_due_date_win():
    invoice = build_invoice(
        InvoiceIn(proveedor="Acme", fecha="2026-01-10", subtotal="1000", iva="0", vencimiento="2026-05-01")
    )
    assert invoice.iva == Decimal("0.00")
    assert invoice.total == Decimal("1000.00")
    assert invoice.vencimiento == date(2026, 5, 1)


def test_no_fecha_means_no_vencimiento():
    assert build_invoice(InvoiceIn(proveedor="Acme", subtotal="10")).vencimiento is None


@pytest.mark.parametrize(
    "pagado, estatus",
    [("0", Estatus.PENDIENTE), ("500", Estatus.PARCIAL), ("1160", Estatus.PAGADO), ("2000", Estatus.PAGADO)],
)
def test_status_follows_payment(pagado, estatus):
    invoice = build_invoice(InvoiceIn(proveedor="Acme", subtotal="1000", monto_pagado=pagado))
    assert invoice.estatus == estatus


def test_compute_iva_rounds_half_up():
    assert compute_iva(Decimal("0.03125")) == Decimal("0.01")
    assert compute_iva(Decimal("10.03125")) == Decimal("1.61")


def test_credit_days_come_from_supplier(service, db_session):
    CatalogService(db_session).create_supplier(SupplierIn(nombre="Acme", dias_credito=45))
    saved = service.save(InvoiceIn(proveedor="ACME", fecha="2026-01-01", subtotal="100"))
    assert saved.dias_credito == 45
    assert saved.vencimiento == date(2026, 2, 15)
    assert service.save(InvoiceIn(proveedor="Nuevo", fecha="2026-01-01", subtotal="100")).dias_credito == 30


def test_save_edits_in_place(service):
    saved = service.save(InvoiceIn(proveedor="Acme", subtotal="100"))
    edited = service.save(InvoiceIn(id=saved.id, proveedor="Acme", subtotal="200", moneda=Moneda.USD))
    assert edited.id == saved.id
    assert edited.moneda == Moneda.USD
    assert service.store().for_currency(Moneda.MXN) == []
    with pytest.raises(InvoiceServiceError):
        service.save(InvoiceIn(id="no-existe", proveedor="Acme"))


def test_patch_to_paid_settles_total(service):
    saved = service.save(InvoiceIn(proveedor="Acme", subtotal="100"))
    patched = service.patch(saved.id, InvoicePatch(estatus=Estatus.PAGADO))
    assert patched.monto_pagado == saved.total
    assert service.require(saved.id).saldo == 0


def test_patch_can_clear_scheduled_date(service):
    saved = service.save(InvoiceIn(proveedor="Acme", subtotal="100", fecha_programacion="2026-03-03"))
    patched = service.patch(saved.id, InvoicePatch.model_validate({"fechaProgramacion": ""}))
    assert patched.fecha_programacion is None
    assert service.require(saved.id).fecha_programacion is None


def test_toggle_vo_bo(service):
    saved = service.save(InvoiceIn(proveedor="Acme", subtotal="100"))
    assert service.toggle_vo_bo(saved.id).vo_bo is True
    assert service.toggle_vo_bo(saved.id).vo_bo is False


def test_bulk_paid_uses_each_total(service):
    a = service.save(InvoiceIn(proveedor="Acme", subtotal="100"))
    b = service.save(InvoiceIn(proveedor="Acme", subtotal="300"))
    updated = service.bulk_update(BulkUpdate(ids=[a.id, b.id, "fantasma"], estatus=Estatus.PAGADO))
    assert updated == 2
    assert service.require(a.id).monto_pagado == a.total
    assert service.require(b.id).monto_pagado == b.total


def test_bulk_classification(service):
    a = service.save(InvoiceIn(proveedor="Acme", subtotal="100"))
    assert service.bulk_update(BulkUpdate(ids=[a.id], clasificacion="Materiales")) == 1
    assert service.require(a.id).clasificacion == "Materiales"
    assert service.bulk_update(BulkUpdate(ids=[a.id])) == 0


def test_move_and_delete(service, db_session):
    saved = service.save(InvoiceIn(proveedor="Acme", subtotal="100"))
    moved = service.move(saved.id, Moneda.EUR)
    assert moved.moneda == Moneda.EUR
    assert InvoiceRepository(db_session).load_store().for_currency(Moneda.EUR)[0].id == saved.id
    service.delete(saved.id)
    assert len(service.store()) == 0
    with pytest.raises(InvoiceServiceError):
        service.delete(saved.id)
    with pytest.raises(InvoiceServiceError):
        service.move(saved.id, Moneda.MXN)


def test_unknown_currency_rows_load_as_mxn(db_session, service):
    saved = service.save(InvoiceIn(proveedor="Acme", subtotal="100"))
    InvoiceRepository(db_session).update_fields(saved.id, {"moneda": "GBP"})
    assert service.store().for_currency(Moneda.MXN)[0].id == saved.id
