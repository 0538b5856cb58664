import pytest

from app.schemas.invoice import Moneda
from app.services.invoice_store import InvoiceStore, InvoiceStoreError


def test_partitions_by_currency(make_invoice):
    mxn = make_invoice()
    usd = make_invoice(moneda=Moneda.USD)
    store = InvoiceStore([mxn, usd])
    assert store.for_currency(Moneda.MXN) == [mxn]
    assert store.for_currency(Moneda.USD) == [usd]
    assert store.for_currency(Moneda.EUR) == []
    assert len(store) == 2
    assert usd.id in store


def test_duplicate_id_in_bucket_is_rejected(make_invoice):
    invoice = make_invoice()
    store = InvoiceStore([invoice])
    with pytest.raises(InvoiceStoreError):
        store.add(invoice)


def test_move_removes_then_inserts(make_invoice):
    invoice = make_invoice()
    store = InvoiceStore([invoice])
    moved = store.move(invoice.id, Moneda.EUR)
    assert moved.moneda == Moneda.EUR
    assert moved.total == invoice.total
    assert store.for_currency(Moneda.MXN) == []
    assert store.get(invoice.id).moneda == Moneda.EUR
    assert store.move(invoice.id, Moneda.EUR) == moved


def test_missing_invoice(make_invoice):
    store = InvoiceStore()
    assert store.get("nada") is None
    with pytest.raises(InvoiceStoreError):
        store.remove("nada")


def test_malformed_amounts_become_zero(make_invoice):
    invoice = make_invoice(total="abc", monto_pagado=None, subtotal="$1,200.50")
    assert invoice.total == 0
    assert invoice.monto_pagado == 0
    assert str(invoice.subtotal) == "1200.50"
