import random
from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.schemas.filters import DateRange
from app.schemas.invoice import Estatus, Moneda
from app.services.projection_service import build_projection_matrix

DAY = date(2026, 3, 1)


def test_scheduled_and_due_dates_share_a_cell(make_invoice):
    scheduled = make_invoice(proveedor="X", total="500", fecha_programacion=DAY, vencimiento=date(2026, 4, 1))
    due = make_invoice(proveedor="X", total="300", vencimiento=DAY)
    matrix = build_projection_matrix([scheduled, due])
    cell = matrix.cell("X", DAY)
    assert cell.total == Decimal("800")
    assert not cell.is_mixed
    assert cell.currencies == [Moneda.MXN]
    assert [i.saldo_pendiente for i in cell.invoices] == [Decimal("500"), Decimal("300")]
    assert matrix.dates == [DAY]


def test_mixed_cell_keeps_per_currency_sums(make_invoice):
    invoices = [
        make_invoice(proveedor="X", total="100", vencimiento=DAY),
        make_invoice(proveedor="X", total="40", vencimiento=DAY, moneda=Moneda.USD),
    ]
    cell = build_projection_matrix(invoices).cell("X", DAY)
    assert cell.is_mixed
    assert cell.by_currency[Moneda.USD] == Decimal("40")
    assert cell.total == Decimal("140")


def test_closed_range_lists_every_day(make_invoice):
    invoice = make_invoice(proveedor="X", vencimiento=DAY + timedelta(days=1))
    outside = make_invoice(proveedor="Y", vencimiento=DAY + timedelta(days=10))
    matrix = build_projection_matrix([invoice, outside], DateRange(start=DAY, end=DAY + timedelta(days=4)))
    assert matrix.dates == [DAY + timedelta(days=n) for n in range(5)]
    assert matrix.providers == ["X"]


def test_inverted_range_has_no_days(make_invoice):
    matrix = build_projection_matrix([make_invoice(vencimiento=DAY)], DateRange(start=DAY, end=DAY - timedelta(days=1)))
    assert matrix.dates == []
    assert matrix.providers == []


def test_search_and_paid_invoices(make_invoice):
    invoices = [
        make_invoice(proveedor="Luz y Fuerza", vencimiento=DAY),
        make_invoice(proveedor="Papelera", concepto="Hojas", vencimiento=DAY),
        make_invoice(proveedor="Pagada", estatus=Estatus.PAGADO, vencimiento=DAY),
    ]
    assert build_projection_matrix(invoices).providers == ["Luz y Fuerza", "Papelera"]
    assert build_projection_matrix(invoices, search="hojas").providers == ["Papelera"]


def test_one_sided_range_keeps_a_sparse_axis(make_invoice):
    invoices = [
        make_invoice(proveedor="X", vencimiento=DAY - timedelta(days=3)),
        make_invoice(proveedor="X", vencimiento=DAY + timedelta(days=2)),
        make_invoice(proveedor="Y", vencimiento=DAY + timedelta(days=9)),
    ]
    from_day = build_projection_matrix(invoices, DateRange(start=DAY))
    assert from_day.dates == [DAY + timedelta(days=2), DAY + timedelta(days=9)]
    until_day = build_projection_matrix(invoices, DateRange(end=DAY))
    assert until_day.dates == [DAY - timedelta(days=3)]
    assert until_day.providers == ["X"]


def test_search_matches_folio_key_and_total(make_invoice):
    invoices = [
        make_invoice(proveedor="Alfa", serie="B", folio="771", total="500", vencimiento=DAY),
        make_invoice(proveedor="Beta", serie="C", folio="12", total="9340", vencimiento=DAY),
    ]
    assert build_projection_matrix(invoices, search="b771").providers == ["Alfa"]
    assert build_projection_matrix(invoices, search="934").providers == ["Beta"]


def test_invoice_without_payment_or_due_date_is_left_out(make_invoice):
    undated = make_invoice(proveedor="Sin fecha", vencimiento=None, fecha_programacion=None)
    matrix = build_projection_matrix([undated, make_invoice(proveedor="X", vencimiento=DAY)])
    assert matrix.providers == ["X"]
    assert matrix.grand_total == Decimal("1160")


def _random_range(rng):
    start = DAY + timedelta(days=rng.randint(-6, 6))
    end = start + timedelta(days=rng.randint(0, 12))
    return rng.choice([None, DateRange(start=start, end=end), DateRange(start=start), DateRange(end=end)])


def _expected_cells(invoices, date_range, search):
    """Recompute the projected balances per (provider, day) from scratch."""
    cells = {}
    query = (search or "").lower()
    for invoice in invoices:
        if invoice.estatus == Estatus.PAGADO or invoice.total - invoice.monto_pagado <= 0:
            continue
        day = invoice.fecha_programacion if invoice.fecha_programacion else invoice.vencimiento
        if day is None:
            continue
        if date_range and date_range.start and day < date_range.start:
            continue
        if date_range and date_range.end and day > date_range.end:
            continue
        haystacks = [
            invoice.proveedor.lower(),
            (invoice.serie + invoice.folio).lower(),
            str(invoice.total),
            invoice.concepto.lower(),
            invoice.clasificacion.lower(),
        ]
        if query and not any(query in text for text in haystacks):
            continue
        key = (invoice.proveedor, day)
        cells[key] = cells.get(key, Decimal("0")) + invoice.total - invoice.monto_pagado
    return cells


@pytest.mark.parametrize("seed", range(8))
def test_projection_conserves_outstanding_balance(make_invoice, seed):
    rng = random.Random(seed)
    invoices = []
    for n in range(30):
        vencimiento = rng.choice([None, DAY + timedelta(days=rng.randint(-5, 20))])
        invoices.append(
            make_invoice(
                proveedor=rng.choice(["Alfa", "Beta", "Gama"]),
                serie=rng.choice(["A", "B"]),
                folio=str(100 + n),
                concepto=rng.choice(["", "Renta", "Fletes"]),
                estatus=rng.choice([Estatus.PENDIENTE, Estatus.PENDIENTE, Estatus.PAGADO]),
                moneda=rng.choice(list(Moneda)),
                total=str(rng.randint(1, 1000)),
                monto_pagado=str(rng.randint(0, 500)),
                vencimiento=vencimiento,
                fecha_programacion=rng.choice([None, DAY + timedelta(days=rng.randint(-3, 15))]),
            )
        )
    date_range = _random_range(rng)
    search = rng.choice([None, "", "alfa", "renta", "b10", "7"])

    matrix = build_projection_matrix(invoices, date_range, search)
    expected = _expected_cells(invoices, date_range, search)
    total = sum(expected.values(), Decimal("0"))

    assert {
        (provider, day): cell.total for provider, row in matrix.cells.items() for day, cell in row.items()
    } == expected
    assert matrix.grand_total == total
    assert sum(matrix.date_totals.values(), Decimal("0")) == total
    assert sum(matrix.currency_totals.values(), Decimal("0")) == total
    assert matrix.providers == sorted({provider for provider, _ in expected})
    if date_range is not None and date_range.is_closed:
        assert matrix.dates[0] == date_range.start and matrix.dates[-1] == date_range.end
    else:
        assert matrix.dates == sorted({day for _, day in expected})
    assert build_projection_matrix(invoices, date_range, search) == matrix
