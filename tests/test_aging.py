import random
from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.schemas.invoice import Estatus, Moneda
from app.services.aging_service import BUCKETS, bucket_for, classify_aging

TODAY = date(2026, 3, 1)


def test_ten_days_overdue_lands_in_eight_to_fifteen(make_invoice):
    invoice = make_invoice(total="1160", monto_pagado="0", vencimiento=TODAY - timedelta(days=10))
    report = classify_aging([invoice], TODAY)
    bucket = report.by_currency[Moneda.MXN].bucket("vencido_15")
    assert bucket.label == "Vencido 8-15 Días"
    assert bucket.invoices == [invoice]
    assert bucket.saldo == Decimal("1160")
    assert report.total.vencido == Decimal("1160")
    assert report.total.corriente == Decimal("0")


@pytest.mark.parametrize(
    "days, key",
    [
        (0, "corriente_7"),
        (7, "corriente_7"),
        (8, "corriente_15"),
        (15, "corriente_15"),
        (16, "corriente_30"),
        (30, "corriente_30"),
        (31, "corriente_mas_30"),
        (-1, "vencido_7"),
        (-7, "vencido_7"),
        (-8, "vencido_15"),
        (-16, "vencido_30"),
        (-31, "vencido_60"),
        (-60, "vencido_60"),
        (-61, "vencido_mas_60"),
    ],
)
def test_bucket_boundaries(days, key):
    assert bucket_for(days).key == key


def test_paid_zero_balance_and_undated_are_excluded(make_invoice):
    paid = make_invoice(estatus=Estatus.PAGADO, vencimiento=TODAY)
    settled = make_invoice(monto_pagado="1160", vencimiento=TODAY)
    undated = make_invoice(vencimiento=None)
    report = classify_aging([paid, settled, undated], TODAY)
    assert report.total.count == 0


def test_partial_payment_counts_outstanding_only(make_invoice):
    invoice = make_invoice(total="1000", monto_pagado="400", vencimiento=TODAY + timedelta(days=3))
    report = classify_aging([invoice], TODAY)
    assert report.total.bucket("corriente_7").saldo == Decimal("600")


def test_currency_sections_add_up_to_total(make_invoice):
    invoices = [
        make_invoice(moneda=Moneda.MXN, vencimiento=TODAY - timedelta(days=2)),
        make_invoice(moneda=Moneda.USD, vencimiento=TODAY + timedelta(days=40)),
        make_invoice(moneda=Moneda.EUR, vencimiento=TODAY - timedelta(days=90)),
    ]
    report = classify_aging(invoices, TODAY)
    for bucket in BUCKETS:
        per_currency = sum(section.bucket(bucket.key).count for section in report.by_currency.values())
        assert per_currency == report.total.bucket(bucket.key).count


@pytest.mark.parametrize("seed", range(5))
def test_buckets_partition_pending_invoices(make_invoice, seed):
    rng = random.Random(seed)
    invoices = []
    for _ in range(40):
        vencimiento = None if rng.random() < 0.1 else TODAY + timedelta(days=rng.randint(-120, 120))
        invoices.append(
            make_invoice(
                moneda=rng.choice(list(Moneda)),
                total=str(rng.randint(0, 5000)),
                monto_pagado=str(rng.randint(0, 3000)),
                estatus=rng.choice(list(Estatus)),
                vencimiento=vencimiento,
            )
        )
    report = classify_aging(invoices, TODAY)
    expected = {
        i.id for i in invoices if i.estatus != Estatus.PAGADO and i.saldo > 0 and i.vencimiento is not None
    }
    placed = [i.id for bucket in report.total.buckets.values() for i in bucket.invoices]
    assert len(placed) == len(set(placed))
    assert set(placed) == expected
    assert classify_aging(invoices, TODAY) == report
