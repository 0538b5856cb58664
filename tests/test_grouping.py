import random
from datetime import date
from decimal import Decimal

import pytest

from app.schemas.filters import GroupField
from app.schemas.invoice import Estatus, Moneda
from app.services.grouping_service import SIN_VALOR, group_invoices


def test_single_level_groups_in_first_seen_order(make_invoice):
    invoices = [
        make_invoice(proveedor="Beta", total="100"),
        make_invoice(proveedor="Alfa", total="50"),
        make_invoice(proveedor="Beta", total="25", monto_pagado="25"),
    ]
    tree = group_invoices(invoices, GroupField.PROVEEDOR)
    assert list(tree) == ["Beta", "Alfa"]
    assert tree["Beta"].count == 2
    assert tree["Beta"].total == Decimal("125")
    assert tree["Beta"].saldo == Decimal("100")
    assert tree["Beta"].subgroups is None


def test_empty_values_go_to_placeholder_group(make_invoice):
    tree = group_invoices([make_invoice(clasificacion="  "), make_invoice(fecha=None)], GroupField.CLASIFICACION)
    assert SIN_VALOR in tree
    month_tree = group_invoices([make_invoice(fecha=None)], GroupField.MES)
    assert list(month_tree) == [SIN_VALOR]


def test_month_and_currency_keys(make_invoice):
    invoices = [make_invoice(fecha=date(2026, 1, 5), moneda=Moneda.USD), make_invoice(fecha=date(2026, 2, 5))]
    assert list(group_invoices(invoices, GroupField.MES)) == ["2026-01", "2026-02"]
    assert list(group_invoices(invoices, GroupField.MONEDA)) == ["USD", "MXN"]


def test_two_levels_header_totals_match_children(make_invoice):
    invoices = [
        make_invoice(proveedor="Alfa", estatus=Estatus.PENDIENTE, total="10"),
        make_invoice(proveedor="Alfa", estatus=Estatus.PAGADO, total="20", monto_pagado="20"),
        make_invoice(proveedor="Beta", estatus=Estatus.PENDIENTE, total="30"),
    ]
    tree = group_invoices(invoices, GroupField.PROVEEDOR, GroupField.ESTATUS)
    alfa = tree["Alfa"]
    assert list(alfa.subgroups) == ["Pendiente", "Pagado"]
    assert alfa.count == sum(sub.count for sub in alfa.subgroups.values())
    assert alfa.total == Decimal("30")
    assert alfa.saldo == Decimal("10")


def test_same_field_twice_is_an_error(make_invoice):
    with pytest.raises(ValueError):
        group_invoices([make_invoice()], GroupField.ESTATUS, GroupField.ESTATUS)


@pytest.mark.parametrize("seed", range(4))
def test_grouping_is_a_partition(make_invoice, seed):
    rng = random.Random(seed)
    invoices = [
        make_invoice(
            proveedor=rng.choice(["Alfa", "Beta", ""]),
            clasificacion=rng.choice(["Servicios", "Otros", ""]),
            total=str(rng.randint(1, 900)),
        )
        for _ in range(25)
    ]
    tree = group_invoices(invoices, GroupField.PROVEEDOR, GroupField.CLASIFICACION)
    members = [i.id for group in tree.values() for i in group.members]
    assert sorted(members) == sorted(i.id for i in invoices)
    assert sum(group.total for group in tree.values()) == sum(i.total for i in invoices)
    assert group_invoices(invoices, GroupField.PROVEEDOR, GroupField.CLASIFICACION) == tree
