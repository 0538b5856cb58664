from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, computed_field

from app.schemas.filters import GroupField
from app.schemas.invoice import Invoice
from app.utils.dates import month_key
from app.utils.money import sum_amounts

SIN_VALOR = "—"

_KEY_GETTERS: Dict[GroupField, Callable[[Invoice], str]] = {
    GroupField.PROVEEDOR: lambda invoice: invoice.proveedor,
    GroupField.CLASIFICACION: lambda invoice: invoice.clasificacion,
    GroupField.ESTATUS: lambda invoice: invoice.estatus.value,
    GroupField.MES: lambda invoice: month_key(invoice.fecha),
    GroupField.MONEDA: lambda invoice: invoice.moneda.value,
}


class InvoiceGroup(BaseModel):
    key: str
    invoices: List[Invoice] = Field(default_factory=list)
    subgroups: Optional[Dict[str, "InvoiceGroup"]] = None

    @property
    def members(self) -> List[Invoice]:
        if self.subgroups is None:
            return list(self.invoices)
        return [invoice for group in self.subgroups.values() for invoice in group.members]

    @computed_field
    @property
    def count(self) -> int:
        return len(self.members)

    @computed_field
    @property
    def total(self) -> Decimal:
        return sum_amounts(invoice.total for invoice in self.members)

    @computed_field
    @property
    def saldo(self) -> Decimal:
        return sum_amounts(invoice.saldo for invoice in self.members)


GroupTree = Dict[str, InvoiceGroup]


def group_key(invoice: Invoice, field: GroupField) -> str:
    return (_KEY_GETTERS[field](invoice) or "").strip() or SIN_VALOR


def group_invoices(
    invoices: Iterable[Invoice],
    primary: GroupField,
    secondary: Optional[GroupField] = None,
) -> GroupTree:
    """Partition ``invoices`` by ``primary`` and optionally by ``secondary``.

    Groups keep the order in which their key first appears; empty keys go to
    the ``SIN_VALOR`` group.
    """
    if secondary is not None and secondary == primary:
        raise ValueError("La agrupación secundaria debe ser distinta de la principal")

    tree: GroupTree = {}
    for invoice in invoices:
        k1 = group_key(invoice, primary)
        group = tree.get(k1)
        if group is None:
            group = InvoiceGroup(key=k1, subgroups={} if secondary else None)
            tree[k1] = group
        if secondary is None:
            group.invoices.append(invoice)
            continue
        k2 = group_key(invoice, secondary)
        subgroup = group.subgroups.get(k2)
        if subgroup is None:
            subgroup = InvoiceGroup(key=k2)
            group.subgroups[k2] = subgroup
        subgroup.invoices.append(invoice)
    return tree
