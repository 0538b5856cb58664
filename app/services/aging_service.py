from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, computed_field

from app.schemas.invoice import Estatus, Invoice, Moneda
from app.utils.dates import days_between
from app.utils.money import sum_amounts

CORRIENTE = "corriente"
VENCIDO = "vencido"


@dataclass(frozen=True)
class BucketDef:
    key: str
    label: str
    kind: str
    min_days: Optional[int]
    max_days: Optional[int]

    def contains(self, days: int) -> bool:
        if self.min_days is not None and days < self.min_days:
            return False
        if self.max_days is not None and days > self.max_days:
            return False
        return True


# Positive days = still current, negative days = past due.
BUCKETS: List[BucketDef] = [
    BucketDef("corriente_7", "Corriente 0-7 Días", CORRIENTE, 0, 7),
    BucketDef("corriente_15", "Corriente 8-15 Días", CORRIENTE, 8, 15),
    BucketDef("corriente_30", "Corriente 16-30 Días", CORRIENTE, 16, 30),
    BucketDef("corriente_mas_30", "Corriente +30 Días", CORRIENTE, 31, None),
    BucketDef("vencido_7", "Vencido 1-7 Días", VENCIDO, -7, -1),
    BucketDef("vencido_15", "Vencido 8-15 Días", VENCIDO, -15, -8),
    BucketDef("vencido_30", "Vencido 16-30 Días", VENCIDO, -30, -16),
    BucketDef("vencido_60", "Vencido 31-60 Días", VENCIDO, -60, -31),
    BucketDef("vencido_mas_60", "Vencido +60 Días", VENCIDO, None, -61),
]
BUCKETS_BY_KEY = {bucket.key: bucket for bucket in BUCKETS}


class AgingBucket(BaseModel):
    key: str
    label: str
    kind: str
    invoices: List[Invoice] = Field(default_factory=list)

    @computed_field
    @property
    def count(self) -> int:
        return len(self.invoices)

    @computed_field
    @property
    def saldo(self) -> Decimal:
        return sum_amounts(invoice.saldo for invoice in self.invoices)


class AgingSection(BaseModel):
    buckets: Dict[str, AgingBucket]

    def _kind_total(self, kind: str) -> Decimal:
        return sum_amounts(bucket.saldo for bucket in self.buckets.values() if bucket.kind == kind)

    @computed_field
    @property
    def corriente(self) -> Decimal:
        return self._kind_total(CORRIENTE)

    @computed_field
    @property
    def vencido(self) -> Decimal:
        return self._kind_total(VENCIDO)

    @computed_field
    @property
    def count(self) -> int:
        return sum(bucket.count for bucket in self.buckets.values())

    def bucket(self, key: str) -> AgingBucket:
        return self.buckets[key]


class AgingReport(BaseModel):
    today: date
    total: AgingSection
    by_currency: Dict[Moneda, AgingSection]


def is_pending(invoice: Invoice) -> bool:
    """Not marked paid and with a positive balance."""
    return invoice.estatus != Estatus.PAGADO and invoice.saldo > 0


def is_overdue(invoice: Invoice, today: date) -> bool:
    return (
        invoice.vencimiento is not None
        and invoice.estatus != Estatus.PAGADO
        and invoice.vencimiento < today
    )


def days_until_due(invoice: Invoice, today: date) -> Optional[int]:
    if invoice.vencimiento is None:
        return None
    return days_between(today, invoice.vencimiento)


def bucket_for(days: int) -> BucketDef:
    for bucket in BUCKETS:
        if bucket.contains(days):
            return bucket
    raise ValueError(f"Sin rango de antigüedad para {days} días")


def _section(invoices: Iterable[Invoice], today: date) -> AgingSection:
    members: Dict[str, List[Invoice]] = {bucket.key: [] for bucket in BUCKETS}
    for invoice in invoices:
        days = days_until_due(invoice, today)
        if days is None:
            continue
        members[bucket_for(days).key].append(invoice)
    return AgingSection(
        buckets={
            bucket.key: AgingBucket(key=bucket.key, label=bucket.label, kind=bucket.kind, invoices=members[bucket.key])
            for bucket in BUCKETS
        }
    )


def classify_aging(invoices: Iterable[Invoice], today: date) -> AgingReport:
    """Bucket pending invoices by days to their due date, per currency and overall.

    Paid invoices, invoices with no balance and invoices without ``vencimiento``
    are left out of every bucket.
    """
    pending = [invoice for invoice in invoices if is_pending(invoice)]
    return AgingReport(
        today=today,
        total=_section(pending, today),
        by_currency={
            moneda: _section((invoice for invoice in pending if invoice.moneda == moneda), today)
            for moneda in Moneda
        },
    )
