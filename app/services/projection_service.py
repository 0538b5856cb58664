from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from loguru import logger
from pydantic import BaseModel, Field, computed_field

from app.schemas.filters import DateRange
from app.schemas.invoice import Invoice, Moneda
from app.services.aging_service import is_pending
from app.utils.dates import dates_in_range
from app.utils.money import ZERO, sum_amounts


class ProjectedInvoice(Invoice):
    saldo_pendiente: Decimal


class ProjectionCell(BaseModel):
    total: Decimal = ZERO
    by_currency: Dict[Moneda, Decimal] = Field(default_factory=lambda: {moneda: ZERO for moneda in Moneda})
    invoices: List[ProjectedInvoice] = Field(default_factory=list)

    @computed_field
    @property
    def currencies(self) -> List[Moneda]:
        return [moneda for moneda, amount in self.by_currency.items() if amount > 0]

    @computed_field
    @property
    def is_mixed(self) -> bool:
        return len(self.currencies) > 1

    def add(self, invoice: Invoice, saldo: Decimal) -> None:
        self.total += saldo
        self.by_currency[invoice.moneda] = self.by_currency.get(invoice.moneda, ZERO) + saldo
        self.invoices.append(ProjectedInvoice(**invoice.model_dump(), saldo_pendiente=saldo))


class ProjectionMatrix(BaseModel):
    """Outstanding balance by provider (rows) and payment date (columns)."""

    providers: List[str]
    dates: List[date]
    cells: Dict[str, Dict[date, ProjectionCell]]

    def cell(self, provider: str, day: date) -> Optional[ProjectionCell]:
        return self.cells.get(provider, {}).get(day)

    def provider_total(self, provider: str) -> Decimal:
        return sum_amounts(cell.total for cell in self.cells.get(provider, {}).values())

    def date_total(self, day: date) -> Decimal:
        return sum_amounts(row[day].total for row in self.cells.values() if day in row)

    @computed_field
    @property
    def provider_totals(self) -> Dict[str, Decimal]:
        return {provider: self.provider_total(provider) for provider in self.providers}

    @computed_field
    @property
    def date_totals(self) -> Dict[date, Decimal]:
        return {day: self.date_total(day) for day in self.dates}

    @computed_field
    @property
    def currency_totals(self) -> Dict[Moneda, Decimal]:
        totals = {moneda: ZERO for moneda in Moneda}
        for row in self.cells.values():
            for cell in row.values():
                for moneda, amount in cell.by_currency.items():
                    totals[moneda] += amount
        return totals

    @computed_field
    @property
    def grand_total(self) -> Decimal:
        return sum_amounts(self.provider_total(provider) for provider in self.providers)


def matches_projection_search(invoice: Invoice, search: str) -> bool:
    if not search:
        return True
    query = search.lower()
    return (
        query in invoice.proveedor.lower()
        or query in invoice.folio_key.lower()
        or query in str(invoice.total)
        or query in invoice.concepto.lower()
        or query in invoice.clasificacion.lower()
    )


def build_projection_matrix(
    invoices: Iterable[Invoice],
    date_range: Optional[DateRange] = None,
    search: Optional[str] = None,
) -> ProjectionMatrix:
    """Place every pending invoice on its effective payment date.

    The date axis is every day of ``date_range`` when both ends are given,
    otherwise only the dates that actually carry balance.
    """
    date_range = date_range or DateRange()
    cells: Dict[str, Dict[date, ProjectionCell]] = {}
    seen_dates = set()

    for invoice in invoices:
        if not is_pending(invoice):
            continue
        pay_date = invoice.fecha_pago
        if pay_date is None:
            continue
        if date_range.start and pay_date < date_range.start:
            continue
        if date_range.end and pay_date > date_range.end:
            continue
        if not matches_projection_search(invoice, search or ""):
            continue
        row = cells.setdefault(invoice.proveedor, {})
        row.setdefault(pay_date, ProjectionCell()).add(invoice, invoice.saldo)
        seen_dates.add(pay_date)

    if date_range.is_closed:
        dates = dates_in_range(date_range.start, date_range.end)
    else:
        dates = sorted(seen_dates)
    logger.debug("Proyección: {} proveedores, {} fechas", len(cells), len(dates))
    return ProjectionMatrix(providers=sorted(cells), dates=dates, cells=cells)
