from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger
from pydantic import BaseModel, Field, computed_field

from app.schemas.filters import FilterSpec, GroupField
from app.schemas.invoice import Estatus, Invoice, Moneda
from app.services.aging_service import BUCKETS_BY_KEY, AgingReport, bucket_for, classify_aging, days_until_due, is_overdue, is_pending
from app.services.filter_service import filter_invoices
from app.services.grouping_service import GroupTree, group_invoices
from app.utils.money import ZERO, sum_amounts

TOP_OVERDUE_LIMIT = 8


class DashboardError(Exception):
    pass


class Kpis(BaseModel):
    saldo_por_moneda: Dict[Moneda, Decimal]
    vencidas: int
    facturas: int
    proveedores_activos: int


class ClasificacionSaldo(BaseModel):
    clasificacion: str
    saldo: Decimal


class VigenciaMoneda(BaseModel):
    vigente: Decimal = ZERO
    vigente_count: int = 0
    vencido: Decimal = ZERO
    vencido_count: int = 0


class Dashboard(BaseModel):
    today: date
    kpis: Kpis
    por_clasificacion: List[ClasificacionSaldo]
    vigencia: Dict[Moneda, VigenciaMoneda]
    top_vencidas: List[Invoice]
    aging: AgingReport


class DashboardDetail(BaseModel):
    bucket: str
    invoices: List[Invoice] = Field(default_factory=list)
    proveedores: List[str] = Field(default_factory=list)
    clasificaciones: List[str] = Field(default_factory=list)
    groups: Optional[GroupTree] = None

    @computed_field
    @property
    def count(self) -> int:
        return len(self.invoices)

    @computed_field
    @property
    def total(self) -> Decimal:
        return sum_amounts(invoice.total for invoice in self.invoices)

    @computed_field
    @property
    def saldo(self) -> Decimal:
        return sum_amounts(invoice.saldo for invoice in self.invoices)


def pending_balance(invoices: Iterable[Invoice]) -> Decimal:
    """Outstanding balance of everything not marked paid."""
    return sum_amounts(invoice.saldo for invoice in invoices if invoice.estatus != Estatus.PAGADO)


def saldo_por_clasificacion(invoices: Iterable[Invoice]) -> List[ClasificacionSaldo]:
    totals: Dict[str, Decimal] = {}
    for invoice in invoices:
        if invoice.estatus == Estatus.PAGADO:
            continue
        totals[invoice.clasificacion] = totals.get(invoice.clasificacion, ZERO) + invoice.saldo
    rows = [ClasificacionSaldo(clasificacion=name, saldo=saldo) for name, saldo in totals.items() if saldo > 0]
    return sorted(rows, key=lambda row: row.saldo, reverse=True)


def top_overdue(invoices: Iterable[Invoice], today: date, limit: int = TOP_OVERDUE_LIMIT) -> List[Invoice]:
    overdue = [invoice for invoice in invoices if is_overdue(invoice, today)]
    overdue.sort(key=lambda invoice: invoice.vencimiento)
    return overdue[:limit]


def build_dashboard(invoices: Iterable[Invoice], today: date, proveedores_activos: int = 0) -> Dashboard:
    invoices = list(invoices)
    pending = [invoice for invoice in invoices if is_pending(invoice)]
    vigencia: Dict[Moneda, VigenciaMoneda] = {}
    for moneda in Moneda:
        vigentes = [i for i in pending if i.moneda == moneda and not is_overdue(i, today)]
        vencidas = [i for i in pending if i.moneda == moneda and is_overdue(i, today)]
        vigencia[moneda] = VigenciaMoneda(
            vigente=sum_amounts(i.saldo for i in vigentes),
            vigente_count=len(vigentes),
            vencido=sum_amounts(i.saldo for i in vencidas),
            vencido_count=len(vencidas),
        )
    return Dashboard(
        today=today,
        kpis=Kpis(
            saldo_por_moneda={
                moneda: pending_balance(i for i in invoices if i.moneda == moneda) for moneda in Moneda
            },
            vencidas=sum(1 for invoice in invoices if is_overdue(invoice, today)),
            facturas=len(invoices),
            proveedores_activos=proveedores_activos,
        ),
        por_clasificacion=saldo_por_clasificacion(invoices),
        vigencia=vigencia,
        top_vencidas=top_overdue(invoices, today),
        aging=classify_aging(invoices, today),
    )


def _in_aging_bucket(key: str, today: date) -> Callable[[Invoice], bool]:
    def check(invoice: Invoice) -> bool:
        days = days_until_due(invoice, today)
        return is_pending(invoice) and days is not None and bucket_for(days).key == key

    return check


def bucket_selector(bucket: str, today: date) -> Callable[[Invoice], bool]:
    """Predicate behind each dashboard card.

    ``todas``, ``pendientes``, ``vencidas``, ``vigentes`` or any aging bucket
    key. Currency narrowing is applied separately.
    """
    if bucket == "todas":
        return lambda invoice: True
    if bucket == "pendientes":
        return is_pending
    if bucket == "vencidas":
        return lambda invoice: is_pending(invoice) and is_overdue(invoice, today)
    if bucket == "vigentes":
        return lambda invoice: is_pending(invoice) and not is_overdue(invoice, today)
    if bucket in BUCKETS_BY_KEY:
        return _in_aging_bucket(bucket, today)
    raise DashboardError(f"Tarjeta desconocida: {bucket}")


def dashboard_detail(
    invoices: Iterable[Invoice],
    today: date,
    bucket: str,
    moneda: Optional[Moneda] = None,
    spec: Optional[FilterSpec] = None,
    group_by: Optional[GroupField] = None,
) -> DashboardDetail:
    selector = bucket_selector(bucket, today)
    items = [i for i in invoices if selector(i) and (moneda is None or i.moneda == moneda)]
    filtered = filter_invoices(items, spec) if spec else items
    logger.debug("Detalle {} ({}): {} de {} facturas", bucket, moneda, len(filtered), len(items))
    return DashboardDetail(
        bucket=bucket,
        invoices=filtered,
        proveedores=sorted({i.proveedor for i in items}),
        clasificaciones=sorted({i.clasificacion for i in items}),
        groups=group_invoices(filtered, group_by) if group_by else None,
    )
