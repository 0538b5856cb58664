from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.dependencies import get_invoice_service, get_today, require_login
from app.models.user import User
from app.schemas.filters import DateRange, FilterSpec, GroupField
from app.schemas.invoice import Estatus, Moneda
from app.services.aging_service import AgingReport, classify_aging
from app.services.dashboard_service import Dashboard, DashboardDetail, DashboardError, build_dashboard, dashboard_detail
from app.services.duplicate_service import DuplicateReport, find_duplicates
from app.services.invoice_service import InvoiceService
from app.services.projection_service import ProjectionMatrix, build_projection_matrix

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/aging", response_model=AgingReport)
async def aging(
    service: InvoiceService = Depends(get_invoice_service),
    today: date = Depends(get_today),
    user: User = Depends(require_login),
):
    return classify_aging(service.store().all(), today)


@router.get("/duplicates", response_model=DuplicateReport)
async def duplicates(service: InvoiceService = Depends(get_invoice_service), user: User = Depends(require_login)):
    return find_duplicates(service.store().all())


@router.get("/projection", response_model=ProjectionMatrix)
async def projection(
    start: Optional[date] = Query(None, alias="from"),
    end: Optional[date] = Query(None, alias="to"),
    search: str = "",
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
):
    date_range = DateRange(start=start, end=end) if start or end else None
    return build_projection_matrix(service.store().all(), date_range, search or None)


@router.get("/dashboard", response_model=Dashboard)
async def dashboard(
    service: InvoiceService = Depends(get_invoice_service),
    today: date = Depends(get_today),
    user: User = Depends(require_login),
):
    activos = service.catalog.list_suppliers().activos
    return build_dashboard(service.store().all(), today, proveedores_activos=activos)


@router.get("/dashboard/detail", response_model=DashboardDetail)
async def dashboard_drilldown(
    bucket: str,
    moneda: Optional[Moneda] = None,
    search_text: str = Query("", alias="searchText"),
    proveedor: str = "",
    clasificacion: str = "",
    estatus: Optional[Estatus] = None,
    group_by: Optional[GroupField] = Query(None, alias="groupBy"),
    service: InvoiceService = Depends(get_invoice_service),
    today: date = Depends(get_today),
    user: User = Depends(require_login),
):
    spec = FilterSpec(search_text=search_text, proveedor=proveedor, clasificacion=clasificacion, estatus=estatus)
    try:
        return dashboard_detail(service.store().all(), today, bucket, moneda, spec, group_by)
    except DashboardError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
