from decimal import Decimal
from typing import Dict, List

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.dependencies import csrf_protect, get_invoice_service, parse_query, require_login
from app.models.user import User
from app.schemas.filters import FilterSpec, GroupSpec
from app.schemas.invoice import BulkUpdate, Invoice, InvoiceIn, InvoicePatch, Moneda, MoveRequest
from app.services.audit_service import audit_request
from app.services.duplicate_service import find_duplicates
from app.services.filter_service import filter_invoices
from app.services.grouping_service import GroupTree, group_invoices
from app.services.import_service import ImportServiceError, import_invoices
from app.services.invoice_service import InvoiceService, InvoiceServiceError
from app.utils.money import sum_amounts

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


class Cartera(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    moneda: Moneda
    invoices: List[Invoice]
    count: int
    total: Decimal
    saldo: Decimal
    duplicate_ids: List[str]


class ImportOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    valid: bool
    message: str
    added: int
    added_by_currency: Dict[Moneda, int]
    new_suppliers: List[str]
    duplicated: int
    errors: List[str]


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("", response_model=Cartera)
async def list_invoices(
    request: Request,
    moneda: Moneda = Moneda.MXN,
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
):
    spec = parse_query(FilterSpec, request, reserved=("moneda",))
    store = service.store()
    invoices = filter_invoices(store.for_currency(moneda), spec)
    # duplicates are flagged against every currency, not only the filtered rows
    report = find_duplicates(store.all())
    return Cartera(
        moneda=moneda,
        invoices=invoices,
        count=len(invoices),
        total=sum_amounts(i.total for i in invoices),
        saldo=sum_amounts(i.saldo for i in invoices),
        duplicate_ids=[i.id for i in invoices if report.is_duplicate(i.id)],
    )


@router.get("/grouped", response_model=GroupTree)
async def grouped_invoices(
    request: Request,
    moneda: Moneda = Moneda.MXN,
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
):
    groups = parse_query(
        GroupSpec,
        request,
        reserved=[key for key in request.query_params if key not in ("primary", "secondary")],
    )
    spec = parse_query(FilterSpec, request, reserved=("moneda", "primary", "secondary"))
    return group_invoices(service.list_invoices(moneda, spec), groups.primary, groups.secondary)


@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED)
async def save_invoice(
    payload: InvoiceIn,
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
    csrf=Depends(csrf_protect),
):
    try:
        return service.save(payload)
    except InvoiceServiceError as exc:
        raise _not_found(exc)


@router.post("/bulk")
async def bulk_update(
    request: Request,
    payload: BulkUpdate,
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
    csrf=Depends(csrf_protect),
):
    updated = service.bulk_update(payload)
    audit_request(service.session, request, user.id, "invoice_bulk_update", ids=payload.ids, updated=updated)
    return {"updated": updated}


@router.post("/import", response_model=ImportOut)
async def import_file(
    request: Request,
    file: UploadFile = File(...),
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
    csrf=Depends(csrf_protect),
):
    content = await file.read()
    try:
        result = import_invoices(service.session, content, file.filename or "")
    except ImportServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if not result.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    audit_request(
        service.session,
        request,
        user.id,
        "invoice_import",
        filename=file.filename,
        added=result.added,
        duplicated=len(result.duplicated),
    )
    return ImportOut(
        valid=result.valid,
        message=result.message,
        added=result.added,
        added_by_currency=result.added_by_currency(),
        new_suppliers=[supplier.nombre for supplier in result.new_suppliers],
        duplicated=len(result.duplicated),
        errors=result.errors,
    )


@router.patch("/{invoice_id}", response_model=Invoice)
async def patch_invoice(
    invoice_id: str,
    payload: InvoicePatch,
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
    csrf=Depends(csrf_protect),
):
    try:
        return service.patch(invoice_id, payload)
    except InvoiceServiceError as exc:
        raise _not_found(exc)


@router.post("/{invoice_id}/vo-bo", response_model=Invoice)
async def toggle_vo_bo(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
    csrf=Depends(csrf_protect),
):
    try:
        return service.toggle_vo_bo(invoice_id)
    except InvoiceServiceError as exc:
        raise _not_found(exc)


@router.post("/{invoice_id}/move", response_model=Invoice)
async def move_invoice(
    request: Request,
    invoice_id: str,
    payload: MoveRequest,
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
    csrf=Depends(csrf_protect),
):
    try:
        moved = service.move(invoice_id, payload.moneda)
    except InvoiceServiceError as exc:
        raise _not_found(exc)
    audit_request(service.session, request, user.id, "invoice_move", id=invoice_id, moneda=payload.moneda.value)
    return moved


@router.delete("/{invoice_id}")
async def delete_invoice(
    request: Request,
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
    user: User = Depends(require_login),
    csrf=Depends(csrf_protect),
):
    try:
        service.delete(invoice_id)
    except InvoiceServiceError as exc:
        raise _not_found(exc)
    audit_request(service.session, request, user.id, "invoice_delete", id=invoice_id)
    return {"ok": True}
