from decimal import Decimal
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.invoice import new_id
from app.schemas.filters import FilterSpec
from app.schemas.invoice import BulkUpdate, Estatus, Invoice, InvoiceIn, InvoicePatch, Moneda
from app.schemas.supplier import SupplierOut
from app.services.catalog_service import CatalogService
from app.services.filter_service import filter_invoices
from app.services.invoice_repository import InvoiceRepository
from app.services.invoice_store import InvoiceStore
from app.utils.dates import add_days
from app.utils.money import ZERO, round_money


class InvoiceServiceError(Exception):
    pass


def compute_iva(subtotal: Decimal, iva: Optional[Decimal] = None) -> Decimal:
    if iva is not None:
        return round_money(iva)
    return round_money(subtotal * settings.iva_rate)


def compute_total(subtotal: Decimal, iva: Decimal, ret_isr: Decimal = ZERO, ret_iva: Decimal = ZERO) -> Decimal:
    return round_money(subtotal + iva - ret_isr - ret_iva)


def resolve_estatus(estatus: Estatus, monto_pagado: Decimal, total: Decimal) -> Estatus:
    if total > 0 and monto_pagado >= total:
        return Estatus.PAGADO
    if 0 < monto_pagado < total:
        return Estatus.PARCIAL
    return estatus


def resolve_dias_credito(dias_credito: Optional[int], supplier: Optional[SupplierOut]) -> int:
    if dias_credito:
        return dias_credito
    if supplier is not None and supplier.dias_credito:
        return supplier.dias_credito
    return settings.default_dias_credito


def build_invoice(data: InvoiceIn, supplier: Optional[SupplierOut] = None) -> Invoice:
    """Apply the invoice rules to a form payload: IVA, total, due date and status."""
    iva = compute_iva(data.subtotal, data.iva)
    total = compute_total(data.subtotal, iva, data.ret_isr, data.ret_iva)
    dias_credito = resolve_dias_credito(data.dias_credito, supplier)
    vencimiento = data.vencimiento or add_days(data.fecha, dias_credito)
    estatus = resolve_estatus(data.estatus, data.monto_pagado, total)
    values = data.model_dump(exclude={"id", "iva"})
    values.update(
        id=data.id or new_id(),
        iva=iva,
        total=total,
        dias_credito=dias_credito,
        vencimiento=vencimiento,
        estatus=estatus,
    )
    return Invoice(**values)


def patch_values(invoice: Invoice, patch: InvoicePatch) -> Dict[str, Any]:
    values = {
        key: value
        for key, value in patch.model_dump(include=patch.model_fields_set).items()
        if value is not None or key == "fecha_programacion"
    }
    if values.get("estatus") == Estatus.PAGADO:
        values["monto_pagado"] = invoice.total
    return values


class InvoiceService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = InvoiceRepository(session)
        self.catalog = CatalogService(session)

    def store(self) -> InvoiceStore:
        return self.repository.load_store()

    def list_invoices(self, moneda: Moneda, spec: Optional[FilterSpec] = None) -> List[Invoice]:
        invoices = self.store().for_currency(moneda)
        return filter_invoices(invoices, spec) if spec else invoices

    def require(self, invoice_id: str) -> Invoice:
        invoice = self.repository.get(invoice_id)
        if invoice is None:
            raise InvoiceServiceError(f"La factura {invoice_id} no existe")
        return invoice

    def save(self, data: InvoiceIn) -> Invoice:
        if data.id:
            current = self.repository.get(data.id)
            if current is None:
                raise InvoiceServiceError(f"La factura {data.id} no existe")
            if current.moneda != data.moneda:
                logger.info("Factura {} cambia de {} a {}", data.id, current.moneda.value, data.moneda.value)
        supplier = self.catalog.find_supplier(data.proveedor)
        invoice = build_invoice(data, supplier)
        return self.repository.upsert(invoice)

    def patch(self, invoice_id: str, patch: InvoicePatch) -> Invoice:
        invoice = self.require(invoice_id)
        values = patch_values(invoice, patch)
        if not values:
            return invoice
        self.repository.update_fields(invoice_id, values)
        return invoice.model_copy(update=values)

    def toggle_vo_bo(self, invoice_id: str) -> Invoice:
        invoice = self.require(invoice_id)
        return self.patch(invoice_id, InvoicePatch(vo_bo=not invoice.vo_bo))

    def bulk_update(self, data: BulkUpdate) -> int:
        fields = data.model_dump(exclude={"ids"}, exclude_none=True)
        if not fields:
            return 0
        if data.estatus == Estatus.PAGADO:
            # each invoice is settled for its own total
            updated = 0
            for invoice_id in data.ids:
                invoice = self.repository.get(invoice_id)
                if invoice is None:
                    logger.warning("Edición masiva: la factura {} no existe", invoice_id)
                    continue
                self.repository.update_fields(invoice_id, {**fields, "monto_pagado": invoice.total})
                updated += 1
            return updated
        return self.repository.bulk_update(data.ids, fields)

    def move(self, invoice_id: str, moneda: Moneda) -> Invoice:
        store = self.store()
        if invoice_id not in store:
            raise InvoiceServiceError(f"La factura {invoice_id} no existe")
        moved = store.move(invoice_id, moneda)
        return self.repository.upsert(moved)

    def delete(self, invoice_id: str) -> None:
        if not self.repository.delete(invoice_id):
            raise InvoiceServiceError(f"La factura {invoice_id} no existe")
        logger.info("Factura {} eliminada", invoice_id)
